"""Error taxonomy for definition compilation and request invocation."""
from typing import Optional


class XapiError(Exception):
    """Base class for every error raised by xapi_export."""

    is_failure = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DefinitionsError(XapiError):
    """Spec document could not be fetched, or the store could not be read/written."""


class MissingSchema(XapiError):
    """No response schema could be resolved for an operation (endpoint is skipped)."""


class UnresolvedPlaceholderError(XapiError):
    """A template references a placeholder outside the binding vocabulary."""

    def __init__(self, template: str, placeholders: list):
        self.template = template
        self.placeholders = placeholders
        names = ", ".join("{" + p + "}" for p in placeholders)
        super().__init__(f"Unresolved placeholder(s) {names} in template: {template}")


class AuthError(XapiError):
    """Access token could not be obtained."""


class InvocationError(XapiError):
    """Base class for failures of a single request."""


class TransportError(InvocationError):
    """DNS, TLS, connection or timeout failure."""


class HttpError(InvocationError):
    """Non-200 response that is neither 204 nor 403."""

    def __init__(self, status_code: int, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API request failed. HTTP status code: {status_code}")


class Forbidden(InvocationError):
    """HTTP 403, usually the caller's address is not allow-listed."""

    status_code = 403

    def __init__(self):
        super().__init__(
            "API request failed. HTTP status code: 403 (Forbidden). "
            "This usually means your IP address is not whitelisted on the server; "
            "check the IP whitelist / access control settings in the management console."
        )


class EmptyResult(InvocationError):
    """Valid no-data outcome, not an error."""

    is_failure = False


class MalformedResponse(InvocationError):
    """Response body does not have a shape that can be exported."""


class UnknownEndpoint(InvocationError):
    """Endpoint name is not present in the definitions store."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"Endpoint '{endpoint}' is not supported.")


class InvalidBindings(InvocationError):
    """Request-time values are missing or out of range."""
