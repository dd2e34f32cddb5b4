"""
Invocation Pipeline - Executes one compiled endpoint per call.

Steps:
1. Resolve the endpoint descriptor and column schema
2. Compute zulu renderings of the date bindings
3. Render URL and parameter templates
4. Authenticate and issue the GET
5. Classify the HTTP outcome and the body shape
6. Expand collection rows with derived reporting columns
"""

import logging
from dataclasses import dataclass, field as dataclass_field
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple, Union

from xapi_export.definitions.models import OVERRIDE_SENTINEL, ColumnSchema, DefinitionSet, EndpointDescriptor
from xapi_export.errors import InvalidBindings, UnknownEndpoint
from xapi_export.transformer.expander import DatasetExpander

from .envelope import CollectionEnvelope, ResponseEnvelope, classify_body, decode_body
from .xapi_client import XapiClient

logger = logging.getLogger(__name__)

DEFAULT_TOP = 1000
DEFAULT_SKIP = 0


def _as_date(value: Union[date, str, None], name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidBindings(f"Invalid '{name}' date format. Expected YYYY-MM-DD.")


@dataclass
class Bindings:
    """Request-time values substituted into a descriptor"""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    top: int = DEFAULT_TOP
    skip: int = DEFAULT_SKIP
    queuedn: Optional[str] = None

    def __post_init__(self):
        self.date_from = _as_date(self.date_from, "from")
        self.date_to = _as_date(self.date_to, "to")

        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise InvalidBindings("The 'from' date must be earlier than or equal to the 'to' date.")
        for name in ("top", "skip"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidBindings(f"Invalid value for '{name}'. Must be a non-negative integer.")
        if self.queuedn is not None:
            self.queuedn = str(self.queuedn)

    def values(self, supports_zulu: bool) -> Dict[str, Optional[str]]:
        """Binding key -> rendered value"""
        date_from = self.date_from.isoformat() if self.date_from else None
        date_to = self.date_to.isoformat() if self.date_to else None
        from_zulu, to_zulu = date_from, date_to
        if supports_zulu:
            from_zulu = f"{date_from}T00:00:00Z" if date_from else None
            to_zulu = f"{date_to}T23:59:59Z" if date_to else None

        return {
            "from": date_from,
            "to": date_to,
            "fromZulu": from_zulu,
            "toZulu": to_zulu,
            "top": str(self.top),
            "skip": str(self.skip),
            "queuedn": self.queuedn,
        }


@dataclass
class RequestContext:
    """State scoped to a single invocation"""
    endpoint: str
    bindings: Bindings
    notices: List[str] = dataclass_field(default_factory=list)
    path: Optional[str] = None
    params: Dict[str, str] = dataclass_field(default_factory=dict)

    def notice(self, message: str) -> None:
        logger.info(f"({self.endpoint}) {message}")
        self.notices.append(message)


class InvocationPipeline:
    """Resolves, binds, calls and classifies one endpoint invocation"""

    def __init__(
        self,
        definitions: DefinitionSet,
        client: XapiClient,
        expander: Optional[DatasetExpander] = None,
    ):
        self.definitions = definitions
        self.client = client
        self.expander = expander or DatasetExpander()

    def resolve(self, endpoint: str) -> Tuple[EndpointDescriptor, ColumnSchema]:
        descriptor = self.definitions.get_descriptor(endpoint)
        schema = self.definitions.get_schema(endpoint)
        if descriptor is None or schema is None:
            raise UnknownEndpoint(endpoint)
        return descriptor, schema

    @staticmethod
    def bind(descriptor: EndpointDescriptor, bindings: Bindings) -> Tuple[str, Dict[str, str]]:
        """
        Render the URL path and query parameters

        Raises:
            UnresolvedPlaceholderError: Descriptor holds a non-binding placeholder
            InvalidBindings: A required from/to date is missing
        """
        url = descriptor.url()
        params = descriptor.parameter_templates()

        required = descriptor.visible_inputs
        missing = []
        if "from" in required and bindings.date_from is None:
            missing.append("from")
        if "to" in required and bindings.date_to is None:
            missing.append("to")
        if missing:
            raise InvalidBindings(
                f"Endpoint '{descriptor.name}' requires a value for: {', '.join(missing)}"
            )

        values = bindings.values(descriptor.supports_zulu)
        path = url.render(values)
        rendered = {key: template.render(values) for key, template in params.items()}
        return path, rendered

    def invoke(
        self,
        endpoint: str,
        bindings: Optional[Bindings] = None,
        context: Optional[RequestContext] = None,
    ) -> ResponseEnvelope:
        """
        Execute one endpoint

        Returns:
            CollectionEnvelope, ObjectEnvelope or BooleanEnvelope

        Raises:
            InvocationError subclasses (EmptyResult is the valid no-data outcome)
            AuthError: Token could not be obtained
        """
        bindings = bindings or Bindings()
        context = context or RequestContext(endpoint=endpoint, bindings=bindings)

        descriptor, schema = self.resolve(endpoint)
        if descriptor.requires_override:
            context.notice(
                f"Endpoint contains '{OVERRIDE_SENTINEL}' placeholder values that need a manual override."
            )

        context.path, context.params = self.bind(descriptor, bindings)

        response = self.client.get(context.path, context.params)
        envelope = classify_body(decode_body(response.text), context.notices)

        if isinstance(envelope, CollectionEnvelope):
            envelope.rows = self.expander.expand(envelope.rows, schema)
            logger.info(f"({endpoint}) Fetched {envelope.fetched_count} rows")

        return envelope
