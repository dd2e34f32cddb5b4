"""
XAPI access - authentication, invocation and response classification.
"""

from .envelope import BooleanEnvelope, CollectionEnvelope, ObjectEnvelope
from .pipeline import Bindings, InvocationPipeline, RequestContext
from .token_provider import TokenProvider
from .xapi_client import XapiClient

__all__ = [
    "TokenProvider",
    "XapiClient",
    "InvocationPipeline",
    "Bindings",
    "RequestContext",
    "CollectionEnvelope",
    "ObjectEnvelope",
    "BooleanEnvelope",
]
