"""
Endpoint Definitions - compiled invocation templates for read-only API operations.

Supports:
- Endpoint compilation from an OpenAPI document
- Placeholder normalization onto request binding keys
- Typed templates (literal segments + binding references)
- JSON persistence with a staleness window
"""

from .compiler import EndpointCompiler
from .models import ColumnSchema, ColumnType, DefinitionSet, EndpointDescriptor
from .normalizer import PlaceholderNormalizer
from .store import DefinitionsStore, build_definitions
from .template import BINDING_KEYS, Binding, Literal, Template

__all__ = [
    "EndpointCompiler",
    "PlaceholderNormalizer",
    "DefinitionsStore",
    "build_definitions",
    "DefinitionSet",
    "EndpointDescriptor",
    "ColumnSchema",
    "ColumnType",
    "Template",
    "Literal",
    "Binding",
    "BINDING_KEYS",
]
