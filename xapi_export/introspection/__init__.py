"""
API Introspection - reads the remote OpenAPI specification.

Supports:
- Specification download (YAML or JSON) with fallback locations
- Response schema resolution ($ref, allOf collection wrappers)
- Parameter $ref resolution
"""

from .schema_resolver import OperationMetadata, ResolvedSchema, SchemaResolver
from .spec_fetcher import SpecFetcher, load_spec_file, parse_spec_text

__all__ = [
    "SpecFetcher",
    "SchemaResolver",
    "OperationMetadata",
    "ResolvedSchema",
    "load_spec_file",
    "parse_spec_text",
]
