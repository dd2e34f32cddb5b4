"""
Endpoint Compiler - Turns resolved GET operations into endpoint descriptors and column schemas.

For every tagged GET operation:
- exclusion rules are applied (excluded operations are recorded, not dropped)
- OData query parameters are admitted per policy
- response properties are typed into a ColumnSchema
- a date $filter is synthesized for collection endpoints with a timestamp column
- zulu date rendering is detected from the path
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from xapi_export.errors import MissingSchema
from xapi_export.introspection.schema_resolver import OperationMetadata, SchemaResolver

from . import policy
from .models import ColumnSchema, DefinitionSet, EndpointDescriptor

logger = logging.getLogger(__name__)

DEFAULT_API_PREFIX = "/xapi/v1"


class EndpointCompiler:
    """Compiles an OpenAPI document into a DefinitionSet"""

    def __init__(self, api_prefix: str = DEFAULT_API_PREFIX):
        self.api_prefix = api_prefix.rstrip("/")

    def compile(self, spec: Dict[str, Any]) -> DefinitionSet:
        """
        Compile every eligible GET operation

        Args:
            spec: Parsed OpenAPI document

        Returns:
            DefinitionSet sorted by endpoint name
        """
        definitions = DefinitionSet()
        resolver = SchemaResolver(spec)

        for operation in resolver.iter_operations():
            name = operation.tag
            if name in definitions.descriptors:
                name = f"{operation.tag}/{operation.operation_id}"

            reason = policy.exclusion_reason(operation.path)
            if reason:
                key = f"{name}/{operation.operation_id}"
                logger.debug(f"{key}: {reason}")
                definitions.disabled[key] = reason
                continue

            try:
                descriptor, schema = self.compile_operation(name, operation)
            except MissingSchema as e:
                logger.debug(f"{name}: {e.message}")
                definitions.disabled[f"{name}/{operation.operation_id}"] = f"skipped: {e.message}"
                continue

            definitions.descriptors[name] = descriptor
            definitions.schemas[name] = schema

        definitions.sort()
        definitions.generated_at = datetime.now(timezone.utc)

        logger.info(
            f"Compiled {len(definitions.descriptors)} endpoints "
            f"({len(definitions.disabled)} disabled or skipped)"
        )
        return definitions

    def compile_operation(self, name: str, operation: OperationMetadata):
        """
        Build the descriptor and column schema for one operation

        Raises:
            MissingSchema: If the response schema has no usable properties
        """
        resolved = operation.schema
        if resolved is None or not resolved.properties:
            raise MissingSchema(f"no resolvable response schema for {operation.path}")

        columns = {
            prop: policy.convert_type(prop_type, prop_format)
            for prop, (prop_type, prop_format) in resolved.properties.items()
        }

        admitted = policy.admitted_params(operation.tag, operation.query_params)
        params: Dict[str, str] = {}

        if resolved.collection and policy.has_filter_support(operation.tag, admitted):
            date_filter: Optional[str] = policy.date_filter(columns)
            if date_filter:
                params["$filter"] = date_filter

        if "$count" in admitted:
            params["$count"] = "true"
        if "$skip" in admitted:
            params["$skip"] = "{skip}"
        if "$top" in admitted:
            params["$top"] = "{top}"

        descriptor = EndpointDescriptor(
            name=name,
            url_template=f"{self.api_prefix}{operation.path}",
            parameters=params,
            supports_zulu=policy.supports_zulu(operation.path),
            operation_id=operation.operation_id,
        )
        return descriptor, ColumnSchema(name=name, columns=columns)
