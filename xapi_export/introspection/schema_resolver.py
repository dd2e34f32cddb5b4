"""
Schema Resolver - Walks an OpenAPI document and resolves per-operation metadata.

Supports:
- GET operation discovery (first tag, operationId)
- Response $ref resolution through components.responses
- One level of schema $ref indirection into components.schemas
- allOf "collection wrapper" unwrapping (properties.value.items.$ref)
- Parameter $ref resolution through components.parameters
"""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, Iterator, List, Optional, Tuple
import logging
import uuid

logger = logging.getLogger(__name__)

JSON_CONTENT = "application/json"


@dataclass
class ResolvedSchema:
    """Flat property -> (type, format) map of an operation's 200 response"""
    properties: Dict[str, Tuple[Optional[str], Optional[str]]] = dataclass_field(default_factory=dict)
    collection: bool = False  # reached through the allOf collection wrapper
    item_ref: Optional[str] = None


@dataclass
class OperationMetadata:
    """Raw metadata for one GET operation"""
    path: str
    tag: str
    operation_id: str
    query_params: List[str] = dataclass_field(default_factory=list)
    schema: Optional[ResolvedSchema] = None


class SchemaResolver:
    """Resolves response schemas and parameters of an OpenAPI document"""

    def __init__(self, spec: Dict[str, Any]):
        self.spec = spec or {}
        components = self.spec.get("components") or {}
        self.schemas: Dict[str, Any] = components.get("schemas") or {}
        self.responses: Dict[str, Any] = components.get("responses") or {}
        self.parameters: Dict[str, Any] = components.get("parameters") or {}

    def iter_operations(self) -> Iterator[OperationMetadata]:
        """
        Yield metadata for every GET operation that carries a tag

        Operations without a tag are skipped; an operation without an
        operationId gets a random one so disabled entries stay unique.
        """
        paths = self.spec.get("paths") or {}
        for path, methods in paths.items():
            if not isinstance(methods, dict):
                continue
            for method, operation in methods.items():
                if str(method).lower() != "get" or not isinstance(operation, dict):
                    continue

                tags = operation.get("tags") or []
                if not tags or not tags[0]:
                    continue

                yield OperationMetadata(
                    path=path,
                    tag=tags[0],
                    operation_id=operation.get("operationId") or uuid.uuid4().hex[:13],
                    query_params=self.query_parameter_names(operation),
                    schema=self.resolve_response_schema(operation),
                )

    def query_parameter_names(self, operation: Dict[str, Any]) -> List[str]:
        """Names of declared query parameters, resolving $ref entries"""
        names = []
        for param in operation.get("parameters") or []:
            if not isinstance(param, dict):
                continue
            if "$ref" in param:
                param = self._lookup(self.parameters, param["$ref"]) or {}
            if param.get("in") == "query" and param.get("name"):
                names.append(param["name"])
        return names

    def resolve_response_schema(self, operation: Dict[str, Any]) -> Optional[ResolvedSchema]:
        """
        Resolve the 200 response schema as a flat property map

        Returns:
            ResolvedSchema, or None when nothing usable can be resolved
        """
        responses = operation.get("responses") or {}
        response = responses.get("200", responses.get(200))
        if not isinstance(response, dict):
            return None

        schema = None

        # Response defined in components.responses
        if "$ref" in response:
            response_def = self._lookup(self.responses, response["$ref"]) or {}
            schema = self._json_schema(response_def)
            if schema is not None:
                schema = self._deref(schema)

        # Inline response content
        if not schema:
            schema = self._json_schema(response)
            if schema is not None:
                schema = self._deref(schema)

        if not isinstance(schema, dict):
            return None

        item_ref = self._collection_item_ref(schema)
        if item_ref:
            item_schema = self._lookup(self.schemas, item_ref)
            if not isinstance(item_schema, dict) or not isinstance(item_schema.get("properties"), dict):
                logger.debug(f"Collection item schema not resolvable: {item_ref}")
                return None
            return ResolvedSchema(
                properties=self._flatten(item_schema["properties"]),
                collection=True,
                item_ref=item_ref,
            )

        if isinstance(schema.get("properties"), dict):
            return ResolvedSchema(properties=self._flatten(schema["properties"]))

        return None

    def _collection_item_ref(self, schema: Dict[str, Any]) -> Optional[str]:
        """Find the allOf branch whose properties.value.items holds a $ref"""
        for part in schema.get("allOf") or []:
            try:
                ref = part["properties"]["value"]["items"]["$ref"]
            except (KeyError, TypeError):
                continue
            if ref:
                return ref
        return None

    @staticmethod
    def _flatten(properties: Dict[str, Any]) -> Dict[str, Tuple[Optional[str], Optional[str]]]:
        flat = {}
        for name, meta in properties.items():
            meta = meta if isinstance(meta, dict) else {}
            flat[name] = (meta.get("type", "string"), meta.get("format"))
        return flat

    @staticmethod
    def _json_schema(response: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        content = response.get("content") or {}
        media = content.get(JSON_CONTENT) or {}
        return media.get("schema")

    def _deref(self, schema: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Follow a single $ref into components.schemas"""
        if isinstance(schema, dict) and "$ref" in schema:
            return self._lookup(self.schemas, schema["$ref"])
        return schema

    @staticmethod
    def _lookup(registry: Dict[str, Any], ref: str) -> Optional[Dict[str, Any]]:
        """Resolve a reference by its last path segment (e.g. #/components/schemas/Name)"""
        if not isinstance(ref, str):
            return None
        key = ref.rstrip("/").rsplit("/", 1)[-1]
        found = registry.get(key)
        return found if isinstance(found, dict) else None
