"""Endpoint definition models: descriptors, column schemas and the definition set."""
from dataclasses import dataclass, field as dataclass_field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from .template import Template

OVERRIDE_SENTINEL = "changethis"


class ColumnType(str, Enum):
    """Semantic type of an exported column"""
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DURATION = "duration"


@dataclass
class EndpointDescriptor:
    """Compiled invocation template for one remote read operation"""
    name: str
    url_template: str
    parameters: Dict[str, str] = dataclass_field(default_factory=dict)
    supports_zulu: bool = False
    operation_id: Optional[str] = None

    def url(self) -> Template:
        """Parsed URL template (raises UnresolvedPlaceholderError)"""
        return Template.parse(self.url_template)

    def parameter_templates(self) -> Dict[str, Template]:
        """Parsed parameter value templates, in declaration order"""
        return {key: Template.parse(value) for key, value in self.parameters.items()}

    def raw_templates(self):
        """URL template followed by every parameter value"""
        return [self.url_template, *self.parameters.values()]

    @property
    def binding_keys(self) -> FrozenSet[str]:
        keys = set(self.url().binding_keys)
        for template in self.parameter_templates().values():
            keys |= template.binding_keys
        return frozenset(keys)

    @property
    def visible_inputs(self) -> FrozenSet[str]:
        """Request inputs a caller has to supply: from / to / queuedn"""
        keys = self.binding_keys
        inputs = set()
        if keys & {"from", "fromZulu"}:
            inputs.add("from")
        if keys & {"to", "toZulu"}:
            inputs.add("to")
        if "queuedn" in keys:
            inputs.add("queuedn")
        return frozenset(inputs)

    @property
    def requires_override(self) -> bool:
        return any(OVERRIDE_SENTINEL in text for text in self.raw_templates())

    @property
    def audit_key(self) -> str:
        """Key under which the endpoint is listed once disabled"""
        return f"{self.name}/{self.operation_id}" if self.operation_id else self.name

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "url": self.url_template,
            "params": dict(self.parameters),
            "zulu": bool(self.supports_zulu),
        }
        if self.operation_id:
            data["operationId"] = self.operation_id
        return data

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "EndpointDescriptor":
        return cls(
            name=name,
            url_template=data["url"],
            parameters=dict(data.get("params", {})),
            supports_zulu=data.get("zulu") is True,
            operation_id=data.get("operationId"),
        )


@dataclass
class ColumnSchema:
    """Ordered field name -> semantic type map for one endpoint"""
    name: str
    columns: Dict[str, ColumnType] = dataclass_field(default_factory=dict)

    def to_dict(self) -> Dict[str, str]:
        return {name: kind.value for name, kind in self.columns.items()}

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, str]) -> "ColumnSchema":
        return cls(name=name, columns={k: ColumnType(v) for k, v in data.items()})


@dataclass
class DefinitionSet:
    """All compiled descriptors and schemas, plus the audit list of disabled endpoints"""
    descriptors: Dict[str, EndpointDescriptor] = dataclass_field(default_factory=dict)
    schemas: Dict[str, ColumnSchema] = dataclass_field(default_factory=dict)
    disabled: Dict[str, str] = dataclass_field(default_factory=dict)
    generated_at: Optional[datetime] = None

    def get_descriptor(self, name: str) -> Optional[EndpointDescriptor]:
        return self.descriptors.get(name)

    def get_schema(self, name: str) -> Optional[ColumnSchema]:
        return self.schemas.get(name)

    def endpoint_names(self):
        return sorted(self.descriptors.keys())

    def disable(self, name: str, reason: str) -> None:
        """Move an endpoint to the disabled list, dropping its descriptor and schema"""
        descriptor = self.descriptors.pop(name, None)
        self.schemas.pop(name, None)
        key = descriptor.audit_key if descriptor else name
        self.disabled[key] = reason

    def sort(self) -> None:
        self.descriptors = dict(sorted(self.descriptors.items()))
        self.schemas = dict(sorted(self.schemas.items()))
        self.disabled = dict(sorted(self.disabled.items()))

    def age_seconds(self, now: Optional[datetime] = None) -> Optional[float]:
        if self.generated_at is None:
            return None
        now = now or datetime.now(timezone.utc)
        return (now - self.generated_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "endpointConfigs": {k: v.to_dict() for k, v in self.descriptors.items()},
            "endpointColumns": {k: v.to_dict() for k, v in self.schemas.items()},
            "disabled": dict(self.disabled),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DefinitionSet":
        generated_at = data.get("generated_at")
        return cls(
            descriptors={
                name: EndpointDescriptor.from_dict(name, item)
                for name, item in data.get("endpointConfigs", {}).items()
            },
            schemas={
                name: ColumnSchema.from_dict(name, item)
                for name, item in data.get("endpointColumns", {}).items()
            },
            disabled=dict(data.get("disabled", {})),
            generated_at=datetime.fromisoformat(generated_at) if generated_at else None,
        )
