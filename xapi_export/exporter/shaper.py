"""Export Shaper - header derivation and row normalization for file writers."""
import json
from typing import Any, Dict, List

from xapi_export.definitions.models import ColumnSchema, ColumnType
from xapi_export.transformer.expander import DATETIME_SUFFIXES, DURATION_SUFFIXES

DERIVED_SUFFIXES = {
    ColumnType.DATETIME: DATETIME_SUFFIXES,
    ColumnType.DURATION: DURATION_SUFFIXES,
}


def headers(schema: ColumnSchema) -> List[str]:
    """Base field names, each followed by its derived column names, in schema order."""
    result = []
    for field_name, column_type in schema.columns.items():
        result.append(field_name)
        for suffix in DERIVED_SUFFIXES.get(column_type, ()):
            result.append(f"{field_name}{suffix}")
    return result


def normalize_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return value


def normalize(rows: List[Dict[str, Any]], header_list: List[str]) -> List[Dict[str, Any]]:
    """
    Flatten rows to exactly the given headers, in header order.

    Missing values become empty strings and nested values their JSON text.
    """
    return [
        {header: normalize_value(row.get(header)) for header in header_list}
        for row in rows
    ]


def shape(rows: List[Dict[str, Any]], schema: ColumnSchema):
    """Return (headers, normalized rows) for a file writer."""
    header_list = headers(schema)
    return header_list, normalize(rows, header_list)
