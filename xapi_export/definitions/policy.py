"""
Endpoint compilation policy as predicate tables.

Each table maps a pattern (or name) to a verdict so the compilation rules can be
tested without touching HTTP or parsing code.
"""

import re
from typing import List, Optional, Pattern, Tuple

from .models import ColumnType

# (pattern, reason), evaluated in order; first match disables the endpoint
EXCLUSION_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"/My[A-Z]"), "disabled: My-prefixed endpoint (e.g. MyUser, MyToken)"),
    (re.compile(r"/Pbx\.Download"), "disabled: Download endpoint"),
    (re.compile(r"/Pbx\.[^(]+\(([^,]+)\)"), "disabled: Single-param function call"),
    (re.compile(r"\(\{.*?}"), "disabled: Single-resource endpoint using path({Id})"),
]

ADMITTED_QUERY_PARAMS = ("$filter", "$count", "$top", "$skip")

# Tags that accept $count/$top/$skip (and $filter) without declaring them
FORCE_ODATA_TAGS = ("ActiveCalls", "CallHistoryView")
FORCED_PARAMS = ("$count", "$top", "$skip")

DATE_FILTER_FIELDS = ("Timestamp", "StartTime", "SegmentStartTime", "TimeGenerated", "CallTime")
DATE_FILTER_TEMPLATE = "date({field}) ge {{from}} and date({field}) le {{to}}"

ZULU_SEGMENTS = (
    "startDate", "endDate", "periodFrom", "periodTo", "startDt", "endDt", "chartDate", "Timestamp",
)
ZULU_PATTERN = re.compile(r"\b(" + "|".join(ZULU_SEGMENTS) + r")\b", re.IGNORECASE)


def exclusion_reason(path: str) -> Optional[str]:
    """Return the reason an operation path is excluded, or None if it is eligible."""
    for pattern, reason in EXCLUSION_RULES:
        if pattern.search(path):
            return reason
    return None


def admitted_params(tag: str, declared: List[str]) -> List[str]:
    """OData query parameters carried forward for an operation"""
    admitted = [name for name in declared if name in ADMITTED_QUERY_PARAMS]
    if tag in FORCE_ODATA_TAGS:
        for name in FORCED_PARAMS:
            if name not in admitted:
                admitted.append(name)
    return admitted


def has_filter_support(tag: str, admitted: List[str]) -> bool:
    return "$filter" in admitted or tag in FORCE_ODATA_TAGS


def date_filter(columns) -> Optional[str]:
    """Build the $filter expression for the first timestamp-like column present"""
    for field_name in DATE_FILTER_FIELDS:
        if field_name in columns:
            return DATE_FILTER_TEMPLATE.format(field=field_name)
    return None


def supports_zulu(path: str) -> bool:
    return ZULU_PATTERN.search(path) is not None


def convert_type(schema_type: Optional[str], schema_format: Optional[str]) -> ColumnType:
    """Map OpenAPI type + format onto a column type"""
    if schema_format == "date-time":
        return ColumnType.DATETIME
    if schema_type == "boolean":
        return ColumnType.BOOLEAN
    if schema_type == "integer":
        return ColumnType.INTEGER
    if schema_type == "number":
        return ColumnType.FLOAT
    if schema_type == "string" and schema_format == "duration":
        return ColumnType.DURATION
    return ColumnType.STRING
