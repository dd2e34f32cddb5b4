"""
Response envelopes - the classified shape of one API response.

A response body is resolved once into exactly one of:
- CollectionEnvelope: ``{"value": [...]}`` with an optional ``@odata.count``
- ObjectEnvelope: a flat mapping without ``value``
- BooleanEnvelope: ``{"value": true|false}``, nothing to export
"""

import json
import logging
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, List, Optional, Union

from xapi_export.errors import EmptyResult, MalformedResponse

logger = logging.getLogger(__name__)

COUNT_KEY = "@odata.count"


@dataclass
class CollectionEnvelope:
    rows: List[Dict[str, Any]]
    total_count: Optional[int] = None
    notices: List[str] = dataclass_field(default_factory=list)

    @property
    def fetched_count(self) -> int:
        return len(self.rows)

    @property
    def is_partial(self) -> bool:
        return self.total_count is not None and self.total_count != self.fetched_count


@dataclass
class ObjectEnvelope:
    row: Dict[str, Any]
    notices: List[str] = dataclass_field(default_factory=list)


@dataclass
class BooleanEnvelope:
    value: bool
    notices: List[str] = dataclass_field(default_factory=list)


ResponseEnvelope = Union[CollectionEnvelope, ObjectEnvelope, BooleanEnvelope]


def decode_body(text: str) -> Any:
    """
    Decode a JSON response body

    Raises:
        EmptyResult: If the body is empty
        MalformedResponse: If the body is not valid JSON
    """
    if text is None or not text.strip():
        raise EmptyResult("No data returned from API.")
    try:
        return json.loads(text)
    except ValueError as e:
        raise MalformedResponse(f"Response is not valid JSON: {e}")


def classify_body(data: Any, notices: Optional[List[str]] = None) -> ResponseEnvelope:
    """
    Resolve a decoded body into an envelope

    Args:
        data: Decoded JSON body
        notices: Advisory notice list to append to (shared with the request context)

    Raises:
        EmptyResult: Empty body, empty collection or a zero server count
        MalformedResponse: ``value`` is not an array, or the body is not a mapping
    """
    notices = notices if notices is not None else []

    if data is None or data == {} or data == [] or data == "":
        raise EmptyResult("No data returned from API.")

    if not isinstance(data, dict):
        raise MalformedResponse("Unexpected API response structure.")

    if "value" not in data:
        summary = ", ".join(list(data.keys())[:5])
        notices.append(f"Received object-style response with keys: {summary} ...")
        return ObjectEnvelope(row=data, notices=notices)

    value = data["value"]
    if isinstance(value, bool):
        notices.append(
            f"API only returned a boolean value: {'true' if value else 'false'}. "
            "Nothing further to process, show or export."
        )
        return BooleanEnvelope(value=value, notices=notices)

    if not isinstance(value, list):
        raise MalformedResponse(
            f"'value' is not an array but a {type(value).__name__} with value {value!r}. Nothing to export."
        )
    if not value:
        raise EmptyResult("No data returned from API.")

    total = data.get(COUNT_KEY)
    total_count = total if isinstance(total, int) and not isinstance(total, bool) else None
    if total_count == 0:
        raise EmptyResult("No data matching this filter.")

    envelope = CollectionEnvelope(
        rows=value,
        total_count=total_count,
        notices=notices,
    )

    reported = total_count if total_count is not None else envelope.fetched_count
    if envelope.is_partial:
        message = (
            f"The dataset has been partially fetched ( {envelope.fetched_count} / {reported} ). "
            "Consider increasing the 'top' parameter or use 'top'/'skip' for pagination."
        )
        logger.warning(message)
        notices.append(f"Warning: {message}")
    else:
        notices.append(
            f"OK: The complete dataset has been fetched ( {envelope.fetched_count} / {reported} )."
        )

    return envelope
