"""
Dataset Expander - Derives reporting columns from datetime and duration fields.

datetime fields gain ``_date``, ``_time``, ``_dayOfWeekPrimary`` and
``_dayOfWeekSecondary``; duration fields gain ``_seconds`` and ``_hhmmss``.
Values that cannot be parsed are left untouched and gain no columns.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from babel.dates import format_date

from xapi_export.definitions.models import ColumnSchema, ColumnType

logger = logging.getLogger(__name__)

DATETIME_SUFFIXES = ("_date", "_time", "_dayOfWeekPrimary", "_dayOfWeekSecondary")
DURATION_SUFFIXES = ("_seconds", "_hhmmss")

SECONDS_PER_YEAR = 31536000
SECONDS_PER_MONTH = 2592000
SECONDS_PER_WEEK = 604800
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60

# The T section is mandatory: pure calendar durations such as "P3D" do not match
DURATION_PATTERN = re.compile(
    r"P(?:(\d+)Y)?(?:(\d+)M)?(?:(\d+)W)?(?:(\d+)D)?"
    r"(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)"
)

# fromisoformat before 3.11 accepts exactly three or six fractional digits
_FRACTION_PATTERN = re.compile(r"(?<=:\d\d)\.(\d+)")


def _six_digit_fraction(match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


@dataclass(frozen=True)
class DateTimeParts:
    date: str
    time: str
    day_of_week_primary: str
    day_of_week_secondary: str


@dataclass(frozen=True)
class DurationParts:
    seconds: int
    hhmmss: str
    readable: str


def parse_iso_datetime(value: Any, primary_locale: str = "en", secondary_locale: str = "hr") -> Optional[DateTimeParts]:
    """Split an ISO-8601 timestamp into date, time and localized weekday names."""
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_PATTERN.sub(_six_digit_fraction, text)

    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Not an ISO timestamp: {value!r}")
        return None

    day = moment.date()
    return DateTimeParts(
        date=moment.strftime("%Y-%m-%d"),
        time=moment.strftime("%H:%M:%S"),
        day_of_week_primary=format_date(day, "EEEE", locale=primary_locale),
        day_of_week_secondary=format_date(day, "EEEE", locale=secondary_locale),
    )


def parse_iso_duration(value: Any) -> Optional[DurationParts]:
    """
    Convert an ISO-8601 duration into total seconds

    Years, months and weeks use fixed lengths (365 days, 30 days, 7 days).
    Fractional seconds are rounded half up.
    """
    if not value or not isinstance(value, str) or not value.startswith("P"):
        return None

    match = DURATION_PATTERN.search(value)
    if match is None:
        return None

    years, months, weeks, days, hours, minutes = (int(g) if g else 0 for g in match.groups()[:6])
    raw_seconds = float(match.group(7)) if match.group(7) else 0.0

    total = (
        years * SECONDS_PER_YEAR
        + months * SECONDS_PER_MONTH
        + weeks * SECONDS_PER_WEEK
        + days * SECONDS_PER_DAY
        + hours * SECONDS_PER_HOUR
        + minutes * SECONDS_PER_MINUTE
        + int(math.floor(raw_seconds + 0.5))
    )

    hh, remainder = divmod(total, SECONDS_PER_HOUR)
    mm, ss = divmod(remainder, SECONDS_PER_MINUTE)

    readable = []
    for amount, unit in ((years, "Y"), (months, "M"), (weeks, "W"), (days, "D")):
        if amount:
            readable.append(f"{amount}{unit}")
    if hours or minutes or raw_seconds:
        readable.append(f"T{hours:02d}:{minutes:02d}:{ss:02d}")

    return DurationParts(
        seconds=total,
        hhmmss=f"{hh:02d}:{mm:02d}:{ss:02d}",
        readable="".join(readable),
    )


class DatasetExpander:
    """Adds derived columns to rows according to an endpoint's column schema"""

    def __init__(self, primary_locale: str = "en", secondary_locale: str = "hr"):
        self.primary_locale = primary_locale
        self.secondary_locale = secondary_locale

    def expand(self, rows: List[Dict[str, Any]], schema: ColumnSchema) -> List[Dict[str, Any]]:
        """Return new rows with derived columns; input rows are not modified"""
        return [self.expand_row(row, schema) for row in rows]

    def expand_row(self, row: Dict[str, Any], schema: ColumnSchema) -> Dict[str, Any]:
        if not isinstance(row, dict):
            return row

        expanded = dict(row)
        for field_name, column_type in schema.columns.items():
            if expanded.get(field_name) is None:
                continue

            if column_type == ColumnType.DATETIME:
                parts = parse_iso_datetime(expanded[field_name], self.primary_locale, self.secondary_locale)
                if parts:
                    expanded[f"{field_name}_date"] = parts.date
                    expanded[f"{field_name}_time"] = parts.time
                    expanded[f"{field_name}_dayOfWeekPrimary"] = parts.day_of_week_primary
                    expanded[f"{field_name}_dayOfWeekSecondary"] = parts.day_of_week_secondary

            elif column_type == ColumnType.DURATION:
                parts = parse_iso_duration(expanded[field_name])
                if parts:
                    expanded[f"{field_name}_seconds"] = parts.seconds
                    expanded[f"{field_name}_hhmmss"] = parts.hhmmss

        return expanded
