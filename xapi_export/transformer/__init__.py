from .expander import DatasetExpander, DurationParts, DateTimeParts, parse_iso_datetime, parse_iso_duration

__all__ = [
    "DatasetExpander",
    "DateTimeParts",
    "DurationParts",
    "parse_iso_datetime",
    "parse_iso_duration",
]
