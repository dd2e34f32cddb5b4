"""
Exporters - shape expanded rows into a flat table and write it to disk.
"""

from .base import TableExporter
from .csv_exporter import CsvExporter
from .excel_exporter import ExcelExporter
from .json_exporter import JsonExporter
from .shaper import headers, normalize, shape

EXPORTERS = {
    "csv": CsvExporter,
    "xlsx": ExcelExporter,
    "json": JsonExporter,
}

__all__ = [
    "TableExporter",
    "CsvExporter",
    "ExcelExporter",
    "JsonExporter",
    "EXPORTERS",
    "headers",
    "normalize",
    "shape",
]
