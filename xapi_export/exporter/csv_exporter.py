"""CSV exporter."""
import csv
from pathlib import Path
from typing import Any, Dict, List

from .base import TableExporter


class CsvExporter(TableExporter):
    """Export a table to CSV (UTF-8 with BOM so spreadsheet tools detect the encoding)."""

    extension = "csv"

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def export(
        self,
        output_file: Path,
        headers: List[str],
        rows: List[Dict[str, Any]],
    ) -> Path:
        """Export to CSV file."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.writer(f, delimiter=self.delimiter, quotechar='"')
            writer.writerow(headers)
            for row in rows:
                writer.writerow([row.get(header, "") for header in headers])

        return output_file
