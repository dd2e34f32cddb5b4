"""Excel (XLSX) exporter."""
from pathlib import Path
from typing import Any, Dict, List

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from .base import TableExporter

HEADER_FILL = PatternFill(fill_type="solid", start_color="F2F2F2", end_color="F2F2F2")
MAX_COLUMN_WIDTH = 60


class ExcelExporter(TableExporter):
    """Export a table to a single-sheet workbook."""

    extension = "xlsx"

    def __init__(self, sheet_title: str = "Export"):
        self.sheet_title = sheet_title

    def export(
        self,
        output_file: Path,
        headers: List[str],
        rows: List[Dict[str, Any]],
    ) -> Path:
        """Export to XLSX file with a styled header row."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        wb = Workbook()
        ws = wb.active
        ws.title = self.sheet_title[:31]

        ws.append(headers)
        for cell in ws[1]:
            cell.font = Font(bold=True)
            cell.fill = HEADER_FILL

        widths = [len(str(header)) for header in headers]
        for row in rows:
            values = [row.get(header, "") for header in headers]
            ws.append(values)
            for idx, value in enumerate(values):
                widths[idx] = max(widths[idx], len(str(value)))

        # Approximate auto-size
        for idx, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = min(width + 2, MAX_COLUMN_WIDTH)

        wb.save(output_file)
        return output_file
