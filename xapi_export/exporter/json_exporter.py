"""JSON exporter."""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .base import TableExporter


class JsonExporter(TableExporter):
    """Export a table to JSON."""

    extension = "json"

    def __init__(self, endpoint: Optional[str] = None):
        self.endpoint = endpoint

    def export(
        self,
        output_file: Path,
        headers: List[str],
        rows: List[Dict[str, Any]],
    ) -> Path:
        """Export to JSON file."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "metadata": {
                "created_at": datetime.now().isoformat(),
                "endpoint": self.endpoint,
                "total_rows": len(rows),
            },
            "headers": headers,
            "rows": rows,
        }

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        return output_file
