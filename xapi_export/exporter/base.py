"""Abstract base class for table exporters."""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List


class TableExporter(ABC):
    """Writes a header list and normalized rows to a file."""

    extension = ""

    @abstractmethod
    def export(
        self,
        output_file: Path,
        headers: List[str],
        rows: List[Dict[str, Any]],
    ) -> Path:
        """
        Write the table.

        Args:
            output_file: Destination path (parent directories are created)
            headers: Column names, in output order
            rows: Normalized rows keyed by header

        Returns:
            Path: The written file
        """
        pass
