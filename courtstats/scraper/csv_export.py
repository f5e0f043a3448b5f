"""CSV export of per-target record sets."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Mapping, Sequence

from .models import PlayerRecord
from .utils import log_line


class CsvExporter:
    """Write records with a fixed field -> column title header."""

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def export(
        self,
        records: Sequence[PlayerRecord],
        columns: Mapping[str, str],
        path: Path,
    ) -> Path:
        path = Path(path)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            log_line(f"Created folder: {path.parent}")

        fields = list(columns.keys())
        with path.open("w", encoding=self.encoding, newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow([columns[name] for name in fields])
            for record in records:
                writer.writerow([record.get(name, "") for name in fields])

        log_line(f"Data exported to: {path} ({len(records)} records)")
        return path


__all__ = ["CsvExporter"]
