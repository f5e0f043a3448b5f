"""Per-run telemetry: one JSON document per CLI run under ``runs/``."""

from __future__ import annotations

import json
import os
import time
import uuid
from collections import Counter
from typing import Any, Dict, List, Optional

from . import config
from .models import RunSummary, TargetResult


def _run_stamp() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


class RunTelemetry:
    """Accumulate one entry per target and write them out when the run ends."""

    def __init__(self, variant: str) -> None:
        self.run_id = f"{_run_stamp()}_{uuid.uuid4().hex[:8]}"
        self.variant = variant
        self.started_at = time.time()
        self.entries: List[Dict[str, Any]] = []
        self.status_counts: Counter = Counter()

    def add(self, status: str, reason: Optional[str], meta: Dict[str, Any]) -> None:
        self.entries.append({"status": status, "reason": reason, **meta})
        self.status_counts[status] += 1

    def add_result(self, result: TargetResult) -> None:
        target = result.target
        self.add(
            result.status,
            result.error_code or result.stop_reason,
            {
                "target_id": target.target_id,
                "label": target.display_name,
                "url": target.url,
                "layout": target.layout.name,
                "records": len(result.records),
                "pages_visited": result.pages_visited,
                "stop_reason": result.stop_reason,
                "error_code": result.error_code,
                "error_message": result.error_message,
                "elapsed_seconds": round(result.elapsed_seconds, 3),
                "output_path": str(result.output_path) if result.output_path else None,
            },
        )

    def finalize(self, summary: Optional[RunSummary] = None, extra: Optional[Dict[str, Any]] = None) -> str:
        """Write ``runs/run_<id>.json`` and return its path."""

        totals: Dict[str, Any] = {}
        if summary is not None:
            totals = {
                "total": summary.total,
                "succeeded": summary.succeeded,
                "failed": summary.failed,
                "records": sum(len(result.records) for result in summary.results),
                "fail_reasons": summary.fail_reasons,
            }
        payload = {
            "run_id": self.run_id,
            "variant": self.variant,
            "started_at": self.started_at,
            "ended_at": time.time(),
            "summary": {f"count_{status}": count for status, count in self.status_counts.items()},
            "totals": totals,
            "entries": self.entries,
            **(extra or {}),
        }

        runs_dir = str(config.RUNS_DIR)
        os.makedirs(runs_dir, exist_ok=True)
        path = os.path.join(runs_dir, f"run_{self.run_id}.json")
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
        return path


def prune_old_exports() -> None:
    """Keep only the newest ``MAX_EXPORTS`` workbooks in ``exports/``."""

    exports_dir = str(config.EXPORTS_DIR)
    if not os.path.isdir(exports_dir):
        return
    workbooks = sorted(name for name in os.listdir(exports_dir) if name.endswith(".xlsx"))
    for name in workbooks[: max(0, len(workbooks) - config.MAX_EXPORTS)]:
        try:
            os.remove(os.path.join(exports_dir, name))
        except OSError:
            continue


__all__ = [
    "RunTelemetry",
    "prune_old_exports",
]
