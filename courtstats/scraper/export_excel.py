"""Excel report of the latest run's telemetry."""

from __future__ import annotations

import json
import os
from typing import Optional

import pandas as pd

from . import config
from .telemetry import prune_old_exports

OK_STATUSES = ("succeeded", "empty")


def _latest_run_json_path() -> Optional[str]:
    """Return the newest ``runs/run_*.json``; names sort chronologically."""

    runs_dir = str(config.RUNS_DIR)
    if not os.path.isdir(runs_dir):
        return None
    runs = sorted(name for name in os.listdir(runs_dir) if name.endswith(".json"))
    return os.path.join(runs_dir, runs[-1]) if runs else None


def _count_by(frame: pd.DataFrame, *columns: str) -> pd.DataFrame:
    if frame.empty or any(column not in frame.columns for column in columns):
        return pd.DataFrame()
    return (
        frame.groupby(list(columns))
        .size()
        .reset_index(name="count")
        .sort_values("count", ascending=False)
    )


def export_latest_run_to_excel(dest_path: Optional[str] = None) -> str:
    """Write the latest run as a workbook and return its path.

    Sheets: ``All`` (one row per target), ``Succeeded`` (including empty
    targets), ``Failed``, ``Summary_Status``, and when present
    ``Summary_Errors`` (failures per error code) and ``Summary_Stop_Reasons``.
    """

    run_path = _latest_run_json_path()
    if not run_path:
        raise FileNotFoundError("No run telemetry available to export")

    with open(run_path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)

    targets = pd.DataFrame(payload.get("entries", []))
    if targets.empty:
        targets = pd.DataFrame([{"info": "No targets in latest run"}])

    if "status" in targets.columns:
        succeeded = targets[targets["status"].isin(OK_STATUSES)].copy()
        failed = targets[targets["status"] == "failed"].copy()
    else:
        succeeded = failed = pd.DataFrame()

    summary_status = _count_by(targets, "status")
    summary_errors = _count_by(failed, "error_code")
    summary_stops = _count_by(succeeded, "stop_reason")

    if not dest_path:
        exports_dir = str(config.EXPORTS_DIR)
        os.makedirs(exports_dir, exist_ok=True)
        dest_path = os.path.join(exports_dir, f"targets_{payload['run_id']}.xlsx")

    with pd.ExcelWriter(dest_path, engine="openpyxl") as writer:
        targets.to_excel(writer, index=False, sheet_name="All")
        succeeded.to_excel(writer, index=False, sheet_name="Succeeded")
        failed.to_excel(writer, index=False, sheet_name="Failed")
        summary_status.to_excel(writer, index=False, sheet_name="Summary_Status")
        if not summary_errors.empty:
            summary_errors.to_excel(writer, index=False, sheet_name="Summary_Errors")
        if not summary_stops.empty:
            summary_stops.to_excel(writer, index=False, sheet_name="Summary_Stop_Reasons")

    prune_old_exports()
    return dest_path


__all__ = ["export_latest_run_to_excel"]
