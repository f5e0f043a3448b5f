import json
from pathlib import Path

import pandas as pd
import pytest

from courtstats.scraper import config, export_excel, telemetry
from courtstats.scraper.layouts import EUROLEAGUE_LAYOUT
from courtstats.scraper.models import RunSummary, ScrapeTarget, TargetResult
from tests.test_run import _configure_temp_paths


def _result(target_id: str, status: str, error_code=None) -> TargetResult:
    target = ScrapeTarget(
        target_id=target_id,
        url=f"https://stats.example.com/{target_id}",
        layout=EUROLEAGUE_LAYOUT,
        output_path=Path(f"{target_id}.csv"),
    )
    return TargetResult(target=target, status=status, error_code=error_code)


def test_finalize_writes_entries_and_totals(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    run_telemetry = telemetry.RunTelemetry("euroleague_weeks")
    results = [
        _result("week_01", "succeeded"),
        _result("week_02", "failed", "navigation_timeout"),
    ]
    for result in results:
        run_telemetry.add_result(result)

    path = run_telemetry.finalize(RunSummary(results=results), extra={"log_path": "x.log"})

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    assert payload["variant"] == "euroleague_weeks"
    assert payload["summary"] == {"count_succeeded": 1, "count_failed": 1}
    assert payload["totals"]["fail_reasons"] == {"navigation_timeout": 1}
    assert payload["entries"][1]["reason"] == "navigation_timeout"
    assert payload["log_path"] == "x.log"


def test_excel_export_sheets(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    run_telemetry = telemetry.RunTelemetry("euroleague_weeks")
    run_telemetry.add_result(_result("week_01", "succeeded"))
    run_telemetry.add_result(_result("week_02", "failed", "site_structure_changed"))
    run_telemetry.finalize()

    workbook = export_excel.export_latest_run_to_excel()

    sheets = pd.read_excel(workbook, sheet_name=None)
    assert set(sheets) == {"All", "Succeeded", "Failed", "Summary_Status", "Summary_Errors"}
    assert list(sheets["Failed"]["target_id"]) == ["week_02"]
    assert Path(workbook).parent == tmp_path / "exports"


def test_excel_export_without_runs(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)

    with pytest.raises(FileNotFoundError):
        export_excel.export_latest_run_to_excel()


def test_prune_old_exports(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    monkeypatch.setattr(config, "MAX_EXPORTS", 2)
    exports = tmp_path / "exports"
    exports.mkdir()
    for index in range(4):
        (exports / f"targets_{index}.xlsx").write_bytes(b"")

    telemetry.prune_old_exports()

    assert sorted(path.name for path in exports.iterdir()) == ["targets_2.xlsx", "targets_3.xlsx"]


def test_excel_export_summarises_stop_reasons(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    run_telemetry = telemetry.RunTelemetry("euroleague_season")
    for target_id, reason in (("season_a", "page_cap"), ("season_b", "page_cap"), ("season_c", "no_more_pages")):
        result = _result(target_id, "succeeded")
        result.stop_reason = reason
        run_telemetry.add_result(result)
    run_telemetry.finalize()

    sheets = pd.read_excel(export_excel.export_latest_run_to_excel(), sheet_name=None)

    assert "Summary_Errors" not in sheets
    stops = sheets["Summary_Stop_Reasons"]
    assert list(stops["stop_reason"]) == ["page_cap", "no_more_pages"]
    assert list(stops["count"]) == [2, 1]
