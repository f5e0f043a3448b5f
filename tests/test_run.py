from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterator, List

import pytest

from courtstats.scraper import config, run
from courtstats.scraper.csv_export import CsvExporter
from courtstats.scraper.error_codes import ErrorCode, SessionLostError
from courtstats.scraper.layouts import EUROLEAGUE_LAYOUT, LayoutVariant
from courtstats.scraper.models import ScrapeTarget
from courtstats.scraper.pagination import (
    STOP_ALL_DUPLICATES,
    STOP_NO_MORE_PAGES,
    STOP_NO_NEW_RECORDS,
    STOP_PAGE_CAP,
)
from courtstats.scraper.replay_harness import HtmlReplayPage
from courtstats.scraper.session import SessionController
from courtstats.scraper.targets import render_url
from courtstats.scraper.telemetry import RunTelemetry
from tests.test_extractor import _next_control, _numbered_pagination, _player_row, _stats_page


def _configure_temp_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    monkeypatch.setattr(config, "RESULTS_DIR", tmp_path / "results")
    monkeypatch.setattr(config, "LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(config, "LOG_FILE", tmp_path / "logs" / "latest.log")
    monkeypatch.setattr(config, "RUNS_DIR", tmp_path / "runs")
    monkeypatch.setattr(config, "EXPORTS_DIR", tmp_path / "exports")


def _target(
    target_id: str,
    tmp_path: Path,
    *,
    page_cap: int = 5,
    layout: LayoutVariant = EUROLEAGUE_LAYOUT,
) -> ScrapeTarget:
    return ScrapeTarget(
        target_id=target_id,
        url=f"https://stats.example.com/{target_id}",
        layout=layout,
        output_path=tmp_path / "results" / f"{target_id}.csv",
        label=target_id.replace("_", " ").title(),
        wait_seconds=0,
        page_cap=page_cap,
        post_click_wait_ms=0,
    )


def _names(records) -> List[str]:
    return [record["player_name"] for record in records]


MIKE = _player_row("Mike James", "Monaco", "28.0")
SASHA = _player_row("Sasha Vezenkov", "Olympiacos", "31.2")
NIKOLA = _player_row("Nikola Mirotic", "Milano", "25.4")
KENDRICK = _player_row("Kendrick Nunn", "Panathinaikos", "24.1")


def test_single_page_target_yields_three_ranked_records(tmp_path: Path) -> None:
    header_row = "<tr><td>Rank</td><td>Player</td><td>Team</td></tr>"
    target = _target("week_01", tmp_path)
    page = HtmlReplayPage({target.url: [_stats_page([header_row, MIKE, SASHA, NIKOLA])]})

    outcome = run.scrape_target(page, target)

    assert _names(outcome.records) == ["Mike James", "Sasha Vezenkov", "Nikola Mirotic"]
    assert [record["rank"] for record in outcome.records] == ["1", "2", "3"]
    assert outcome.pages_visited == 1
    assert outcome.stop_reason == STOP_NO_MORE_PAGES
    assert outcome.has_more is False


def test_repeated_second_page_stops_on_all_duplicates(tmp_path: Path) -> None:
    target = _target("week_02", tmp_path)
    pages = [
        _stats_page([MIKE, SASHA], _next_control()),
        _stats_page([SASHA, MIKE], _next_control()),
        _stats_page([NIKOLA]),
    ]
    page = HtmlReplayPage({target.url: pages})

    outcome = run.scrape_target(page, target)

    assert _names(outcome.records) == ["Mike James", "Sasha Vezenkov"]
    assert outcome.pages_visited == 2
    assert outcome.stop_reason == STOP_ALL_DUPLICATES
    assert page.current_page == 2


def test_records_keep_first_seen_order_across_pages(tmp_path: Path) -> None:
    target = _target("week_03", tmp_path)
    pages = [
        _stats_page([MIKE, SASHA], _numbered_pagination(current=1, last=2)),
        _stats_page([NIKOLA, MIKE], _numbered_pagination(current=2, last=2)),
    ]
    page = HtmlReplayPage({target.url: pages})

    outcome = run.scrape_target(page, target)

    assert _names(outcome.records) == ["Mike James", "Sasha Vezenkov", "Nikola Mirotic"]
    assert outcome.pages_visited == 2
    assert outcome.stop_reason == STOP_NO_MORE_PAGES
    assert [ref.text for ref in page.clicks] == ["2"]


def test_pages_visited_never_exceed_cap(tmp_path: Path) -> None:
    target = _target("season", tmp_path, page_cap=3)
    pages = [
        _stats_page([_player_row(f"Guard {index}", f"Club {index}")], _next_control())
        for index in range(1, 7)
    ]
    page = HtmlReplayPage({target.url: pages})

    outcome = run.scrape_target(page, target)

    assert outcome.pages_visited == 3
    assert outcome.stop_reason == STOP_PAGE_CAP
    assert outcome.has_more is True
    assert len(page.clicks) == 2
    assert len(outcome.records) == 3


def test_empty_table_stops_without_error(tmp_path: Path) -> None:
    target = _target("week_04", tmp_path)
    page = HtmlReplayPage({target.url: [_stats_page([], _next_control())]})

    outcome = run.scrape_target(page, target)

    assert outcome.records == []
    assert outcome.stop_reason == STOP_NO_NEW_RECORDS
    assert page.clicks == []


def _session_for(page) -> SessionController:
    return SessionController(lambda: page, label="replay")


def test_unresolved_table_fails_target_and_later_targets_still_run(tmp_path: Path) -> None:
    broken = _target("week_05", tmp_path)
    healthy = _target("week_06", tmp_path)
    page = HtmlReplayPage(
        {
            broken.url: ["<html><body><p>Maintenance</p></body></html>"],
            healthy.url: [_stats_page([MIKE, SASHA])],
        }
    )

    summary = run.run_targets([broken, healthy], _session_for(page), CsvExporter())

    assert summary.total == 2
    assert summary.succeeded == 1
    assert summary.failed == 1
    assert summary.exit_code == 1
    assert summary.results[0].status == "failed"
    assert summary.results[0].error_code == ErrorCode.SITE_STRUCTURE
    assert summary.results[0].records == []
    assert not broken.output_path.exists()
    assert healthy.output_path.exists()


def test_exported_csv_uses_layout_titles_in_field_order(tmp_path: Path) -> None:
    target = _target("week_07", tmp_path)
    page = HtmlReplayPage({target.url: [_stats_page([MIKE, SASHA])]})

    summary = run.run_targets([target], _session_for(page), CsvExporter())

    assert summary.exit_code == 0
    assert summary.results[0].output_path == target.output_path
    with target.output_path.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == list(EUROLEAGUE_LAYOUT.column_titles.values())
    assert rows[1][:5] == ["1", "Mike James", "Monaco", "G", "28.0"]
    assert rows[2][:3] == ["2", "Sasha Vezenkov", "Olympiacos"]


def test_empty_target_counts_as_ok_without_csv(tmp_path: Path) -> None:
    target = _target("week_08", tmp_path)
    page = HtmlReplayPage({target.url: [_stats_page([])]})

    summary = run.run_targets([target], _session_for(page), CsvExporter())

    assert summary.results[0].status == "empty"
    assert summary.exit_code == 0
    assert not target.output_path.exists()


def test_navigation_failure_is_isolated(tmp_path: Path) -> None:
    missing = _target("week_09", tmp_path)
    present = _target("week_10", tmp_path)
    page = HtmlReplayPage({present.url: [_stats_page([MIKE])]})

    summary = run.run_targets([missing, present], _session_for(page), CsvExporter())

    assert [result.status for result in summary.results] == ["failed", "succeeded"]
    assert summary.results[0].error_code == ErrorCode.NAVIGATION_ERROR
    assert summary.fail_reasons == {ErrorCode.NAVIGATION_ERROR: 1}


def test_inter_target_delay_only_between_successful_targets(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config, "INTER_TARGET_DELAY_MS", 250)
    first = _target("week_11", tmp_path)
    second = _target("week_12", tmp_path)
    third = _target("week_13", tmp_path)
    page = HtmlReplayPage(
        {
            first.url: [_stats_page([MIKE])],
            second.url: [_stats_page([SASHA])],
            third.url: [_stats_page([NIKOLA])],
        }
    )

    run.run_targets([first, second, third], _session_for(page), CsvExporter())

    assert page.waited_ms == 500


class _LostSessionPage(HtmlReplayPage):
    def navigate(self, url: str, timeout_ms: int) -> None:
        raise SessionLostError("Target closed")


def test_session_loss_reinitialises_before_next_target(tmp_path: Path) -> None:
    first = _target("week_14", tmp_path)
    second = _target("week_15", tmp_path)
    lost = _LostSessionPage({})
    healthy = HtmlReplayPage({second.url: [_stats_page([KENDRICK])]})
    handles: Iterator = iter([lost, healthy])
    session = SessionController(lambda: next(handles), label="replay")

    summary = run.run_targets([first, second], session, CsvExporter())

    assert summary.results[0].error_code == ErrorCode.SESSION_LOST
    assert summary.results[1].status == "succeeded"
    assert session.restarts == 1
    assert lost.is_alive() is False
    assert healthy.visited == [second.url]


def test_failed_reconnect_is_logged_and_next_target_retries(tmp_path: Path) -> None:
    first = _target("week_16", tmp_path)
    second = _target("week_17", tmp_path)
    lost = _LostSessionPage({})
    healthy = HtmlReplayPage({second.url: [_stats_page([KENDRICK])]})
    attempts = {"count": 0}

    def factory():
        attempts["count"] += 1
        if attempts["count"] == 1:
            return lost
        if attempts["count"] == 2:
            raise RuntimeError("browser failed to launch")
        return healthy

    summary = run.run_targets([first, second], SessionController(factory), CsvExporter())

    assert [result.status for result in summary.results] == ["failed", "succeeded"]
    assert attempts["count"] == 3


def test_run_targets_records_telemetry(tmp_path: Path, monkeypatch) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    target = _target("week_18", tmp_path)
    page = HtmlReplayPage({target.url: [_stats_page([MIKE])]})
    telemetry = RunTelemetry("euroleague_weeks")

    summary = run.run_targets([target], _session_for(page), CsvExporter(), telemetry=telemetry)
    path = telemetry.finalize(summary)

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    assert payload["totals"]["succeeded"] == 1
    assert payload["entries"][0]["target_id"] == "week_18"
    assert payload["entries"][0]["records"] == 1
    assert payload["entries"][0]["stop_reason"] == STOP_NO_MORE_PAGES


def _write_week_fixtures(fixtures_dir: Path) -> None:
    fixtures_dir.mkdir(parents=True, exist_ok=True)
    (fixtures_dir / "week_01_page_1.html").write_text(
        _stats_page([MIKE, SASHA], _next_control()), encoding="utf-8"
    )
    (fixtures_dir / "week_01_page_2.html").write_text(
        _stats_page([NIKOLA], _next_control(disabled=True)), encoding="utf-8"
    )
    (fixtures_dir / "week_02.html").write_text(_stats_page([KENDRICK]), encoding="utf-8")


def test_cli_replay_run_exports_each_week(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    fixtures_dir = tmp_path / "fixtures"
    _write_week_fixtures(fixtures_dir)

    exit_code = run.main(["--weeks", "1-2", "--season", "2024-2025", "--replay-dir", str(fixtures_dir)])

    assert exit_code == 0
    week_one = tmp_path / "results" / "2024-2025" / "week_01.csv"
    week_two = tmp_path / "results" / "2024-2025" / "week_02.csv"
    assert week_one.exists() and week_two.exists()
    with week_one.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert [row[1] for row in rows[1:]] == ["Mike James", "Sasha Vezenkov", "Nikola Mirotic"]
    assert list((tmp_path / "runs").glob("run_*.json"))


def test_cli_exit_status_reflects_failed_target(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    fixtures_dir = tmp_path / "fixtures"
    _write_week_fixtures(fixtures_dir)

    exit_code = run.main(["--weeks", "1,2,3", "--replay-dir", str(fixtures_dir)])

    assert exit_code == 1


@pytest.mark.parametrize(
    "argv",
    [
        ["--weeks", "5-1"],
        ["--weeks", "0"],
        ["--variant", "nba"],
    ],
)
def test_cli_configuration_errors_exit_without_running(monkeypatch, tmp_path: Path, argv) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    launched = []
    monkeypatch.setattr(run, "page_factory_for_backend", lambda *a, **k: launched.append(a))

    assert run.main(argv) == 2
    assert launched == []


def test_cli_session_construction_failure_is_fatal(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)

    def _broken_factory(backend, *, headless):  # noqa: ANN001
        def _launch():
            raise RuntimeError("Executable doesn't exist")

        return _launch

    monkeypatch.setattr(run, "page_factory_for_backend", _broken_factory)

    assert run.main(["--weeks", "1"]) == 2


def test_cli_excel_report(monkeypatch, tmp_path: Path) -> None:
    _configure_temp_paths(monkeypatch, tmp_path)
    fixtures_dir = tmp_path / "fixtures"
    _write_week_fixtures(fixtures_dir)

    exit_code = run.main(["--weeks", "2", "--replay-dir", str(fixtures_dir), "--excel-report"])

    assert exit_code == 0
    assert list((tmp_path / "exports").glob("targets_*.xlsx"))


def test_week_url_is_rendered_from_template() -> None:
    url = render_url(config.EUROLEAGUE_WEEK_URL_TEMPLATE, 7)

    assert "weeks[]=7" in url
    assert "{WEEK}" not in url
