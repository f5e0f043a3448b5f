"""Target orchestrator and command line entrypoint.

Each target is scraped to completion (navigate, extract, dedupe, paginate)
and exported before the next one starts. Failures are isolated per target:
they are classified, counted in the run tally and never abort the rest of
the list.
"""
from __future__ import annotations

import argparse
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from . import config, sources
from .config_validation import validate_runtime_config
from .csv_export import CsvExporter
from .dedup import Deduplicator
from .error_codes import (
    ErrorCode,
    SiteStructureError,
    classify_exception,
    is_session_lost_error,
)
from .export_excel import export_latest_run_to_excel
from .extractor import extract_page, parse_dom, resolve_table
from .logging_utils import _scraper_event
from .models import PaginationState, PlayerRecord, RunSummary, ScrapeTarget, TargetResult
from .page_handle import PageHandle, snapshot_html
from .pagination import (
    STOP_ADVANCE_FAILED,
    STOP_NO_MORE_PAGES,
    advance,
    detect_pagination,
    termination_reason,
)
from .replay_harness import replay_factory
from .session import SessionController, page_factory_for_backend
from .targets import build_targets, parse_weeks
from .telemetry import RunTelemetry
from .utils import ensure_dirs, log_line, log_warning, setup_run_logger

EXIT_OK = 0
EXIT_TARGET_FAILURES = 1
EXIT_NOT_RUN = 2


@dataclass
class ScrapeOutcome:
    records: List[PlayerRecord] = field(default_factory=list)
    pages_visited: int = 0
    stop_reason: Optional[str] = None
    has_more: bool = False


def _short_error_message(exc: BaseException, limit: int = 200) -> str:
    message = str(exc).strip() or exc.__class__.__name__
    first_line = message.splitlines()[0]
    if len(first_line) > limit:
        return first_line[: limit - 3] + "..."
    return first_line


def scrape_target(page: PageHandle, target: ScrapeTarget) -> ScrapeOutcome:
    """Collect every unique record of *target*, page by page, in first-seen order."""

    layout = target.layout
    log_line(f"[TARGET] {target.display_name}: {target.url}")
    page.navigate(target.url, target.nav_timeout_ms)
    page.wait(int(target.wait_seconds * 1000))

    dedup = Deduplicator(name_field=layout.name_field, team_field=layout.team_field)
    state = PaginationState(page_cap=max(1, target.page_cap))
    outcome = ScrapeOutcome()

    while True:
        dom = parse_dom(snapshot_html(page))
        if state.page_index == 1 and resolve_table(dom, layout) is None:
            _scraper_event(
                "error",
                phase="extract",
                target=target.target_id,
                error="table_not_found",
                layout=layout.name,
            )
            raise SiteStructureError(
                f"No stats table matched layout {layout.name!r} at {target.url}"
            )

        extracted = extract_page(dom, layout)
        page_result = dedup.partition(extracted)
        outcome.records.extend(page_result.new)
        outcome.pages_visited = state.page_index
        _scraper_event(
            "page",
            target=target.target_id,
            page=state.page_index,
            extracted=len(extracted),
            new=len(page_result.new),
            duplicates=len(page_result.duplicates),
            total=len(outcome.records),
        )
        log_line(
            f"[PAGE] {target.display_name} page {state.page_index}: "
            f"{len(page_result.new)} new, {len(page_result.duplicates)} duplicate "
            f"(total {len(outcome.records)})"
        )

        reason = termination_reason(state, page_result)
        if reason is not None:
            outcome.stop_reason = reason
            break

        decision = detect_pagination(dom, layout.next_vocabulary)
        state.has_more = decision.has_more
        if not decision.has_more:
            outcome.stop_reason = STOP_NO_MORE_PAGES
            break

        how = advance(page, decision, layout, settle_ms=target.post_click_wait_ms)
        if how is None:
            log_line(f"[PAGE] {target.display_name}: could not advance past page {state.page_index}")
            outcome.stop_reason = STOP_ADVANCE_FAILED
            break
        _scraper_event(
            "page",
            step="advanced",
            target=target.target_id,
            via=how,
            heuristic=decision.heuristic,
            to_page=state.page_index + 1,
        )
        state.page_index += 1

    outcome.has_more = state.has_more
    _scraper_event(
        "done",
        target=target.target_id,
        pages=outcome.pages_visited,
        records=len(outcome.records),
        stop_reason=outcome.stop_reason,
    )
    return outcome


def _record_failure(target: ScrapeTarget, exc: BaseException) -> TargetResult:
    code = classify_exception(exc)
    message = _short_error_message(exc)
    log_line(f"[TARGET][ERROR] {target.display_name} failed ({code}): {message}")
    _scraper_event("error", target=target.target_id, error_code=code, error=message)
    return TargetResult(
        target=target,
        status="failed",
        error_code=code,
        error_message=message,
    )


def run_targets(
    targets: Sequence[ScrapeTarget],
    session: SessionController,
    exporter: CsvExporter,
    telemetry: Optional[RunTelemetry] = None,
) -> RunSummary:
    """Scrape and export each target in order, isolating per-target failures."""

    summary = RunSummary()
    total = len(targets)

    for position, target in enumerate(targets, start=1):
        log_line(f"[RUN] Target {position}/{total}: {target.display_name}")
        started = time.monotonic()
        try:
            page = session.ensure_live()
            outcome = scrape_target(page, target)
            if outcome.records:
                output_path = exporter.export(
                    outcome.records, dict(target.layout.columns), target.output_path
                )
                log_line(
                    f"[RUN] Saved {len(outcome.records)} records for "
                    f"{target.display_name} to {output_path}"
                )
                status = "succeeded"
            else:
                log_warning(f"[RUN][WARN] No records found for {target.display_name}")
                output_path = None
                status = "empty"
            result = TargetResult(
                target=target,
                status=status,
                records=outcome.records,
                pages_visited=outcome.pages_visited,
                stop_reason=outcome.stop_reason,
                output_path=output_path,
            )
        except Exception as exc:  # noqa: BLE001
            result = _record_failure(target, exc)
            if is_session_lost_error(exc):
                log_line("[RUN] Session lost; re-initialising before the next target")
                try:
                    session.reconnect()
                except Exception as reconnect_exc:  # noqa: BLE001
                    log_line(f"[RUN][ERROR] Session re-initialisation failed: {reconnect_exc}")
                    _scraper_event(
                        "error",
                        context="session",
                        error_code=ErrorCode.SESSION_LOST,
                        error=_short_error_message(reconnect_exc),
                    )

        result.elapsed_seconds = time.monotonic() - started
        summary.results.append(result)
        if telemetry is not None:
            telemetry.add_result(result)

        if result.ok and position < total and session.page is not None:
            session.page.wait(config.INTER_TARGET_DELAY_MS)

    log_line(
        f"[RUN] Finished: {summary.succeeded}/{summary.total} targets succeeded, "
        f"{summary.failed} failed"
    )
    if summary.failed:
        reasons = ", ".join(f"{code}={count}" for code, count in sorted(summary.fail_reasons.items()))
        log_line(f"[RUN] Failure reasons: {reasons}")
    _scraper_event(
        "summary",
        total=summary.total,
        succeeded=summary.succeeded,
        failed=summary.failed,
    )
    return summary


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape paginated basketball stats tables to CSV")
    parser.add_argument(
        "--variant",
        default=config.DEFAULT_VARIANT,
        help=f"Scraper variant ({', '.join(sources.ALL_VARIANTS)})",
    )
    parser.add_argument(
        "--weeks",
        default=None,
        help="Weeks to scrape for the weekly variant, e.g. '1,2,5-8' (default: all)",
    )
    parser.add_argument("--season", default=config.EUROLEAGUE_SEASON)
    parser.add_argument("--page-cap", type=int, default=None)
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument(
        "--backend",
        default=None,
        choices=sorted(config.SUPPORTED_BACKENDS),
        help="Browser automation backend",
    )
    parser.add_argument(
        "--replay-dir",
        type=Path,
        default=None,
        help="Replay saved HTML pages from this directory instead of a live browser",
    )
    parser.add_argument(
        "--excel-report",
        action="store_true",
        help="Write an Excel workbook summarising the run",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    ensure_dirs()
    log_path = setup_run_logger()
    log_line(f"[RUN] Logging to {log_path}")

    backend = args.backend or config.BROWSER_BACKEND
    headless = config.HEADLESS and not args.headed
    entrypoint = "replay" if args.replay_dir is not None else "cli"
    try:
        variant = sources.normalize_variant(args.variant)
        weeks = parse_weeks(args.weeks) if args.weeks else None
        validate_runtime_config(entrypoint, variant=variant, backend=backend)
        targets = build_targets(variant, weeks=weeks, season=args.season, page_cap=args.page_cap)
        validate_runtime_config(entrypoint, variant=variant, backend=backend, targets=targets)
    except ValueError as exc:
        log_line(f"[RUN][ERROR] Configuration error: {exc}")
        return EXIT_NOT_RUN

    if args.replay_dir is not None:
        session = SessionController(replay_factory(args.replay_dir, targets), label="replay")
    else:
        session = SessionController(
            page_factory_for_backend(backend, headless=headless), label=backend
        )

    telemetry = RunTelemetry(variant)
    with session:
        try:
            session.start()
        except Exception as exc:  # noqa: BLE001
            log_line(f"[RUN][ERROR] Unable to start {session.label} session: {exc}")
            _scraper_event("error", context="session", error=_short_error_message(exc))
            return EXIT_NOT_RUN
        summary = run_targets(targets, session, CsvExporter(), telemetry=telemetry)

    run_file = telemetry.finalize(summary, extra={"log_path": str(log_path)})
    log_line(f"[RUN] Telemetry written to {run_file}")

    if args.excel_report:
        try:
            report = export_latest_run_to_excel()
            log_line(f"[RUN] Excel report written to {report}")
        except Exception as exc:  # noqa: BLE001
            log_line(f"[RUN][WARN] Unable to write Excel report: {exc}")

    return summary.exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

__all__ = ["ScrapeOutcome", "main", "run_targets", "scrape_target"]
