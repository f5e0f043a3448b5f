"""Build the static target list for a scraper variant."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from . import config, sources
from .models import ScrapeTarget
from .utils import sanitize_filename_component

WEEK_PLACEHOLDER = "{WEEK}"


def render_url(template: str, value: int) -> str:
    """Substitute the single numeric parameter of a URL template."""

    return template.replace(WEEK_PLACEHOLDER, str(int(value)))


def parse_weeks(raw: str) -> tuple[int, ...]:
    """Parse ``"1,2,5-8"`` into ``(1, 2, 5, 6, 7, 8)`` keeping first-seen order."""

    weeks: List[int] = []
    for chunk in (raw or "").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        if "-" in chunk:
            start_raw, end_raw = chunk.split("-", 1)
            start, end = int(start_raw), int(end_raw)
            if end < start:
                raise ValueError(f"Invalid week range: {chunk!r}")
            values: Iterable[int] = range(start, end + 1)
        else:
            values = (int(chunk),)
        for value in values:
            if value < 1:
                raise ValueError(f"Week numbers start at 1, got {value}")
            if value not in weeks:
                weeks.append(value)
    return tuple(weeks)


def _make_target(
    target_id: str,
    url: str,
    variant: str,
    output_path: Path,
    label: str,
    page_cap: Optional[int],
) -> ScrapeTarget:
    return ScrapeTarget(
        target_id=target_id,
        url=url,
        layout=sources.layout_for_variant(variant),
        output_path=output_path,
        label=label,
        wait_seconds=config.WAIT_SECONDS,
        nav_timeout_ms=config.NAV_TIMEOUT_SECONDS * 1000,
        page_cap=page_cap if page_cap is not None else config.PAGE_CAP,
        post_click_wait_ms=config.POST_CLICK_WAIT_MS,
    )


def build_week_targets(
    weeks: Sequence[int],
    *,
    template: str,
    season: str,
    results_dir: Path,
    page_cap: Optional[int] = None,
) -> List[ScrapeTarget]:
    season_dir = Path(results_dir) / (sanitize_filename_component(season) or "season")
    return [
        _make_target(
            target_id=f"week_{week:02d}",
            url=render_url(template, week),
            variant=sources.EUROLEAGUE_WEEKS,
            output_path=season_dir / f"week_{week:02d}.csv",
            label=f"Week {week}",
            page_cap=page_cap,
        )
        for week in weeks
    ]


def build_targets(
    variant: str,
    *,
    weeks: Optional[Sequence[int]] = None,
    season: Optional[str] = None,
    results_dir: Optional[Path] = None,
    page_cap: Optional[int] = None,
) -> List[ScrapeTarget]:
    """Return the ordered target list for *variant*."""

    variant = sources.normalize_variant(variant)
    results_dir = Path(results_dir) if results_dir is not None else config.RESULTS_DIR
    season = season or config.EUROLEAGUE_SEASON

    if variant == sources.EUROLEAGUE_WEEKS:
        return build_week_targets(
            weeks if weeks is not None else config.EUROLEAGUE_WEEKS,
            template=config.EUROLEAGUE_WEEK_URL_TEMPLATE,
            season=season,
            results_dir=results_dir,
            page_cap=page_cap,
        )

    if variant == sources.EUROLEAGUE_SEASON:
        return [
            _make_target(
                target_id="euroleague_season",
                url=config.EUROLEAGUE_SEASON_URL,
                variant=variant,
                output_path=results_dir / f"euroleague_{sanitize_filename_component(season)}_stats.csv",
                label=f"EuroLeague {season}",
                page_cap=page_cap,
            )
        ]

    return [
        _make_target(
            target_id="givemestats_domestic",
            url=config.GIVEMESTATS_URL,
            variant=variant,
            output_path=results_dir / "givemestats_domestic_stats.csv",
            label="GiveMeStats domestic",
            page_cap=page_cap,
        )
    ]


__all__ = ["build_targets", "build_week_targets", "parse_weeks", "render_url"]
