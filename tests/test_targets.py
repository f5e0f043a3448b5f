from pathlib import Path

import pytest

from courtstats.scraper import config, sources
from courtstats.scraper.layouts import EUROLEAGUE_LAYOUT, GIVEMESTATS_LAYOUT
from courtstats.scraper.targets import build_targets, build_week_targets, parse_weeks, render_url


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1", (1,)),
        ("1,2,5-8", (1, 2, 5, 6, 7, 8)),
        ("3, 1, 3, 2-3", (3, 1, 2)),
        ("", ()),
    ],
)
def test_parse_weeks(raw: str, expected: tuple) -> None:
    assert parse_weeks(raw) == expected


@pytest.mark.parametrize("raw", ["8-5", "0", "-1", "x"])
def test_parse_weeks_rejects_invalid_input(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_weeks(raw)


def test_render_url_substitutes_single_numeric_parameter() -> None:
    assert render_url("https://x.example/stats?weeks[]={WEEK}&w={WEEK}", 12) == (
        "https://x.example/stats?weeks[]=12&w=12"
    )


def test_build_week_targets(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(config, "PAGE_CAP", 7)

    targets = build_week_targets(
        [1, 12],
        template="https://x.example/{WEEK}",
        season="2024-2025",
        results_dir=tmp_path,
    )

    assert [target.target_id for target in targets] == ["week_01", "week_12"]
    assert [target.url for target in targets] == ["https://x.example/1", "https://x.example/12"]
    assert targets[1].output_path == tmp_path / "2024-2025" / "week_12.csv"
    assert targets[0].label == "Week 1"
    assert targets[0].layout is EUROLEAGUE_LAYOUT
    assert targets[0].page_cap == 7


def test_build_targets_for_every_variant(tmp_path: Path) -> None:
    weekly = build_targets("weeks", weeks=(3,), results_dir=tmp_path, page_cap=2)
    season = build_targets("season", season="2023/2024", results_dir=tmp_path)
    domestic = build_targets(sources.GIVEMESTATS_DOMESTIC, results_dir=tmp_path)

    assert [target.target_id for target in weekly] == ["week_03"]
    assert weekly[0].page_cap == 2
    assert season[0].target_id == "euroleague_season"
    assert season[0].url == config.EUROLEAGUE_SEASON_URL
    assert season[0].output_path == tmp_path / "euroleague_2023_2024_stats.csv"
    assert domestic[0].layout is GIVEMESTATS_LAYOUT
    assert domestic[0].output_path == tmp_path / "givemestats_domestic_stats.csv"


def test_weekly_variant_defaults_to_whole_season(tmp_path: Path) -> None:
    targets = build_targets("weeks", results_dir=tmp_path)

    assert len(targets) == len(config.EUROLEAGUE_WEEKS)
    assert targets[0].nav_timeout_ms == config.NAV_TIMEOUT_SECONDS * 1000
