from __future__ import annotations

"""Scraper variants: one per site and target list shape.

These identifiers appear in CLI arguments, run telemetry and log lines and
should be treated as stable.
"""

import logging

from . import config
from .layouts import EUROLEAGUE_LAYOUT, GIVEMESTATS_LAYOUT, LayoutVariant

LOGGER = logging.getLogger("courtstats")

EUROLEAGUE_WEEKS = "euroleague_weeks"
EUROLEAGUE_SEASON = "euroleague_season"
GIVEMESTATS_DOMESTIC = "givemestats_domestic"

ALL_VARIANTS = (EUROLEAGUE_WEEKS, EUROLEAGUE_SEASON, GIVEMESTATS_DOMESTIC)

_ALIASES = {
    "weeks": EUROLEAGUE_WEEKS,
    "euroleague": EUROLEAGUE_WEEKS,
    "dunkest": EUROLEAGUE_WEEKS,
    "season": EUROLEAGUE_SEASON,
    "givemestats": GIVEMESTATS_DOMESTIC,
    "gms": GIVEMESTATS_DOMESTIC,
    "domestic": GIVEMESTATS_DOMESTIC,
}

_LAYOUTS = {
    EUROLEAGUE_WEEKS: EUROLEAGUE_LAYOUT,
    EUROLEAGUE_SEASON: EUROLEAGUE_LAYOUT,
    GIVEMESTATS_DOMESTIC: GIVEMESTATS_LAYOUT,
}


def normalize_variant(value: str | None) -> str:
    """Return a canonical variant identifier.

    Empty values fall back to ``config.DEFAULT_VARIANT`` (``COURTSTATS_VARIANT``); dashes, spaces and case
    are ignored. Unknown names raise ``ValueError`` since a misspelt variant
    would otherwise silently scrape the wrong site.
    """

    if not value:
        return normalize_variant(config.DEFAULT_VARIANT or EUROLEAGUE_WEEKS)

    raw = value.strip().lower().replace("-", "_").replace(" ", "_")
    if raw in ALL_VARIANTS:
        return raw
    if raw in _ALIASES:
        return _ALIASES[raw]

    LOGGER.warning("[SOURCES][WARN] Unknown variant %r", value)
    raise ValueError(f"Unknown scraper variant: {value!r}")


def layout_for_variant(variant: str) -> LayoutVariant:
    return _LAYOUTS[normalize_variant(variant)]


__all__ = [
    "ALL_VARIANTS",
    "EUROLEAGUE_SEASON",
    "EUROLEAGUE_WEEKS",
    "GIVEMESTATS_DOMESTIC",
    "layout_for_variant",
    "normalize_variant",
]
