"""Configuration constants for the basketball stats scraper."""
from __future__ import annotations

import os
from pathlib import Path


def _env_flag(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


DATA_DIR: Path = Path(os.getenv("COURTSTATS_DATA_DIR", ".")).resolve()
RESULTS_DIR: Path = DATA_DIR / "results"
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
RUNS_DIR: Path = DATA_DIR / "runs"
EXPORTS_DIR: Path = DATA_DIR / "exports"
MAX_EXPORTS: int = int(os.getenv("COURTSTATS_EXPORTS_KEEP_MAX", "5"))

HEADLESS: bool = _env_flag("COURTSTATS_HEADLESS", True)

# Seconds to let dynamic content settle after each navigation.
WAIT_SECONDS: float = float(os.getenv("COURTSTATS_WAIT_SECONDS", "5"))

# Navigation timeout for page.goto / driver.get calls.
NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds("COURTSTATS_NAV_TIMEOUT_SECONDS", 30)

# Hard cap on pages visited per target.
PAGE_CAP: int = int(os.getenv("COURTSTATS_PAGE_CAP", "20"))

# Re-render wait after activating a pagination control (milliseconds).
POST_CLICK_WAIT_MS: int = int(os.getenv("COURTSTATS_POST_CLICK_WAIT_MS", "2000"))

# Click-level timeout remains in milliseconds to match Playwright API expectations.
CLICK_TIMEOUT_MS: int = int(os.getenv("COURTSTATS_CLICK_TIMEOUT_MS", "2000"))

# Pause between successful targets (milliseconds).
INTER_TARGET_DELAY_MS: int = int(os.getenv("COURTSTATS_INTER_TARGET_DELAY_MS", "1000"))

BROWSER_BACKEND: str = (
    os.getenv("COURTSTATS_BROWSER_BACKEND", "playwright").strip().lower() or "playwright"
)
SUPPORTED_BACKENDS: frozenset[str] = frozenset({"playwright", "selenium"})
CHROME_BINARY: str = os.getenv("COURTSTATS_CHROME_BINARY", "")

USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Dunkest EuroLeague player table. ``{WEEK}`` is the only substitutable parameter.
EUROLEAGUE_WEEK_URL_TEMPLATE: str = os.getenv(
    "COURTSTATS_EUROLEAGUE_WEEK_URL",
    "https://www.dunkest.com/en/euroleague/stats/players/table/season/2024-2025"
    "?season_id=17&mode=dunkest&stats_type=tot&weeks[]={WEEK}&rounds[]=1&rounds[]=2"
    "&teams[]=31&teams[]=32&teams[]=33&teams[]=34&teams[]=35&teams[]=36&teams[]=37"
    "&teams[]=38&teams[]=39&teams[]=40&teams[]=41&teams[]=42&teams[]=43&teams[]=44"
    "&teams[]=45&teams[]=47&teams[]=48&teams[]=60&positions[]=1&positions[]=2"
    "&positions[]=3&player_search=&min_cr=4&max_cr=35&sort_by=pdk&sort_order=desc"
    "&iframe=yes&noadv=yes",
)
EUROLEAGUE_SEASON_URL: str = os.getenv(
    "COURTSTATS_EUROLEAGUE_SEASON_URL",
    "https://www.dunkest.com/en/euroleague/stats/players/table/season/2024-2025"
    "?season_id=17&mode=dunkest&stats_type=avg&iframe=yes&noadv=yes",
)
EUROLEAGUE_SEASON: str = os.getenv("COURTSTATS_EUROLEAGUE_SEASON", "2024-2025")
EUROLEAGUE_WEEKS: tuple[int, ...] = tuple(range(1, 44))

GIVEMESTATS_URL: str = os.getenv(
    "COURTSTATS_GIVEMESTATS_URL",
    "https://givemestats.com/euroleague-fantasy-domestic-stats/?sortby=minutes&index=all"
    "&minutes=all&stage=Regular%20season&period=na&euroleagueFantasyPrice=all",
)

DEFAULT_VARIANT: str = os.getenv("COURTSTATS_VARIANT", "euroleague_weeks")
