from __future__ import annotations

import logging
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import List

from . import config

LOGGER = logging.getLogger("courtstats")
_LOG_FORMAT = logging.Formatter(fmt="[%(asctime)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
_active_log_file: Path | None = None


def _build_handlers(log_path: Path) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_path, encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setFormatter(_LOG_FORMAT)
    return handlers


def _configure_logger(log_path: Path) -> None:
    """Point the shared ``courtstats`` logger at stdout and ``log_path``."""

    global _active_log_file

    log_path.parent.mkdir(parents=True, exist_ok=True)
    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    for handler in _build_handlers(log_path):
        LOGGER.addHandler(handler)
    LOGGER.setLevel(logging.INFO)
    LOGGER.propagate = False
    _active_log_file = log_path


def setup_run_logger() -> Path:
    """Start a fresh ``logs/scrape_<timestamp>.log`` for the current run."""

    stamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
    log_path = config.LOG_DIR / f"scrape_{stamp}.log"
    _configure_logger(log_path)
    return log_path


def get_current_log_path() -> Path:
    if _active_log_file is None:
        _configure_logger(config.LOG_FILE)
    return _active_log_file


def ensure_dirs() -> None:
    for directory in (config.DATA_DIR, config.RESULTS_DIR, config.LOG_DIR):
        directory.mkdir(parents=True, exist_ok=True)


def log_line(message: str) -> None:
    """Log an INFO line; before any run logger exists, ``logs/latest.log`` is used."""

    if _active_log_file is None:
        _configure_logger(config.LOG_FILE)
    LOGGER.info(message)


def log_warning(message: str) -> None:
    if _active_log_file is None:
        _configure_logger(config.LOG_FILE)
    LOGGER.warning(message)


_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_FILENAME_RE = re.compile(r"[\\/:*?\"<>|\x00-\x1f]+")


def collapse_whitespace(text: str | None) -> str:
    """Collapse runs of whitespace (including newlines) into single spaces."""

    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_filename_component(component: str | None) -> str:
    """Make a season label or target id safe to use as a path segment.

    ``"2023/2024 season"`` becomes ``"2023_2024_season"``.
    """

    if not component:
        return ""
    cleaned = _UNSAFE_FILENAME_RE.sub(" ", component).strip()
    return _WHITESPACE_RE.sub("_", cleaned).strip("._")


__all__ = [
    "LOGGER",
    "collapse_whitespace",
    "ensure_dirs",
    "get_current_log_path",
    "log_line",
    "log_warning",
    "sanitize_filename_component",
    "setup_run_logger",
]
