from __future__ import annotations

"""Error code taxonomy for target-level scrape failures.

Codes are attached to failed targets in the run summary and telemetry and
are included in structured logs so that a failed week can be explained
without digging through the full log.
"""

from typing import Optional


class ErrorCode:
    NAVIGATION_TIMEOUT = "navigation_timeout"
    NAVIGATION_ERROR = "navigation_error"
    SESSION_LOST = "session_lost"
    SITE_STRUCTURE = "site_structure_changed"
    CONFIG = "config_error"
    EXPORT = "export_error"
    INTERNAL = "internal_error"


class ScrapeError(RuntimeError):
    """Base class for failures that abort a single target run."""

    code: str = ErrorCode.INTERNAL

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        if code:
            self.code = code


class NavigationError(ScrapeError):
    code = ErrorCode.NAVIGATION_ERROR


class SessionLostError(ScrapeError):
    code = ErrorCode.SESSION_LOST


class SiteStructureError(ScrapeError):
    code = ErrorCode.SITE_STRUCTURE


_SESSION_LOST_MARKERS = (
    "Target closed",
    "Target crashed",
    "has been closed",
    "Protocol error",
    "Browser has been disconnected",
    "invalid session id",
    "no such window",
    "chrome not reachable",
)


def is_session_lost_error(exc: BaseException) -> bool:
    """Return ``True`` if *exc* indicates the browser session is gone."""

    if isinstance(exc, SessionLostError):
        return True
    if type(exc).__name__ in {"InvalidSessionIdException", "NoSuchWindowException"}:
        return True
    message = str(exc)
    return any(marker in message for marker in _SESSION_LOST_MARKERS)


def classify_exception(exc: BaseException) -> str:
    """Map an exception raised during a target run to an :class:`ErrorCode`."""

    if is_session_lost_error(exc):
        return ErrorCode.SESSION_LOST
    if isinstance(exc, ScrapeError):
        return exc.code
    if "Timeout" in type(exc).__name__:
        return ErrorCode.NAVIGATION_TIMEOUT
    if isinstance(exc, ValueError):
        return ErrorCode.CONFIG
    if isinstance(exc, OSError):
        return ErrorCode.EXPORT
    return ErrorCode.INTERNAL


__all__ = [
    "ErrorCode",
    "NavigationError",
    "ScrapeError",
    "SessionLostError",
    "SiteStructureError",
    "classify_exception",
    "is_session_lost_error",
]
