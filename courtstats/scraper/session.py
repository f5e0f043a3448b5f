from __future__ import annotations

"""Lifecycle of the single rendered page handle used by a run."""

from typing import Callable, Dict, Optional

from .logging_utils import _scraper_event
from .page_handle import PageHandle, launch_playwright
from .utils import log_line

PageFactory = Callable[[], PageHandle]


def _playwright_factory(headless: bool) -> PageFactory:
    return lambda: launch_playwright(headless=headless)


def _selenium_factory(headless: bool) -> PageFactory:
    def _launch() -> PageHandle:
        # Imported lazily so Playwright-only hosts never load the Selenium stack.
        from .selenium_client import launch_selenium

        return launch_selenium(headless=headless)

    return _launch


_BACKENDS: Dict[str, Callable[[bool], PageFactory]] = {
    "playwright": _playwright_factory,
    "selenium": _selenium_factory,
}


def page_factory_for_backend(backend: str, *, headless: bool = True) -> PageFactory:
    normalized = (backend or "").strip().lower()
    if normalized not in _BACKENDS:
        raise ValueError(f"Unsupported browser backend: {backend!r}")
    return _BACKENDS[normalized](headless)


class SessionController:
    """Own the page handle: start it, hand it out, rebuild it after a crash."""

    def __init__(self, factory: PageFactory, *, label: str = "browser") -> None:
        self._factory = factory
        self._page: Optional[PageHandle] = None
        self.label = label
        self.restarts = 0

    @property
    def page(self) -> Optional[PageHandle]:
        return self._page

    def start(self) -> PageHandle:
        log_line(f"[SESSION] Starting {self.label} session")
        self._page = self._factory()
        _scraper_event("session", step="started", backend=self.label, restarts=self.restarts)
        return self._page

    def ensure_live(self) -> PageHandle:
        if self._page is None:
            return self.start()
        try:
            alive = self._page.is_alive()
        except Exception as exc:  # noqa: BLE001
            log_line(f"[SESSION] Liveness check failed: {exc}")
            alive = False
        if not alive:
            log_line("[SESSION] Browser disconnected, reconnecting...")
            return self.reconnect()
        return self._page

    def reconnect(self) -> PageHandle:
        self.close()
        self.restarts += 1
        _scraper_event("session", step="reconnect", backend=self.label, restarts=self.restarts)
        return self.start()

    def close(self) -> None:
        if self._page is None:
            return
        try:
            self._page.close()
            log_line(f"[SESSION] {self.label} session closed")
        except Exception as exc:  # noqa: BLE001
            log_line(f"[SESSION] Error while closing {self.label} session: {exc}")
        finally:
            self._page = None

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["PageFactory", "SessionController", "page_factory_for_backend"]
