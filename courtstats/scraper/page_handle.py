"""Rendered page handle: the capability the scraping core drives.

The core only ever needs four things from a live rendering session:
navigate to a URL, wait, evaluate a script against the current document
and click an element. :class:`PageHandle` captures that surface; the
Playwright binding lives here, the Selenium binding in
:mod:`selenium_client` and the offline HTML binding in
:mod:`replay_harness`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Error as PWError,
    Page,
    Playwright,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .error_codes import ErrorCode, NavigationError, SessionLostError, is_session_lost_error
from .logging_utils import _scraper_event
from .utils import collapse_whitespace, log_line

# Raised when an evaluate call overlaps an in-page navigation; the page is still live.
NAVIGATION_RACE_MARKER = "Execution context was destroyed"

# Elements considered link/button-like when looking for pagination controls.
CONTROL_SELECTOR = "a, button, [role='button']"

DOM_SNAPSHOT_JS = "() => document.documentElement.outerHTML"
SCROLL_TO_BOTTOM_JS = "() => { window.scrollTo(0, document.body.scrollHeight); return true; }"


@dataclass(frozen=True)
class ControlRef:
    """Reference to a pagination control in the current document.

    ``index`` is the control's position among all elements matching
    :data:`CONTROL_SELECTOR`, in document order; ``text`` is its stripped
    text at detection time and is re-checked at click time.
    """

    index: int
    text: str


class PageHandle(Protocol):
    def navigate(self, url: str, timeout_ms: int) -> None:
        ...

    def wait(self, duration_ms: int) -> None:
        ...

    def evaluate(self, script: str, arg: Any = None) -> Any:
        ...

    def click(self, ref: ControlRef) -> bool:
        ...

    def is_alive(self) -> bool:
        ...

    def close(self) -> None:
        ...


def snapshot_html(page: PageHandle) -> str:
    """Return the current document's serialized HTML (empty on failure)."""

    html = page.evaluate(DOM_SNAPSHOT_JS)
    return html if isinstance(html, str) else ""


class PlaywrightPageHandle:
    """:class:`PageHandle` backed by a Playwright sync ``Page``."""

    def __init__(
        self,
        page: Page,
        *,
        context: Optional[BrowserContext] = None,
        browser: Optional[Browser] = None,
        playwright: Optional[Playwright] = None,
    ) -> None:
        self.page = page
        self._context = context
        self._browser = browser
        self._playwright = playwright

    def navigate(self, url: str, timeout_ms: int) -> None:
        _scraper_event("nav", step="goto", url=url, timeout_ms=timeout_ms)
        try:
            self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PWTimeout as exc:
            _scraper_event("error", phase="nav", step="goto_timeout", url=url, error=str(exc))
            raise NavigationError(
                f"goto({url!r}) timed out after {timeout_ms}ms",
                code=ErrorCode.NAVIGATION_TIMEOUT,
            ) from exc
        except PWError as exc:
            if is_session_lost_error(exc):
                _scraper_event(
                    "error", phase="nav", step="goto_target_closed", url=url, error=str(exc)
                )
                raise SessionLostError(f"Target closed during navigation: {exc}") from exc
            _scraper_event("error", phase="nav", step="goto_error", url=url, error=str(exc))
            raise NavigationError(f"goto({url!r}) failed: {exc}") from exc

    def wait(self, duration_ms: int) -> None:
        if duration_ms is None or duration_ms <= 0:
            return
        if not self.page.is_closed():
            self.page.wait_for_timeout(int(duration_ms))

    def _evaluate_once(self, script: str, arg: Any) -> Any:
        if arg is None:
            return self.page.evaluate(script)
        return self.page.evaluate(script, arg)

    def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return self._evaluate_once(script, arg)
        except PWError as exc:
            if NAVIGATION_RACE_MARKER not in str(exc):
                return self._evaluate_failed(exc)
            log_line("[PAGE][WARN] evaluate overlapped a navigation; retrying once")
            _scraper_event("page", step="evaluate_retry", error=str(exc))
        try:
            self.page.wait_for_load_state("domcontentloaded", timeout=config.CLICK_TIMEOUT_MS)
            return self._evaluate_once(script, arg)
        except PWTimeout as exc:
            log_line(f"[PAGE][WARN] page did not settle after navigation: {exc}")
            return None
        except PWError as exc:
            return self._evaluate_failed(exc)

    def _evaluate_failed(self, exc: PWError) -> None:
        if is_session_lost_error(exc):
            raise SessionLostError(str(exc)) from exc
        log_line(f"[PAGE][WARN] evaluate failed: {exc}")
        return None

    def click(self, ref: ControlRef) -> bool:
        try:
            locator = self.page.locator(CONTROL_SELECTOR).nth(ref.index)
            if not locator.count():
                return False
            current_text = collapse_whitespace(locator.text_content())
            if current_text != ref.text:
                log_line(
                    f"[PAGE][WARN] Control {ref.index} changed text "
                    f"{ref.text!r} -> {current_text!r}; not clicking"
                )
                return False
            try:
                locator.click(timeout=config.CLICK_TIMEOUT_MS)
            except PWTimeout:
                # Obscured or animated controls still respond to a DOM click.
                locator.evaluate("el => el.click()")
            return True
        except PWTimeout as exc:
            log_line(f"[PAGE][WARN] Click on {ref.text!r} timed out: {exc}")
            return False
        except PWError as exc:
            if is_session_lost_error(exc):
                raise SessionLostError(str(exc)) from exc
            log_line(f"[PAGE][WARN] Click on {ref.text!r} failed: {exc}")
            return False

    def is_alive(self) -> bool:
        if self.page.is_closed():
            return False
        if self._browser is not None and not self._browser.is_connected():
            return False
        return True

    def close(self) -> None:
        for closer in (self._context, self._browser):
            if closer is None:
                continue
            try:
                closer.close()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[PAGE][WARN] Error while closing browser: {exc}")
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[PAGE][WARN] Error while stopping Playwright: {exc}")
        self._context = None
        self._browser = None
        self._playwright = None


def launch_playwright(headless: bool = True) -> PlaywrightPageHandle:
    """Start Chromium via Playwright and return a handle on a fresh page."""

    playwright = sync_playwright().start()
    try:
        browser = playwright.chromium.launch(
            headless=headless,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        context = browser.new_context(user_agent=config.USER_AGENT, locale="en-US")
        page = context.new_page()
    except Exception:
        playwright.stop()
        raise
    return PlaywrightPageHandle(page, context=context, browser=browser, playwright=playwright)


__all__ = [
    "CONTROL_SELECTOR",
    "ControlRef",
    "DOM_SNAPSHOT_JS",
    "PageHandle",
    "PlaywrightPageHandle",
    "SCROLL_TO_BOTTOM_JS",
    "launch_playwright",
    "snapshot_html",
]
