"""Selenium-backed page handle for hosts without a Playwright browser."""
from __future__ import annotations

import time
from typing import Any

from selenium import webdriver
from selenium.common.exceptions import (
    JavascriptException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver

from . import config
from .error_codes import ErrorCode, NavigationError, SessionLostError, is_session_lost_error
from .logging_utils import _scraper_event
from .page_handle import CONTROL_SELECTOR, ControlRef
from .utils import collapse_whitespace, log_line


def make_driver(headless: bool = True) -> WebDriver:
    """Instantiate a Chrome WebDriver instance."""
    chrome_options = Options()
    if config.CHROME_BINARY:
        chrome_options.binary_location = config.CHROME_BINARY
    if headless:
        chrome_options.add_argument("--headless=new")
    chrome_options.add_argument("--disable-gpu")
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--window-size=1920,1080")
    chrome_options.add_argument(f"--user-agent={config.USER_AGENT}")
    driver = webdriver.Chrome(options=chrome_options)
    return driver


def _as_function_call(script: str) -> str:
    """Wrap an arrow-function script so ``execute_script`` returns its result."""

    return f"return ({script})(arguments[0]);"


class SeleniumPageHandle:
    """:class:`~page_handle.PageHandle` backed by a Selenium ``WebDriver``."""

    def __init__(self, driver: WebDriver) -> None:
        self.driver = driver

    def navigate(self, url: str, timeout_ms: int) -> None:
        _scraper_event("nav", step="get", url=url, timeout_ms=timeout_ms)
        try:
            self.driver.set_page_load_timeout(max(1, timeout_ms // 1000))
            self.driver.get(url)
        except TimeoutException as exc:
            _scraper_event("error", phase="nav", step="get_timeout", url=url, error=str(exc))
            raise NavigationError(
                f"get({url!r}) timed out after {timeout_ms}ms",
                code=ErrorCode.NAVIGATION_TIMEOUT,
            ) from exc
        except WebDriverException as exc:
            if is_session_lost_error(exc):
                raise SessionLostError(f"WebDriver session lost during navigation: {exc}") from exc
            _scraper_event("error", phase="nav", step="get_error", url=url, error=str(exc))
            raise NavigationError(f"get({url!r}) failed: {exc}") from exc

    def wait(self, duration_ms: int) -> None:
        if duration_ms is None or duration_ms <= 0:
            return
        time.sleep(duration_ms / 1000.0)

    def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return self.driver.execute_script(_as_function_call(script), arg)
        except JavascriptException as exc:
            log_line(f"[PAGE][WARN] evaluate failed: {exc}")
            return None
        except WebDriverException as exc:
            if is_session_lost_error(exc):
                raise SessionLostError(str(exc)) from exc
            log_line(f"[PAGE][WARN] evaluate failed: {exc}")
            return None

    def click(self, ref: ControlRef) -> bool:
        try:
            elements = self.driver.find_elements(By.CSS_SELECTOR, CONTROL_SELECTOR)
            if ref.index >= len(elements):
                return False
            element = elements[ref.index]
            current_text = collapse_whitespace(element.get_attribute("textContent"))
            if current_text != ref.text:
                log_line(
                    f"[PAGE][WARN] Control {ref.index} changed text "
                    f"{ref.text!r} -> {current_text!r}; not clicking"
                )
                return False
            self.driver.execute_script("arguments[0].click();", element)
            return True
        except WebDriverException as exc:
            if is_session_lost_error(exc):
                raise SessionLostError(str(exc)) from exc
            log_line(f"[PAGE][WARN] Click on {ref.text!r} failed: {exc}")
            return False

    def is_alive(self) -> bool:
        if not self.driver.session_id:
            return False
        try:
            self.driver.current_url
        except WebDriverException:
            return False
        return True

    def close(self) -> None:
        try:
            self.driver.quit()
        except Exception as exc:  # noqa: BLE001
            log_line(f"[PAGE][WARN] Error while quitting WebDriver: {exc}")


def launch_selenium(headless: bool = True) -> SeleniumPageHandle:
    return SeleniumPageHandle(make_driver(headless=headless))


__all__ = ["SeleniumPageHandle", "launch_selenium", "make_driver"]
