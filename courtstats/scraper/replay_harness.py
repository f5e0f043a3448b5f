"""Offline replay of saved stats pages.

:class:`HtmlReplayPage` implements the page handle over captured HTML so a
run can be replayed without a browser. Fixture files are named
``<target_id>_page_<n>.html`` (``n`` starting at 1), or ``<target_id>.html``
for single-page targets. Clicking a numbered control jumps to that page;
clicking a "next" control moves one page forward.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .error_codes import NavigationError
from .extractor import parse_dom
from .logging_utils import _scraper_event
from .models import ScrapeTarget
from .page_handle import CONTROL_SELECTOR, DOM_SNAPSHOT_JS, SCROLL_TO_BOTTOM_JS, ControlRef
from .session import PageFactory
from .utils import collapse_whitespace, log_line

_PAGE_FILE_RE = re.compile(r"^(?P<target>.+)_page_(?P<page>\d+)\.html$")


def load_fixture_pages(fixtures_dir: Path, target_id: str) -> List[str]:
    """Return the saved pages for *target_id* in page order."""

    fixtures_dir = Path(fixtures_dir)
    numbered: Dict[int, Path] = {}
    for path in fixtures_dir.glob(f"{target_id}_page_*.html"):
        match = _PAGE_FILE_RE.match(path.name)
        if match and match.group("target") == target_id:
            numbered[int(match.group("page"))] = path
    if numbered:
        return [numbered[index].read_text(encoding="utf-8") for index in sorted(numbered)]

    single = fixtures_dir / f"{target_id}.html"
    if single.exists():
        return [single.read_text(encoding="utf-8")]
    return []


class HtmlReplayPage:
    """Page handle serving captured HTML instead of a live browser."""

    def __init__(self, pages_by_url: Mapping[str, Sequence[str]]) -> None:
        self._pages_by_url = {url: list(pages) for url, pages in pages_by_url.items()}
        self._pages: List[str] = []
        self._index = 0
        self._closed = False
        self.visited: List[str] = []
        self.clicks: List[ControlRef] = []
        self.waited_ms = 0

    @classmethod
    def from_directory(cls, fixtures_dir: Path, targets: Sequence[ScrapeTarget]) -> "HtmlReplayPage":
        pages_by_url: Dict[str, List[str]] = {}
        for target in targets:
            pages = load_fixture_pages(fixtures_dir, target.target_id)
            if pages:
                pages_by_url[target.url] = pages
            else:
                log_line(f"[REPLAY] No fixtures for {target.target_id} in {fixtures_dir}")
        return cls(pages_by_url)

    @property
    def current_page(self) -> int:
        return self._index + 1

    def navigate(self, url: str, timeout_ms: int) -> None:
        _scraper_event("replay", step="navigate", url=url)
        pages = self._pages_by_url.get(url)
        if not pages:
            raise NavigationError(f"No replay fixture for {url!r}")
        self.visited.append(url)
        self._pages = pages
        self._index = 0

    def wait(self, duration_ms: int) -> None:
        if duration_ms and duration_ms > 0:
            self.waited_ms += int(duration_ms)

    def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == DOM_SNAPSHOT_JS:
            return self._pages[self._index] if self._pages else ""
        if script == SCROLL_TO_BOTTOM_JS:
            return True
        log_line(f"[REPLAY][WARN] Unsupported script in replay: {script[:60]!r}")
        return None

    def click(self, ref: ControlRef) -> bool:
        self.clicks.append(ref)
        if not self._pages:
            return False
        controls = parse_dom(self._pages[self._index]).select(CONTROL_SELECTOR)
        if ref.index >= len(controls):
            return False
        if collapse_whitespace(controls[ref.index].get_text()) != ref.text:
            return False

        destination: Optional[int]
        if ref.text.isdigit():
            destination = int(ref.text) - 1
        else:
            destination = self._index + 1
        if destination < 0 or destination >= len(self._pages):
            return False
        self._index = destination
        return True

    def is_alive(self) -> bool:
        return not self._closed

    def close(self) -> None:
        self._closed = True


def replay_factory(fixtures_dir: Path, targets: Sequence[ScrapeTarget]) -> PageFactory:
    return lambda: HtmlReplayPage.from_directory(fixtures_dir, targets)


__all__ = ["HtmlReplayPage", "load_fixture_pages", "replay_factory"]
