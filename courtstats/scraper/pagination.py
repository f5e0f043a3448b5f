"""Pagination detection and page advancing for rendered stats tables.

Two UI patterns are recognised, checked in priority order:

- an explicit "next" control (``»``, ``>``, ``Next``, ``Next page``) that is
  neither disabled nor hidden;
- numbered pagination, where the highest page number is the last page and
  an active/current marker identifies the page being shown.

When neither is present the table is treated as a single page.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from bs4.element import Tag

from .dedup import DedupResult
from .extractor import count_rows, parse_dom
from .layouts import DEFAULT_NEXT_VOCABULARY, LayoutVariant
from .logging_utils import _scraper_event
from .models import PaginationState
from .page_handle import CONTROL_SELECTOR, SCROLL_TO_BOTTOM_JS, ControlRef, PageHandle, snapshot_html
from .utils import collapse_whitespace, log_line, log_warning

HEURISTIC_NEXT_CONTROL = "next_control"
HEURISTIC_NUMBERED = "numbered"
HEURISTIC_NONE = "none"

STOP_NO_NEW_RECORDS = "no_new_records"
STOP_ALL_DUPLICATES = "all_duplicates"
STOP_PAGE_CAP = "page_cap"
STOP_NO_MORE_PAGES = "no_more_pages"
STOP_ADVANCE_FAILED = "advance_failed"

ADVANCED_BY_CLICK = "click"
ADVANCED_BY_SCROLL = "scroll"

_NUMERIC_RE = re.compile(r"^\d+$")
_ELLIPSIS = {"...", "…"}
_CURRENT_CLASSES = {"active", "current"}
# Current-page markers rendered outside link/button elements.
_MARKER_SELECTOR = ".pagination .active, .pagination .current, [aria-current='page']"


@dataclass(frozen=True)
class PaginationDecision:
    has_more: bool
    heuristic: str = HEURISTIC_NONE
    control: Optional[ControlRef] = None
    current_page: Optional[int] = None
    last_page: Optional[int] = None


def _classes(node: Optional[Tag]) -> set:
    if node is None:
        return set()
    return {str(name).lower() for name in (node.get("class") or [])}


def _parent_li(node: Tag) -> Optional[Tag]:
    parent = node.parent
    if isinstance(parent, Tag) and parent.name == "li":
        return parent
    return None


def _is_disabled(node: Tag) -> bool:
    if "disabled" in _classes(node) or node.has_attr("disabled"):
        return True
    if str(node.get("aria-disabled") or "").lower() == "true":
        return True
    return "disabled" in _classes(_parent_li(node))


def _is_hidden(node: Tag) -> bool:
    if node.has_attr("hidden"):
        return True
    style = str(node.get("style") or "").replace(" ", "").lower()
    return "display:none" in style or "visibility:hidden" in style


def _is_current(node: Tag) -> bool:
    if _classes(node) & _CURRENT_CLASSES:
        return True
    if str(node.get("aria-current") or "").lower() == "page":
        return True
    return bool(_classes(_parent_li(node)) & _CURRENT_CLASSES)


def _controls(dom: Tag) -> List[Tuple[int, Tag, str]]:
    return [
        (index, node, collapse_whitespace(node.get_text()))
        for index, node in enumerate(dom.select(CONTROL_SELECTOR))
    ]


def _find_next_control(
    controls: Sequence[Tuple[int, Tag, str]], vocabulary: Sequence[str]
) -> Optional[ControlRef]:
    wanted = set(vocabulary)
    for index, node, text in controls:
        if text not in wanted:
            continue
        if _is_disabled(node) or _is_hidden(node):
            continue
        return ControlRef(index=index, text=text)
    return None


def _numbered_decision(dom: Tag, controls: Sequence[Tuple[int, Tag, str]]) -> Optional[PaginationDecision]:
    numbered = [
        (index, node, text)
        for index, node, text in controls
        if _NUMERIC_RE.match(text) or text in _ELLIPSIS
    ]
    if not numbered:
        return None

    numbers = [int(text) for _, _, text in numbered if _NUMERIC_RE.match(text)]
    markers = [
        collapse_whitespace(node.get_text())
        for node in dom.select(_MARKER_SELECTOR)
    ]
    numbers.extend(int(text) for text in markers if _NUMERIC_RE.match(text))
    if not numbers:
        return PaginationDecision(has_more=False, heuristic=HEURISTIC_NUMBERED)
    last_page = max(numbers)

    current_page = 1
    current_texts = [
        text for _, node, text in numbered if _NUMERIC_RE.match(text) and _is_current(node)
    ]
    current_texts.extend(text for text in markers if _NUMERIC_RE.match(text))
    if current_texts:
        current_page = int(current_texts[0])

    if current_page >= last_page:
        return PaginationDecision(
            has_more=False,
            heuristic=HEURISTIC_NUMBERED,
            current_page=current_page,
            last_page=last_page,
        )

    target_text = str(current_page + 1)
    control = next(
        (ControlRef(index=index, text=text) for index, _, text in numbered if text == target_text),
        None,
    )
    return PaginationDecision(
        has_more=True,
        heuristic=HEURISTIC_NUMBERED,
        control=control,
        current_page=current_page,
        last_page=last_page,
    )


def detect_pagination(
    dom: Tag, vocabulary: Sequence[str] = DEFAULT_NEXT_VOCABULARY
) -> PaginationDecision:
    """Decide whether another page exists and which control advances to it."""

    controls = _controls(dom)

    next_control = _find_next_control(controls, vocabulary)
    if next_control is not None:
        return PaginationDecision(
            has_more=True, heuristic=HEURISTIC_NEXT_CONTROL, control=next_control
        )

    numbered = _numbered_decision(dom, controls)
    if numbered is not None:
        return numbered

    return PaginationDecision(has_more=False)


def _visible_rows(page: PageHandle, layout: LayoutVariant) -> int:
    return count_rows(parse_dom(snapshot_html(page)), layout)


def _scroll_probe(page: PageHandle, layout: LayoutVariant, settle_ms: int) -> Optional[str]:
    """Scroll to the bottom and report whether more rows rendered."""

    before = _visible_rows(page, layout)
    page.evaluate(SCROLL_TO_BOTTOM_JS)
    page.wait(settle_ms)
    after = _visible_rows(page, layout)
    _scraper_event("page", step="scroll_probe", rows_before=before, rows_after=after)
    if after > before:
        return ADVANCED_BY_SCROLL
    return None


def advance(
    page: PageHandle,
    decision: PaginationDecision,
    layout: LayoutVariant,
    *,
    settle_ms: int,
) -> Optional[str]:
    """Move to the next page; return how it advanced, or ``None`` if it could not."""

    if decision.control is not None:
        if page.click(decision.control):
            page.wait(settle_ms)
            return ADVANCED_BY_CLICK
        log_line(
            f"[PAGE] Control {decision.control.text!r} could not be activated; probing by scroll"
        )
    return _scroll_probe(page, layout, settle_ms)


def termination_reason(state: PaginationState, page_result: DedupResult) -> Optional[str]:
    """Return why the run should stop after the current page, if it should."""

    if not page_result.new:
        if page_result.duplicates:
            return STOP_ALL_DUPLICATES
        return STOP_NO_NEW_RECORDS
    if state.cap_reached:
        log_warning(
            f"[PAGE][WARN] Reached maximum page limit ({state.page_cap}), stopping pagination"
        )
        return STOP_PAGE_CAP
    return None


__all__ = [
    "ADVANCED_BY_CLICK",
    "ADVANCED_BY_SCROLL",
    "PaginationDecision",
    "STOP_ADVANCE_FAILED",
    "STOP_ALL_DUPLICATES",
    "STOP_NO_MORE_PAGES",
    "STOP_NO_NEW_RECORDS",
    "STOP_PAGE_CAP",
    "advance",
    "detect_pagination",
    "termination_reason",
]
