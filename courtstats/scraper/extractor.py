"""Row extraction from rendered stats tables.

Works on a BeautifulSoup snapshot of the live document. Every lookup is an
ordered cascade of selectors that returns ``None`` when nothing matches;
a missing table or an empty body simply yields no records, leaving the
stop decision to pagination and deduplication.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from .layouts import LayoutVariant
from .models import PlayerRecord
from .utils import collapse_whitespace, log_line


def parse_dom(html: str) -> BeautifulSoup:
    """Parse a serialized document the way a browser would build it."""

    return BeautifulSoup(html or "", "html5lib")


def _select_first(root: Tag, selector: str) -> Optional[Tag]:
    try:
        return root.select_one(selector)
    except Exception as exc:  # noqa: BLE001
        log_line(f"[EXTRACT][WARN] Selector error for {selector!r}: {exc}")
        return None


def _text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return collapse_whitespace(node.get_text(" "))


def resolve_table(dom: Tag, layout: LayoutVariant) -> Optional[Tag]:
    """Return the table root: primary locators, first table, then container locators."""

    for selector in (*layout.table_locators, "table", *layout.container_locators):
        table = _select_first(dom, selector)
        if table is not None:
            return table
    return None


def _data_rows(table: Tag) -> List[Tag]:
    rows = table.select("tbody tr")
    if rows:
        return rows
    return table.select("tr")


def count_rows(dom: Tag, layout: LayoutVariant) -> int:
    """Number of row elements currently present in the resolved table."""

    table = resolve_table(dom, layout)
    if table is None:
        return 0
    return len(_data_rows(table))


def _is_header_or_blank(row: Tag, layout: LayoutVariant) -> bool:
    row_text = _text(row).lower()
    if not row_text:
        return True
    return any(keyword in row_text for keyword in layout.header_keywords)


def _cell_values(row: Tag, layout: LayoutVariant) -> List[str]:
    return [_text(cell) for cell in row.find_all(list(layout.cell_tags))]


def _positions_from_header(table: Tag, layout: LayoutVariant) -> Optional[Dict[str, int]]:
    """Locate each header-matched field's column index, or ``None`` if any is missing."""

    header_row = _select_first(table, "thead tr") or _select_first(table, "tr")
    if header_row is None:
        log_line("[EXTRACT] Header row not found")
        return None

    header_texts = [_text(cell).lower() for cell in header_row.find_all(["th", "td"])]
    positions: Dict[str, int] = {}
    for field_name, keywords in layout.header_matchers:
        for index, text in enumerate(header_texts):
            if all(keyword in text for keyword in keywords):
                positions[field_name] = index
                if field_name not in layout.last_match_fields:
                    break

    missing = [name for name, _ in layout.header_matchers if name not in positions]
    if missing:
        log_line(f"[EXTRACT] Could not find columns {missing} in header {header_texts}")
        return None
    return positions


def _positions_from_layout(layout: LayoutVariant) -> Dict[str, int]:
    return {field_name: index for index, field_name in enumerate(layout.positions) if field_name}


def _player_name_from_link(row: Tag, layout: LayoutVariant) -> str:
    if not layout.player_link_selector:
        return ""
    link = _select_first(row, layout.player_link_selector)
    if link is None:
        return ""
    for selector in (layout.long_name_selector, layout.short_name_selector):
        if not selector:
            continue
        name = _text(_select_first(link, selector))
        if name:
            return name
    return _text(link)


def iter_records(dom: Tag, layout: LayoutVariant) -> Iterator[PlayerRecord]:
    """Yield the records of the table currently rendered in *dom*.

    Records carry every field of ``layout.columns`` in export order; cells
    missing from a short row yield empty strings. The rank field, when the
    layout has one, is the record's 1-based position among the records
    emitted for this page.
    """

    table = resolve_table(dom, layout)
    if table is None:
        return

    header_row: Optional[Tag] = None
    if layout.header_matchers:
        positions = _positions_from_header(table, layout)
        if positions is None:
            return
        header_row = _select_first(table, "thead tr") or _select_first(table, "tr")
        min_cells = max(positions.values()) + 1
    else:
        positions = _positions_from_layout(layout)
        min_cells = 0

    emitted = 0
    for row in _data_rows(table):
        if row is header_row or _is_header_or_blank(row, layout):
            continue

        values = _cell_values(row, layout)
        if len(values) < min_cells:
            continue

        record: PlayerRecord = {field_name: "" for field_name in layout.fields}
        for field_name, index in positions.items():
            if field_name in record:
                record[field_name] = values[index] if index < len(values) else ""

        linked_name = _player_name_from_link(row, layout)
        if linked_name:
            record[layout.name_field] = linked_name

        if not record.get(layout.name_field):
            continue

        emitted += 1
        if layout.rank_field:
            record[layout.rank_field] = str(emitted)
        yield record


def extract_page(dom: Tag, layout: LayoutVariant) -> List[PlayerRecord]:
    return list(iter_records(dom, layout))


__all__ = [
    "count_rows",
    "extract_page",
    "iter_records",
    "parse_dom",
    "resolve_table",
]
