from __future__ import annotations

from typing import Any

from .utils import log_line

# Long values (URLs with query strings, page HTML in errors) are clipped.
_MAX_VALUE_CHARS = 160


def _format_value(value: Any) -> str:
    text = repr(value)
    if len(text) > _MAX_VALUE_CHARS:
        return text[: _MAX_VALUE_CHARS - 3] + "..."
    return text


def _scraper_event(label: str = "", *, phase: str | None = None, **fields: Any) -> None:
    """Emit one ``[SCRAPER][LABEL] key=value, ...`` line.

    ``label`` names the event (``nav``, ``page``, ``error``, ...). Called with
    only ``phase``, the phase becomes the label; with both, the phase is kept
    as a field. ``target`` is printed first so the lines of one target grep
    together. A failure to log never interrupts scraping.
    """

    try:
        tag = (label or phase or "event").upper()
        if phase and label:
            fields.setdefault("phase", phase)
        ordered = sorted(fields.items(), key=lambda item: (item[0] != "target", item[0]))
        payload = ", ".join(f"{key}={_format_value(value)}" for key, value in ordered)
        log_line(f"[SCRAPER][{tag}] {payload}")
    except Exception:  # noqa: BLE001
        return


__all__ = ["_scraper_event"]
