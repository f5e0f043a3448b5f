from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .layouts import LayoutVariant

# Ordered field name -> raw text value, keys in the layout's export order.
PlayerRecord = Dict[str, str]


@dataclass(frozen=True)
class ScrapeTarget:
    """One independent scrape job (a week, a season, a site variant)."""

    target_id: str
    url: str
    layout: LayoutVariant
    output_path: Path
    label: str = ""
    wait_seconds: float = 5.0
    nav_timeout_ms: int = 30_000
    page_cap: int = 20
    post_click_wait_ms: int = 2_000

    @property
    def display_name(self) -> str:
        return self.label or self.target_id


@dataclass
class PaginationState:
    page_index: int = 1
    has_more: bool = True
    page_cap: int = 20

    @property
    def cap_reached(self) -> bool:
        return self.page_index >= self.page_cap


@dataclass
class TargetResult:
    target: ScrapeTarget
    status: str
    records: List[PlayerRecord] = field(default_factory=list)
    pages_visited: int = 0
    stop_reason: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    output_path: Optional[Path] = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status in {"succeeded", "empty"}


@dataclass
class RunSummary:
    results: List[TargetResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.ok)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def fail_reasons(self) -> Dict[str, int]:
        return dict(
            Counter(result.error_code or "unknown" for result in self.results if not result.ok)
        )

    @property
    def exit_code(self) -> int:
        return 0 if self.failed == 0 else 1


__all__ = [
    "PaginationState",
    "PlayerRecord",
    "RunSummary",
    "ScrapeTarget",
    "TargetResult",
]
