from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Set

from .models import PlayerRecord

# Unit separator: cannot appear in scraped names or team labels.
KEY_SEPARATOR = "\x1f"


def identity_key(record: PlayerRecord, *, name_field: str = "player_name", team_field: str = "team") -> str:
    """Composite identity of a player row: case-folded name and team."""

    name = (record.get(name_field) or "").strip().casefold()
    team = (record.get(team_field) or "").strip().casefold()
    return f"{name}{KEY_SEPARATOR}{team}"


@dataclass
class DedupResult:
    new: List[PlayerRecord] = field(default_factory=list)
    duplicates: List[PlayerRecord] = field(default_factory=list)

    @property
    def all_duplicates(self) -> bool:
        return bool(self.duplicates) and not self.new


class Deduplicator:
    """Track identity keys across every page of one target run.

    The first record seen for a key wins; later duplicates are counted but
    never merged into or overwrite the retained record.
    """

    def __init__(self, *, name_field: str = "player_name", team_field: str = "team") -> None:
        self.name_field = name_field
        self.team_field = team_field
        self.seen: Set[str] = set()

    def key(self, record: PlayerRecord) -> str:
        return identity_key(record, name_field=self.name_field, team_field=self.team_field)

    def partition(self, records: Iterable[PlayerRecord]) -> DedupResult:
        result = DedupResult()
        for record in records:
            key = self.key(record)
            if key in self.seen:
                result.duplicates.append(record)
                continue
            self.seen.add(key)
            result.new.append(record)
        return result

    def __len__(self) -> int:
        return len(self.seen)


__all__ = ["DedupResult", "Deduplicator", "KEY_SEPARATOR", "identity_key"]
