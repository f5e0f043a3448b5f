from __future__ import annotations

"""Layout variants: locators, column maps and vocabularies per stats table."""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

DEFAULT_HEADER_KEYWORDS: Tuple[str, ...] = (
    "player",
    "team",
    "rank",
    "position",
    "games played",
)

DEFAULT_NEXT_VOCABULARY: Tuple[str, ...] = ("»", ">", "Next", "Next page")


@dataclass(frozen=True)
class LayoutVariant:
    """Structure of one stats table layout.

    ``columns`` fixes the export field order and the CSV header titles.
    Cells are mapped to fields either by ``positions`` (cell index ->
    field, ``""`` to ignore a cell) or, when ``header_matchers`` is set, by
    locating each field's column through keywords in the header row.
    """

    name: str
    table_locators: Tuple[str, ...]
    columns: Tuple[Tuple[str, str], ...]
    positions: Tuple[str, ...] = ()
    header_matchers: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    # Header-matched fields bound to the rightmost matching column instead of the first.
    last_match_fields: Tuple[str, ...] = ()
    container_locators: Tuple[str, ...] = ()
    cell_tags: Tuple[str, ...] = ("td",)
    header_keywords: Tuple[str, ...] = DEFAULT_HEADER_KEYWORDS
    next_vocabulary: Tuple[str, ...] = DEFAULT_NEXT_VOCABULARY
    rank_field: Optional[str] = "rank"
    name_field: str = "player_name"
    team_field: str = "team"
    player_link_selector: Optional[str] = None
    long_name_selector: Optional[str] = None
    short_name_selector: Optional[str] = None

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(field for field, _ in self.columns)

    @property
    def column_titles(self) -> Dict[str, str]:
        return dict(self.columns)


_EUROLEAGUE_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("rank", "Rank"),
    ("player_name", "Player Name"),
    ("team", "Team"),
    ("position", "Position"),
    ("fantasy_points", "FPT"),
    ("credits", "CR"),
    ("plus", "PLUS"),
    ("games_played", "GP"),
    ("minutes", "MIN"),
    ("starter", "ST"),
    ("points", "PTS"),
    ("rebounds", "REB"),
    ("assists", "AST"),
    ("steals", "STL"),
    ("blocks", "BLK"),
    ("blocks_against", "BA"),
    ("field_goals_made", "FGM"),
    ("field_goals_attempted", "FGA"),
    ("field_goal_percentage", "FG%"),
    ("three_point_made", "3PM"),
    ("three_point_attempted", "3PA"),
    ("three_point_percentage", "3P%"),
    ("free_throws_made", "FTM"),
    ("free_throws_attempted", "FTA"),
    ("free_throw_percentage", "FT%"),
    ("offensive_rebounds", "OREB"),
    ("defensive_rebounds", "DREB"),
    ("turnovers", "TOV"),
    ("personal_fouls", "PF"),
    ("fouls_drawn", "FD"),
    ("plus_minus", "+/-"),
)

# Cell order on the Dunkest table body: the "#" column is rendered outside
# the data cells, so the player name is cell 0.
_EUROLEAGUE_POSITIONS: Tuple[str, ...] = (
    "player_name",
    "position",
    "team",
    "fantasy_points",
    "credits",
    "plus",
    "games_played",
    "minutes",
    "starter",
    "points",
    "rebounds",
    "assists",
    "steals",
    "blocks",
    "blocks_against",
    "field_goals_made",
    "field_goals_attempted",
    "field_goal_percentage",
    "three_point_made",
    "three_point_attempted",
    "three_point_percentage",
    "free_throws_made",
    "free_throws_attempted",
    "free_throw_percentage",
    "offensive_rebounds",
    "defensive_rebounds",
    "turnovers",
    "personal_fouls",
    "fouls_drawn",
    "plus_minus",
)

EUROLEAGUE_LAYOUT = LayoutVariant(
    name="dunkest_euroleague",
    table_locators=("body > main > div.mt-4.table-stats__container > table",),
    container_locators=(".table-stats__container table",),
    columns=_EUROLEAGUE_COLUMNS,
    positions=_EUROLEAGUE_POSITIONS,
    player_link_selector="a[href*='/players/']",
    long_name_selector="[class*='long']",
    short_name_selector="[class*='short']",
)

GIVEMESTATS_LAYOUT = LayoutVariant(
    name="givemestats_domestic",
    table_locators=("#filterableTable",),
    columns=(
        ("player_name", "Player"),
        ("fantasy_price", "Fantasy price"),
    ),
    header_matchers=(
        ("player_name", ("player",)),
        ("fantasy_price", ("fantasy", "price")),
    ),
    last_match_fields=("fantasy_price",),
    cell_tags=("td", "th"),
    # Header cells live in <thead>; body rows may legitimately mention teams.
    header_keywords=(),
    rank_field=None,
)


__all__ = [
    "DEFAULT_HEADER_KEYWORDS",
    "DEFAULT_NEXT_VOCABULARY",
    "EUROLEAGUE_LAYOUT",
    "GIVEMESTATS_LAYOUT",
    "LayoutVariant",
]
