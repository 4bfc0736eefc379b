"""Free-form identifier -> canonical ESPN ID resolution.

Resolution is exact: a normalized alias lookup, then a numeric-ID check on
the raw identifier. Nothing is guessed; anything else is rejected.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .errors import UnresolvedEntity

logger = logging.getLogger(__name__)

_NUMERIC_ID = re.compile(r"[0-9]+")
_WHITESPACE = re.compile(r"\s+")

TEAM_HINT = "Use team abbreviation (e.g., LAL, BOS, GSW), team name (e.g., Lakers) or ESPN team ID (1-30)."
PLAYER_HINT = "Use the numeric ESPN athlete ID (e.g., 1966)."

# (ESPN id, abbreviation, city, nickname, extra aliases)
NBA_TEAMS: tuple[tuple[str, str, str, str, tuple[str, ...]], ...] = (
    ("1", "ATL", "Atlanta", "Hawks", ()),
    ("2", "BOS", "Boston", "Celtics", ()),
    ("3", "NOP", "New Orleans", "Pelicans", ("NO",)),
    ("4", "CHI", "Chicago", "Bulls", ()),
    ("5", "CLE", "Cleveland", "Cavaliers", ("Cavs",)),
    ("6", "DAL", "Dallas", "Mavericks", ("Mavs",)),
    ("7", "DEN", "Denver", "Nuggets", ()),
    ("8", "DET", "Detroit", "Pistons", ()),
    ("9", "GSW", "Golden State", "Warriors", ("GS",)),
    ("10", "HOU", "Houston", "Rockets", ()),
    ("11", "IND", "Indiana", "Pacers", ()),
    ("12", "LAC", "Los Angeles", "Clippers", ("LA Clippers",)),
    ("13", "LAL", "Los Angeles", "Lakers", ()),
    ("14", "MIA", "Miami", "Heat", ()),
    ("15", "MIL", "Milwaukee", "Bucks", ()),
    ("16", "MIN", "Minnesota", "Timberwolves", ("Wolves",)),
    ("17", "BKN", "Brooklyn", "Nets", ()),
    ("18", "NYK", "New York", "Knicks", ("NY",)),
    ("19", "ORL", "Orlando", "Magic", ()),
    ("20", "PHI", "Philadelphia", "76ers", ("Sixers",)),
    ("21", "PHX", "Phoenix", "Suns", ()),
    ("22", "POR", "Portland", "Trail Blazers", ("Blazers",)),
    ("23", "SAC", "Sacramento", "Kings", ()),
    ("24", "SAS", "San Antonio", "Spurs", ("SA",)),
    ("25", "OKC", "Oklahoma City", "Thunder", ()),
    ("26", "UTA", "Utah", "Jazz", ("UTAH",)),
    ("27", "WAS", "Washington", "Wizards", ("WSH",)),
    ("28", "TOR", "Toronto", "Raptors", ()),
    ("29", "MEM", "Memphis", "Grizzlies", ()),
    ("30", "CHA", "Charlotte", "Hornets", ()),
)


def normalize_key(identifier: str) -> str:
    """Trim, lower-case and collapse inner whitespace."""
    return _WHITESPACE.sub(" ", identifier.strip()).lower()


def build_alias_table(entries: Iterable[tuple[str, Iterable[str]]]) -> Mapping[str, str]:
    """Build a read-only alias -> canonical ID table.

    Raises ValueError when one alias would point at two different IDs.
    """
    table: dict[str, str] = {}
    for canonical_id, aliases in entries:
        for alias in aliases:
            key = normalize_key(alias)
            if not key:
                continue
            existing = table.get(key)
            if existing is not None and existing != canonical_id:
                raise ValueError(f"Alias '{alias}' maps to both {existing} and {canonical_id}")
            table[key] = canonical_id
    return MappingProxyType(table)


def nba_team_aliases() -> Mapping[str, str]:
    """Abbreviations, full names, nicknames and unambiguous cities for all 30 teams."""
    city_counts = Counter(normalize_key(city) for _, _, city, _, _ in NBA_TEAMS)
    entries = []
    for team_id, abbreviation, city, nickname, extras in NBA_TEAMS:
        aliases = [abbreviation, nickname, f"{city} {nickname}", *extras]
        if city_counts[normalize_key(city)] == 1:
            aliases.append(city)
        entries.append((team_id, aliases))
    return build_alias_table(entries)


@dataclass(frozen=True)
class ResolvedEntity:
    canonical_id: str
    source_identifier: str


class EntityResolver:
    """Resolve identifiers of one entity kind against an injected alias table."""

    def __init__(
        self,
        aliases: Mapping[str, str],
        *,
        kind: str = "entity",
        id_range: Optional[tuple[int, int]] = None,
        hint: str = "",
    ):
        self._aliases = MappingProxyType(dict(aliases))
        self.kind = kind
        self.id_range = id_range
        self.hint = hint

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def resolve(self, identifier: str) -> ResolvedEntity:
        if not isinstance(identifier, str):
            raise UnresolvedEntity(repr(identifier), self.kind, self.hint)

        canonical_id = self._aliases.get(normalize_key(identifier))
        if canonical_id is None:
            canonical_id = self._numeric_id(identifier)
        if canonical_id is None:
            logger.debug("Unresolved %s identifier %r", self.kind, identifier)
            raise UnresolvedEntity(identifier, self.kind, self.hint)
        return ResolvedEntity(canonical_id=canonical_id, source_identifier=identifier)

    def resolve_id(self, identifier: str) -> str:
        return self.resolve(identifier).canonical_id

    def _numeric_id(self, raw: str) -> Optional[str]:
        if not _NUMERIC_ID.fullmatch(raw):
            return None
        value = int(raw)
        if self.id_range is not None:
            low, high = self.id_range
            if not low <= value <= high:
                return None
        elif value <= 0:
            return None
        return str(value)


def team_resolver(aliases: Optional[Mapping[str, str]] = None) -> EntityResolver:
    return EntityResolver(
        nba_team_aliases() if aliases is None else aliases,
        kind="team",
        id_range=(1, 30),
        hint=TEAM_HINT,
    )


def player_resolver() -> EntityResolver:
    return EntityResolver({}, kind="player", hint=PLAYER_HINT)
