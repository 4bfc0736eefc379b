"""Pure transformations from ESPN payloads to the output contracts.

Every function here is total: malformed or partial payloads produce records
with absent (None) fields, never exceptions and never invented defaults.
ESPN populates fields unevenly across game states (scheduled / live / final)
and across entity kinds (no statsSummary before a player's first game).
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from .models import (
    Game,
    GameSummary,
    Leaderboard,
    LeaderboardEntry,
    MatchupSide,
    PlayerProfile,
    RosterPlayer,
    StatValue,
    TeamProfile,
    TeamRecord,
)

logger = logging.getLogger(__name__)

NOT_STARTED = "pre"
STARTERS = 5


# ─── Safe accessors ──────────────────────────────────────────────────────────


def dig(node: Any, *path: Any) -> Any:
    """Follow dict keys / list indices, returning None at the first gap."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(node, list) or not -len(node) <= step < len(node):
                return None
            node = node[step]
        else:
            if not isinstance(node, Mapping):
                return None
            node = node.get(step)
        if node is None:
            return None
    return node


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def as_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    return None


def as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else None


def as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def find_stat(stats: Iterable[Any], name: str) -> Any:
    """Value of the `{name, value}` entry called `name`, or None."""
    for entry in stats:
        if isinstance(entry, Mapping) and entry.get("name") == name:
            return entry.get("value")
    return None


def stat_map(stats: Iterable[Any]) -> dict[str, StatValue]:
    out: dict[str, StatValue] = {}
    for entry in stats:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("name"), str):
            continue
        value = entry.get("value")
        out[entry["name"]] = value if isinstance(value, (int, float, str)) and not isinstance(value, bool) else None
    return out


# ─── Games ────────────────────────────────────────────────────────────────────


def _competitor(competition: Any, side: str) -> Any:
    for c in as_list(dig(competition, "competitors")):
        if isinstance(c, Mapping) and c.get("homeAway") == side:
            return c
    return None


def _score(competitor: Any) -> Optional[int]:
    # scoreboard: "102"; team schedule: {"value": 102.0, "displayValue": "102"}
    score = dig(competitor, "score")
    if isinstance(score, Mapping):
        score = score.get("value", score.get("displayValue"))
    return as_int(score)


def _status_type(event: Any) -> Any:
    status_type = dig(event, "status", "type")
    if status_type is None:
        status_type = dig(event, "competitions", 0, "status", "type")
    return status_type


def normalize_game(event: Any) -> Game:
    competition = dig(event, "competitions", 0)
    home = _competitor(competition, "home")
    away = _competitor(competition, "away")
    status_type = _status_type(event)
    state = as_str(dig(status_type, "state"))
    started = state != NOT_STARTED

    return Game(
        id=as_str(dig(event, "id")),
        matchup=as_str(dig(event, "shortName")),
        status=as_str(dig(status_type, "shortDetail")),
        status_state=state,
        home_team=as_str(dig(home, "team", "abbreviation")),
        home_score=_score(home) if started else None,
        away_team=as_str(dig(away, "team", "abbreviation")),
        away_score=_score(away) if started else None,
        venue=as_str(dig(competition, "venue", "fullName")),
        broadcast=as_str(dig(competition, "broadcasts", 0, "names", 0)),
    )


def normalize_scoreboard(payload: Mapping[str, Any]) -> list[Game]:
    return [normalize_game(e) for e in as_list(dig(payload, "events")) if isinstance(e, Mapping)]


def scoreboard_date(payload: Mapping[str, Any]) -> Optional[str]:
    return as_str(dig(payload, "day", "date"))


def normalize_game_summary(event: Any) -> GameSummary:
    return GameSummary(
        matchup=as_str(dig(event, "shortName")),
        date=as_str(dig(event, "date")),
        status=as_str(dig(_status_type(event), "shortDetail")),
        venue=as_str(dig(event, "competitions", 0, "venue", "fullName")),
    )


def normalize_game_summaries(payload: Mapping[str, Any], limit: Optional[int] = None) -> list[GameSummary]:
    events = [e for e in as_list(dig(payload, "events")) if isinstance(e, Mapping)]
    if limit is not None:
        events = events[:limit]
    return [normalize_game_summary(e) for e in events]


def _completed(event: Any) -> bool:
    return dig(_status_type(event), "completed") is True


def normalize_recent_games(schedule: Mapping[str, Any], limit: int = 5) -> list[GameSummary]:
    """The last `limit` completed games, most recent first."""
    completed = [e for e in as_list(dig(schedule, "events")) if isinstance(e, Mapping) and _completed(e)]
    return [normalize_game_summary(e) for e in reversed(completed[-limit:])] if limit > 0 else []


def normalize_headlines(payload: Mapping[str, Any]) -> list[str]:
    headlines = (dig(a, "headline") for a in as_list(dig(payload, "articles")))
    return [h for h in headlines if isinstance(h, str)]


# ─── Teams ────────────────────────────────────────────────────────────────────


def normalize_team(payload: Mapping[str, Any], team_id: str) -> TeamProfile:
    team = dig(payload, "team")
    return TeamProfile(
        id=team_id,
        name=as_str(dig(team, "displayName")),
        abbreviation=as_str(dig(team, "abbreviation")),
        location=as_str(dig(team, "location")),
        color=as_str(dig(team, "color")),
        logo=as_str(dig(team, "logo")) or as_str(dig(team, "logos", 0, "href")),
    )


def _roster_athletes(payload: Mapping[str, Any]) -> Optional[list]:
    athletes = dig(payload, "athletes")
    if not isinstance(athletes, list):
        return None
    # some sports group the roster by position: [{"position": ..., "items": [...]}]
    flat: list = []
    for entry in athletes:
        if isinstance(entry, Mapping) and isinstance(entry.get("items"), list):
            flat.extend(a for a in entry["items"] if isinstance(a, Mapping))
        elif isinstance(entry, Mapping):
            flat.append(entry)
    return flat


def normalize_roster_player(athlete: Any) -> RosterPlayer:
    return RosterPlayer(
        name=as_str(dig(athlete, "displayName")),
        jersey=as_str(dig(athlete, "jersey")),
        position=as_str(dig(athlete, "position", "abbreviation")),
        height=as_str(dig(athlete, "displayHeight")),
        weight=as_str(dig(athlete, "displayWeight")),
    )


def normalize_roster(payload: Mapping[str, Any]) -> list[RosterPlayer]:
    return [normalize_roster_player(a) for a in _roster_athletes(payload) or []]


def roster_size(payload: Mapping[str, Any]) -> Optional[int]:
    athletes = _roster_athletes(payload)
    return None if athletes is None else len(athletes)


def _is_team(competitor: Any, team_id: str) -> bool:
    return as_str(dig(competitor, "team", "id")) == team_id or as_str(dig(competitor, "id")) == team_id


def normalize_record(schedule: Mapping[str, Any], team_id: str) -> Optional[TeamRecord]:
    """Wins/losses over completed games, judged by this team's own `winner` flag."""
    events = dig(schedule, "events")
    if not isinstance(events, list):
        return None

    wins = played = 0
    for event in events:
        if not isinstance(event, Mapping) or not _completed(event):
            continue
        competitors = as_list(dig(event, "competitions", 0, "competitors"))
        ours = next((c for c in competitors if _is_team(c, team_id)), None)
        if ours is None:
            continue
        played += 1
        if dig(ours, "winner") is True:
            wins += 1
    return TeamRecord(wins=wins, losses=played - wins, games_played=played)


def normalize_matchup_side(
    roster: Mapping[str, Any],
    schedule: Mapping[str, Any],
    team_id: str,
) -> MatchupSide:
    team = dig(roster, "team")
    return MatchupSide(
        name=as_str(dig(team, "displayName")),
        abbreviation=as_str(dig(team, "abbreviation")),
        roster_size=roster_size(roster),
        starters=normalize_roster(roster)[:STARTERS],
        record=normalize_record(schedule, team_id),
    )


# ─── Players ──────────────────────────────────────────────────────────────────


def _draft(draft: Any) -> Optional[str]:
    year = as_int(dig(draft, "year"))
    if year is None:
        return None
    parts = [str(year)]
    round_ = as_int(dig(draft, "round"))
    pick = as_int(dig(draft, "selection"))
    if round_ is not None:
        parts.append(f"Round {round_}")
    if pick is not None:
        parts.append(f"Pick {pick}")
    return " ".join(parts)


def _season_stat_entries(athlete: Any) -> list:
    statistics = as_list(dig(athlete, "statsSummary", "statistics"))
    # either [{"stats": [...]}] or a flat list of {name, value}
    nested = dig(statistics, 0, "stats")
    return as_list(nested) if isinstance(nested, list) else statistics


def normalize_player(payload: Mapping[str, Any]) -> tuple[PlayerProfile, dict[str, StatValue], dict[str, StatValue]]:
    """Profile plus season and career stat maps (empty when ESPN omits them)."""
    athlete = dig(payload, "athlete")
    profile = PlayerProfile(
        id=as_str(dig(athlete, "id")),
        name=as_str(dig(athlete, "displayName")),
        first_name=as_str(dig(athlete, "firstName")),
        last_name=as_str(dig(athlete, "lastName")),
        jersey=as_str(dig(athlete, "jersey")),
        position=as_str(dig(athlete, "position", "name")),
        team=as_str(dig(athlete, "team", "displayName")),
        team_id=as_str(dig(athlete, "team", "id")),
        height=as_str(dig(athlete, "displayHeight")),
        weight=as_str(dig(athlete, "displayWeight")),
        age=as_int(dig(athlete, "age")),
        birth_date=as_str(dig(athlete, "dateOfBirth")),
        birth_place=as_str(dig(athlete, "birthPlace", "city")),
        college=as_str(dig(athlete, "college", "name")),
        draft=_draft(dig(athlete, "draft")),
        experience=as_int(dig(athlete, "experience", "years")),
        headshot=as_str(dig(athlete, "headshot", "href")),
    )
    season = stat_map(_season_stat_entries(athlete))
    career = stat_map(as_list(dig(athlete, "career", "stats", 0, "categories", 0, "stats")))
    return profile, season, career


# ─── Leaderboards ─────────────────────────────────────────────────────────────

LEADER_STATS = {
    "games_played": "gamesPlayed",
    "points": "avgPoints",
    "rebounds": "avgRebounds",
    "assists": "avgAssists",
    "steals": "avgSteals",
    "blocks": "avgBlocks",
}


def _athlete_stats(entry: Any) -> list:
    stats: list = []
    for category in as_list(dig(entry, "categories")):
        stats.extend(as_list(dig(category, "stats")))
    return stats


def normalize_leader(entry: Any, rank: int) -> LeaderboardEntry:
    athlete = dig(entry, "athlete")
    stats = _athlete_stats(entry)
    return LeaderboardEntry(
        rank=rank,
        name=as_str(dig(athlete, "displayName")),
        team=as_str(dig(athlete, "teamShortName")),
        position=as_str(dig(athlete, "position", "abbreviation")),
        **{field: as_float(find_stat(stats, stat)) for field, stat in LEADER_STATS.items()},
    )


def is_non_increasing(values: list[Optional[float]]) -> bool:
    if any(v is None for v in values):
        return False
    return all(a >= b for a, b in zip(values, values[1:]))


def normalize_leaderboard(payload: Mapping[str, Any], sort_stat: str) -> Leaderboard:
    """Rank by position in the upstream sequence, which was requested sorted.

    The order is not re-derived; it is checked against `sort_stat` and the
    result is flagged (and logged) when ESPN's order does not hold.
    """
    athletes = [a for a in as_list(dig(payload, "athletes")) if isinstance(a, Mapping)]
    entries = [normalize_leader(a, rank) for rank, a in enumerate(athletes, start=1)]

    sort_values = [as_float(find_stat(_athlete_stats(a), sort_stat)) for a in athletes]
    verified = is_non_increasing(sort_values)
    if not verified:
        logger.warning("Upstream leaderboard order is not descending by %s; ranks follow upstream order", sort_stat)
    return Leaderboard(entries=entries, order_verified=verified)
