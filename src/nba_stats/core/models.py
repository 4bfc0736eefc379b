"""Pydantic output contracts for every entrypoint.

Optional fields are `None` when the upstream payload did not carry the value;
normalizers never substitute a default like 0 or "". Field names are
snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

StatValue = Union[float, int, str, None]


class Record(BaseModel):
    """Base for all normalized records: camelCase aliases, immutable."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LeaderCategory(str, Enum):
    """Leaderboard categories and the ESPN stat each one sorts by."""

    POINTS = "points"
    REBOUNDS = "rebounds"
    ASSISTS = "assists"
    STEALS = "steals"
    BLOCKS = "blocks"

    @property
    def stat_name(self) -> str:
        return f"avg{self.value.capitalize()}"


# ─── Games ────────────────────────────────────────────────────────────────────


class Game(Record):
    """One scoreboard event."""

    id: Optional[str] = None
    matchup: Optional[str] = None
    status: Optional[str] = Field(None, description="Short status text, e.g. 'Final' or '7:30 PM ET'")
    status_state: Optional[str] = Field(None, description="pre / in / post")
    home_team: Optional[str] = None
    home_score: Optional[int] = Field(None, description="Absent until the game has started")
    away_team: Optional[str] = None
    away_score: Optional[int] = Field(None, description="Absent until the game has started")
    venue: Optional[str] = None
    broadcast: Optional[str] = None


class GameSummary(Record):
    matchup: Optional[str] = None
    date: Optional[str] = None
    status: Optional[str] = None
    venue: Optional[str] = None


# ─── Teams ────────────────────────────────────────────────────────────────────


class TeamProfile(Record):
    id: str
    name: Optional[str] = None
    abbreviation: Optional[str] = None
    location: Optional[str] = None
    color: Optional[str] = None
    logo: Optional[str] = None


class RosterPlayer(Record):
    name: Optional[str] = None
    jersey: Optional[str] = None
    position: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None


class TeamRecord(Record):
    """Win/loss record derived from completed schedule events."""

    wins: int
    losses: int
    games_played: int


class MatchupSide(Record):
    name: Optional[str] = None
    abbreviation: Optional[str] = None
    roster_size: Optional[int] = Field(None, description="Absent when the roster payload had no athletes list")
    starters: list[RosterPlayer] = Field(default_factory=list)
    record: Optional[TeamRecord] = None


# ─── Players ──────────────────────────────────────────────────────────────────


class PlayerProfile(Record):
    id: Optional[str] = None
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    jersey: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None
    team_id: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    age: Optional[int] = None
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    college: Optional[str] = None
    draft: Optional[str] = Field(None, description="'<year> Round <n> Pick <n>'")
    experience: Optional[int] = Field(None, description="Years in the league")
    headshot: Optional[str] = None


class LeaderboardEntry(Record):
    rank: int = Field(ge=1, description="1-based position in the upstream sort order")
    name: Optional[str] = None
    team: Optional[str] = None
    position: Optional[str] = None
    games_played: Optional[float] = None
    points: Optional[float] = None
    rebounds: Optional[float] = None
    assists: Optional[float] = None
    steals: Optional[float] = None
    blocks: Optional[float] = None


class Leaderboard(Record):
    entries: list[LeaderboardEntry] = Field(default_factory=list)
    order_verified: bool = Field(
        True,
        description="False when the upstream order is not non-increasing in the sort stat",
    )


# ─── Entrypoint outputs ───────────────────────────────────────────────────────


class Output(Record):
    fetched_at: datetime = Field(default_factory=utc_now)
    unavailable: list[str] = Field(
        default_factory=list,
        description="Optional upstream sources that failed under the best-effort policy",
    )


class OverviewOutput(Output):
    date: Optional[str] = None
    games_count: int
    games: list[GameSummary]
    latest_news: list[str]
    data_source: str = "ESPN NBA API (live)"


class ScoresOutput(Output):
    date: Optional[str] = None
    games: list[Game]


class TeamOutput(Output):
    team: TeamProfile
    roster_size: Optional[int] = None
    roster: list[RosterPlayer]
    recent_games: list[GameSummary]


class LeadersOutput(Output):
    category: LeaderCategory
    season: str
    leaders: list[LeaderboardEntry]
    order_verified: bool = True


class PlayerOutput(Output):
    player: PlayerProfile
    season_stats: dict[str, StatValue] = Field(default_factory=dict)
    career_stats: dict[str, StatValue] = Field(default_factory=dict)


class MatchupAnalysis(Record):
    note: str = "For betting odds and advanced analytics, consider additional data sources"
    generated_at: datetime = Field(default_factory=utc_now)


class MatchupOutput(Output):
    matchup: str
    home_team: MatchupSide
    away_team: MatchupSide
    analysis: MatchupAnalysis = Field(default_factory=MatchupAnalysis)


OutputT = TypeVar("OutputT", bound=Output)


class EntrypointResult(BaseModel, Generic[OutputT]):
    """What the dispatcher hands back to the serving runtime."""

    output: OutputT
    fetched_at: datetime = Field(default_factory=utc_now)
