"""Named, priced entrypoints and the dispatcher that runs them.

Each entrypoint binds an input model, a price tier and a handler that runs
resolver -> orchestrator -> normalizers. Charging is not done here; the
price is declared so the serving runtime can enforce it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from . import normalizers as norm
from .cache import ResponseCache
from .clients import espn
from .config import Settings
from .errors import InvalidInput
from .models import (
    EntrypointResult,
    LeaderCategory,
    LeadersOutput,
    MatchupOutput,
    Output,
    OverviewOutput,
    PlayerOutput,
    ScoresOutput,
    TeamOutput,
)
from .orchestrator import FetchOrchestrator, UpstreamCall
from .resolver import EntityResolver, player_resolver, team_resolver

logger = logging.getLogger(__name__)

USDC_DECIMALS = 6


@dataclass(frozen=True)
class Price:
    """Price in USDC base units (1_000 == $0.001)."""

    amount: int

    @property
    def usd(self) -> float:
        return self.amount / 10**USDC_DECIMALS

    @property
    def free(self) -> bool:
        return self.amount == 0

    def label(self) -> str:
        return "free" if self.free else f"${self.usd:g}"


@dataclass
class EntrypointContext:
    """Request-independent collaborators shared by every handler."""

    teams: EntityResolver
    players: EntityResolver
    orchestrator: FetchOrchestrator
    settings: Settings


Handler = Callable[[EntrypointContext, Any], Awaitable[Output]]


@dataclass(frozen=True)
class Entrypoint:
    key: str
    description: str
    input_model: type[BaseModel]
    price: Price
    handler: Handler

    def describe(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "description": self.description,
            "price": {"amount": self.price.amount, "currency": "USDC", "usd": self.price.usd},
            "input_schema": self.input_model.model_json_schema(by_alias=True),
        }


class EntrypointRegistry:
    def __init__(self):
        self._entries: dict[str, Entrypoint] = {}

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Entrypoint]:
        return self._entries.get(key)

    def register(self, key: str, *, description: str, input: type[BaseModel], price: int):
        def decorator(handler: Handler) -> Handler:
            if key in self._entries:
                raise ValueError(f"Entrypoint '{key}' already registered")
            self._entries[key] = Entrypoint(key, description, input, Price(price), handler)
            return handler

        return decorator


REGISTRY = EntrypointRegistry()


# ─── Input schemas ────────────────────────────────────────────────────────────


class EntrypointInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class OverviewInput(EntrypointInput):
    pass


class ScoresInput(EntrypointInput):
    date: Optional[str] = Field(None, description="Date in YYYYMMDD format (default: today)")

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if len(value) != 8 or not value.isascii() or not value.isdigit():
            raise ValueError("date must be YYYYMMDD")
        datetime.strptime(value, "%Y%m%d")
        return value


class TeamInput(EntrypointInput):
    team: str = Field(min_length=1, description="Team abbreviation (LAL, BOS, GSW, etc.), name, or ESPN team ID")


class LeadersInput(EntrypointInput):
    category: LeaderCategory = LeaderCategory.POINTS
    limit: int = Field(10, ge=1, le=100)
    season: Optional[int] = Field(None, ge=2002, description="Season end year, e.g. 2026 for 2025-26")


class PlayerInput(EntrypointInput):
    player_id: str = Field(min_length=1, description="ESPN player/athlete ID")


class MatchupInput(EntrypointInput):
    home_team: str = Field(min_length=1, description="Home team abbreviation, name or ID")
    away_team: str = Field(min_length=1, description="Away team abbreviation, name or ID")


# ─── Handlers ─────────────────────────────────────────────────────────────────


@REGISTRY.register(
    "overview",
    description="Free NBA overview - today's games and league snapshot",
    input=OverviewInput,
    price=0,
)
async def overview(ctx: EntrypointContext, params: OverviewInput) -> OverviewOutput:
    result = await ctx.orchestrator.gather([
        UpstreamCall("scoreboard", espn.SCOREBOARD),
        UpstreamCall("news", espn.NEWS, {"limit": 3}, required=False),
    ])
    scoreboard = result.payload("scoreboard")
    games = norm.normalize_game_summaries(scoreboard)
    return OverviewOutput(
        date=norm.scoreboard_date(scoreboard),
        games_count=len(games),
        games=games[:5],
        latest_news=norm.normalize_headlines(result.payload("news")),
        unavailable=list(result.failures),
    )


@REGISTRY.register(
    "scores",
    description="Live NBA scores for today or specific date",
    input=ScoresInput,
    price=1000,
)
async def scores(ctx: EntrypointContext, params: ScoresInput) -> ScoresOutput:
    query = {"dates": params.date} if params.date else None
    result = await ctx.orchestrator.gather([UpstreamCall("scoreboard", espn.SCOREBOARD, query)])
    scoreboard = result.payload("scoreboard")
    return ScoresOutput(date=norm.scoreboard_date(scoreboard), games=norm.normalize_scoreboard(scoreboard))


@REGISTRY.register(
    "team",
    description="Team profile with roster and recent games",
    input=TeamInput,
    price=2000,
)
async def team(ctx: EntrypointContext, params: TeamInput) -> TeamOutput:
    team_id = ctx.teams.resolve_id(params.team)
    result = await ctx.orchestrator.gather([
        UpstreamCall("roster", espn.team_roster(team_id)),
        UpstreamCall("schedule", espn.team_schedule(team_id), required=False),
    ])
    roster = result.payload("roster")
    return TeamOutput(
        team=norm.normalize_team(roster, team_id),
        roster_size=norm.roster_size(roster),
        roster=norm.normalize_roster(roster),
        recent_games=norm.normalize_recent_games(result.payload("schedule")),
        unavailable=list(result.failures),
    )


@REGISTRY.register(
    "leaders",
    description="NBA league leaders by statistical category",
    input=LeadersInput,
    price=2000,
)
async def leaders(ctx: EntrypointContext, params: LeadersInput) -> LeadersOutput:
    season = params.season or ctx.settings.season
    sort_stat = params.category.stat_name
    result = await ctx.orchestrator.gather([
        UpstreamCall(
            "leaders",
            espn.ATHLETE_STATISTICS,
            {"season": season, "limit": params.limit, "sort": f"{sort_stat}:desc"},
        ),
    ])
    board = norm.normalize_leaderboard(result.payload("leaders"), sort_stat)
    return LeadersOutput(
        category=params.category,
        season=f"{season - 1}-{season % 100:02d}",
        leaders=board.entries,
        order_verified=board.order_verified,
    )


@REGISTRY.register(
    "player",
    description="Full player profile with stats and career info",
    input=PlayerInput,
    price=3000,
)
async def player(ctx: EntrypointContext, params: PlayerInput) -> PlayerOutput:
    player_id = ctx.players.resolve_id(params.player_id)
    result = await ctx.orchestrator.gather([UpstreamCall("athlete", espn.athlete(player_id))])
    profile, season_stats, career_stats = norm.normalize_player(result.payload("athlete"))
    return PlayerOutput(player=profile, season_stats=season_stats, career_stats=career_stats)


@REGISTRY.register(
    "matchup",
    description="Full matchup preview comparing two teams",
    input=MatchupInput,
    price=5000,
)
async def matchup(ctx: EntrypointContext, params: MatchupInput) -> MatchupOutput:
    home_id = ctx.teams.resolve_id(params.home_team)
    away_id = ctx.teams.resolve_id(params.away_team)
    if home_id == away_id:
        raise InvalidInput("matchup", "home_team and away_team resolve to the same team")

    result = await ctx.orchestrator.gather([
        UpstreamCall("home_roster", espn.team_roster(home_id)),
        UpstreamCall("away_roster", espn.team_roster(away_id)),
        UpstreamCall("home_schedule", espn.team_schedule(home_id), required=False),
        UpstreamCall("away_schedule", espn.team_schedule(away_id), required=False),
    ])
    home = norm.normalize_matchup_side(result.payload("home_roster"), result.payload("home_schedule"), home_id)
    away = norm.normalize_matchup_side(result.payload("away_roster"), result.payload("away_schedule"), away_id)
    away_label = away.abbreviation or params.away_team.strip().upper()
    home_label = home.abbreviation or params.home_team.strip().upper()
    return MatchupOutput(
        matchup=f"{away_label} @ {home_label}",
        home_team=home,
        away_team=away,
        unavailable=list(result.failures),
    )


# ─── Dispatcher ───────────────────────────────────────────────────────────────


class EntrypointDispatcher:
    """Validate input, run the entrypoint's pipeline, wrap the output."""

    def __init__(self, context: EntrypointContext, registry: EntrypointRegistry = REGISTRY):
        self.context = context
        self.registry = registry

    async def dispatch(self, name: str, raw_input: Optional[Mapping[str, Any]] = None) -> EntrypointResult:
        entry = self.registry.get(name)
        if entry is None:
            available = ", ".join(e.key for e in self.registry)
            raise InvalidInput(name, f"unknown entrypoint (available: {available})")

        try:
            params = entry.input_model.model_validate(dict(raw_input or {}))
        except ValidationError as exc:
            raise InvalidInput(name, exc.errors(include_url=False)) from exc

        logger.info("Dispatching %s (price %s)", name, entry.price.label())
        output = await entry.handler(self.context, params)
        return EntrypointResult(output=output, fetched_at=output.fetched_at)

    def catalog(self) -> list[dict[str, Any]]:
        return [entry.describe() for entry in self.registry]

    async def aclose(self) -> None:
        await self.context.orchestrator.client.aclose()


def build_dispatcher(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    team_aliases: Optional[Mapping[str, str]] = None,
) -> EntrypointDispatcher:
    """Wire the default collaborators from settings."""
    settings = settings or Settings.from_env()
    client = espn.EspnClient(settings, transport=transport)
    cache = (
        ResponseCache(settings.cache_ttl_s, max_entries=settings.cache_max_entries)
        if settings.cache_ttl_s > 0
        else None
    )
    orchestrator = FetchOrchestrator(
        client,
        policy=settings.fetch_policy,
        cache=cache,
        request_timeout_s=settings.request_timeout_s,
    )
    context = EntrypointContext(
        teams=team_resolver(team_aliases),
        players=player_resolver(),
        orchestrator=orchestrator,
        settings=settings,
    )
    return EntrypointDispatcher(context)
