"""NBA Stats MCP App Server.

FastMCP server exposing one read-only tool per priced entrypoint, plus the
MCP Apps interactive UI and an entrypoint catalog resource.
Run: nba-stats-mcp
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from . import get_app_html
from .core.entrypoints import EntrypointDispatcher, build_dispatcher

logger = logging.getLogger(__name__)

MCP_APP_MIME = "text/html;profile=mcp-app"

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)

_dispatcher: Optional[EntrypointDispatcher] = None


def get_dispatcher() -> EntrypointDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher()
    return _dispatcher


async def close_dispatcher() -> None:
    global _dispatcher
    if _dispatcher is not None:
        await _dispatcher.aclose()
        _dispatcher = None


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Configure logging and build the ESPN client; close it on shutdown."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    dispatcher = get_dispatcher()
    settings = dispatcher.context.settings
    logger.info(
        "NBA stats server ready (%d entrypoints, policy=%s, cache_ttl=%ss)",
        len(dispatcher.registry),
        settings.fetch_policy.value,
        settings.cache_ttl_s,
    )
    try:
        yield
    finally:
        await close_dispatcher()


mcp = FastMCP(
    "NBA Stats",
    instructions="Live NBA stats, scores, and player data via ESPN. Real-time game data, team rosters, league leaders, and matchup analysis for AI agents.",
    lifespan=lifespan,
)


async def _run(entrypoint: str, arguments: dict[str, Any]) -> dict:
    """Dispatch and return the output JSON. Errors propagate to FastMCP as tool errors."""
    params = {k: v for k, v in arguments.items() if v is not None}
    result = await get_dispatcher().dispatch(entrypoint, params)
    return result.output.to_json()


# ─── MCP Apps UI Resource ─────────────────────────────────────────────────────

APP_RESOURCE_URI = "ui://nba-stats/app"
CATALOG_RESOURCE_URI = "nba://entrypoints"


@mcp.resource(
    APP_RESOURCE_URI,
    mime_type=MCP_APP_MIME,
)
def app_ui() -> str:
    """NBA Stats: today's games dashboard and tool catalog."""
    return get_app_html()


@mcp.resource(CATALOG_RESOURCE_URI, mime_type="application/json")
def entrypoint_catalog() -> str:
    """Every entrypoint with its price tier and input schema."""
    return json.dumps(get_dispatcher().catalog(), indent=2)


# ─── Tool 1: Overview (free) ─────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def nba_overview() -> dict:
    """Free NBA overview: today's games and the latest league headlines."""
    return await _run("overview", {})


# ─── Tool 2: Scores ($0.001) ─────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def nba_scores(date: Optional[str] = None) -> dict:
    """Live NBA scores for today or a specific date. Price: $0.001.

    Scores are null for games that have not started.

    Args:
        date: Date in YYYYMMDD format. Default today.
    """
    return await _run("scores", {"date": date})


# ─── Tool 3: Team ($0.002) ───────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def nba_team(team: str) -> dict:
    """Team profile with roster and recent games. Price: $0.002.

    Args:
        team: Team abbreviation (LAL, BOS, GSW, etc.), name (Lakers) or ESPN team ID (1-30).
    """
    return await _run("team", {"team": team})


# ─── Tool 4: League Leaders ($0.002) ─────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def nba_leaders(category: str = "points", limit: int = 10, season: Optional[int] = None) -> dict:
    """NBA league leaders by statistical category. Price: $0.002.

    Args:
        category: One of 'points', 'rebounds', 'assists', 'steals', 'blocks'. Default 'points'.
        limit: Number of leaders, 1-100. Default 10.
        season: Season end year (2026 = 2025-26). Default: current season.
    """
    return await _run("leaders", {"category": category, "limit": limit, "season": season})


# ─── Tool 5: Player ($0.003) ─────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def nba_player(player_id: str) -> dict:
    """Full player profile with season and career stats. Price: $0.003.

    Args:
        player_id: ESPN player/athlete ID (e.g., '1966').
    """
    return await _run("player", {"player_id": player_id})


# ─── Tool 6: Matchup ($0.005) ────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def nba_matchup(home_team: str, away_team: str) -> dict:
    """Full matchup preview comparing two teams, starters and win/loss records. Price: $0.005.

    Args:
        home_team: Home team abbreviation, name or ID.
        away_team: Away team abbreviation, name or ID.
    """
    return await _run("matchup", {"home_team": home_team, "away_team": away_team})


# ─── Tool 7: Open MCP App (Interactive UI) ──────────────────────────────────


@mcp.tool(annotations=READ_ONLY, meta={"ui": {"resourceUri": APP_RESOURCE_URI}})
async def open_nba_app() -> dict:
    """Open the NBA Stats app with today's games, headlines and the tool catalog."""
    overview = await _run("overview", {})
    count = overview["gamesCount"]
    return {
        "title": "NBA Today",
        **overview,
        "summary": f"{count} game(s) on the slate" + (f" for {overview['date']}" if overview.get("date") else "") + ".",
    }


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
