from __future__ import annotations

import copy
from typing import Any, Callable

import httpx
import pytest

from nba_stats.core.config import Settings

SITE = "https://site.api.espn.test/nba"
STATS = "https://stats.api.espn.test/nba"


def _event(
    event_id: str,
    short_name: str,
    state: str,
    *,
    home: tuple[str, str, Any, bool | None],
    away: tuple[str, str, Any, bool | None],
    completed: bool = False,
    detail: str = "Final",
    date: str = "2026-01-15T00:30Z",
) -> dict[str, Any]:
    def competitor(side: str, side_spec: tuple[str, str, Any, bool | None]) -> dict[str, Any]:
        team_id, abbr, score, winner = side_spec
        c: dict[str, Any] = {"homeAway": side, "team": {"id": team_id, "abbreviation": abbr}}
        if score is not None:
            c["score"] = score
        if winner is not None:
            c["winner"] = winner
        return c

    return {
        "id": event_id,
        "shortName": short_name,
        "date": date,
        "status": {"type": {"state": state, "shortDetail": detail, "completed": completed}},
        "competitions": [{
            "venue": {"fullName": "Crypto.com Arena"},
            "broadcasts": [{"names": ["ESPN"]}],
            "competitors": [competitor("home", home), competitor("away", away)],
        }],
    }


@pytest.fixture
def scoreboard_payload() -> dict[str, Any]:
    return {
        "day": {"date": "2026-01-15"},
        "events": [
            _event("401", "BOS @ LAL", "pre", detail="7:30 PM ET",
                   home=("13", "LAL", "0", None), away=("2", "BOS", "0", None)),
            _event("402", "GS @ DEN", "in", detail="Q3 4:12",
                   home=("7", "DEN", "88", None), away=("9", "GS", "81", None)),
            _event("403", "MIA @ NY", "post", completed=True,
                   home=("18", "NY", "110", True), away=("14", "MIA", "101", False)),
        ],
    }


@pytest.fixture
def news_payload() -> dict[str, Any]:
    return {"articles": [{"headline": "Lakers win again"}, {"headline": "Trade deadline primer"}, {"type": "Media"}]}


@pytest.fixture
def roster_payload() -> Callable[[str, str, str], dict[str, Any]]:
    def build(team_id: str = "13", abbr: str = "LAL", name: str = "Los Angeles Lakers") -> dict[str, Any]:
        athletes = [
            {"displayName": f"{abbr} Player {i}", "jersey": str(i), "position": {"abbreviation": "G"},
             "displayHeight": "6' 6\"", "displayWeight": "210 lbs"}
            for i in range(1, 8)
        ]
        return {
            "team": {"id": team_id, "displayName": name, "abbreviation": abbr, "location": "Los Angeles",
                     "color": "552583", "logo": "https://a.espncdn.com/lal.png"},
            "athletes": athletes,
        }

    return build


@pytest.fixture
def schedule_payload() -> Callable[[str], dict[str, Any]]:
    """Three completed games for `team_id` (2 wins) and one upcoming."""

    def build(team_id: str = "13") -> dict[str, Any]:
        us = lambda score, won: (team_id, "US", {"value": float(score), "displayValue": str(score)}, won)  # noqa: E731
        them = lambda score, won: ("99", "OPP", {"value": float(score), "displayValue": str(score)}, won)  # noqa: E731
        events = [
            _event("1", "OPP @ US", "post", completed=True, home=us(110, True), away=them(100, False),
                   date="2025-10-22T02:00Z"),
            _event("2", "US @ OPP", "post", completed=True, home=them(120, True), away=us(99, False),
                   date="2025-10-24T02:00Z"),
            _event("3", "OPP @ US", "post", completed=True, home=us(105, True), away=them(101, False),
                   date="2025-10-26T02:00Z"),
            _event("4", "US @ OPP", "pre", detail="Sat 7:00 PM", home=them(None, None), away=us(None, None),
                   date="2025-10-28T02:00Z"),
        ]
        # schedule events carry status on the competition, not the event
        for e in events:
            e["competitions"][0]["status"] = e.pop("status")
        return {"team": {"id": team_id}, "events": events}

    return build


@pytest.fixture
def leaders_payload() -> Callable[..., dict[str, Any]]:
    def build(points: tuple[float, ...] = (30.1, 28.4, 27.9)) -> dict[str, Any]:
        athletes = []
        for i, pts in enumerate(points, start=1):
            athletes.append({
                "athlete": {"displayName": f"P{i}", "teamShortName": "LAL", "position": {"abbreviation": "F"}},
                "categories": [{"stats": [
                    {"name": "gamesPlayed", "value": 40},
                    {"name": "avgPoints", "value": pts},
                    {"name": "avgRebounds", "value": 7.5},
                    {"name": "avgAssists", "value": 8.0},
                ]}],
            })
        return {"athletes": athletes}

    return build


@pytest.fixture
def athlete_payload() -> dict[str, Any]:
    return {
        "athlete": {
            "id": "1966",
            "displayName": "LeBron James",
            "firstName": "LeBron",
            "lastName": "James",
            "jersey": "23",
            "position": {"name": "Small Forward"},
            "team": {"id": "13", "displayName": "Los Angeles Lakers"},
            "displayHeight": "6' 9\"",
            "displayWeight": "250 lbs",
            "age": 41,
            "dateOfBirth": "1984-12-30T08:00Z",
            "birthPlace": {"city": "Akron"},
            "draft": {"year": 2003, "round": 1, "selection": 1},
            "experience": {"years": 23},
            "headshot": {"href": "https://a.espncdn.com/1966.png"},
            "statsSummary": {"statistics": [{"name": "avgPoints", "value": 24.4}, {"name": "avgRebounds", "value": 7.8}]},
            "career": {"stats": [{"categories": [{"stats": [{"name": "points", "value": 42184}]}]}]},
        }
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(site_api_base=SITE, stats_api_base=STATS)


class MockEspn:
    """Route table for httpx.MockTransport keyed by URL path suffix."""

    def __init__(self, routes: dict[str, Any]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix, outcome in self.routes.items():
            if request.url.path.endswith(suffix):
                if callable(outcome):
                    return outcome(request)
                if isinstance(outcome, httpx.Response):
                    return outcome
                return httpx.Response(200, json=copy.deepcopy(outcome))
        return httpx.Response(404, json={"message": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return sorted(r.url.path for r in self.requests)


@pytest.fixture
def mock_espn() -> Callable[[dict[str, Any]], MockEspn]:
    return MockEspn
