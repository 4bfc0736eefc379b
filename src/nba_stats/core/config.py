"""Runtime settings, read from the environment."""

from __future__ import annotations

import os
from enum import Enum
from typing import Mapping, Optional

from pydantic import BaseModel, Field

SITE_API_BASE = "https://site.api.espn.com/apis/site/v2/sports/basketball/nba"
STATS_API_BASE = "https://site.web.api.espn.com/apis/common/v3/sports/basketball/nba"

DEFAULT_SEASON = 2026


class FetchPolicy(str, Enum):
    """How the orchestrator treats a failed upstream call."""

    FAIL_FAST = "fail_fast"
    BEST_EFFORT = "best_effort"


class Settings(BaseModel):
    """Upstream endpoints, timeouts, fan-out policy and caching."""

    site_api_base: str = SITE_API_BASE
    stats_api_base: str = STATS_API_BASE
    timeout_s: float = Field(30.0, gt=0)
    connect_timeout_s: float = Field(10.0, gt=0)
    request_timeout_s: Optional[float] = Field(None, gt=0, description="Bound on a whole fan-out; None disables it")
    fetch_policy: FetchPolicy = FetchPolicy.FAIL_FAST
    cache_ttl_s: float = Field(0.0, ge=0, description="0 disables the response cache")
    cache_max_entries: int = Field(1024, ge=1)
    season: int = Field(DEFAULT_SEASON, ge=2002)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        env = os.environ if environ is None else environ
        values: dict = {}
        if env.get("ESPN_SITE_API_BASE"):
            values["site_api_base"] = env["ESPN_SITE_API_BASE"].rstrip("/")
        if env.get("ESPN_STATS_API_BASE"):
            values["stats_api_base"] = env["ESPN_STATS_API_BASE"].rstrip("/")
        if env.get("NBA_HTTP_TIMEOUT_SECONDS"):
            values["timeout_s"] = float(env["NBA_HTTP_TIMEOUT_SECONDS"])
        if env.get("NBA_REQUEST_TIMEOUT_SECONDS"):
            values["request_timeout_s"] = float(env["NBA_REQUEST_TIMEOUT_SECONDS"])
        if env.get("NBA_FETCH_POLICY"):
            values["fetch_policy"] = FetchPolicy(env["NBA_FETCH_POLICY"].strip().lower())
        if env.get("NBA_CACHE_TTL_SECONDS"):
            values["cache_ttl_s"] = float(env["NBA_CACHE_TTL_SECONDS"])
        if env.get("NBA_CACHE_MAX_ENTRIES"):
            values["cache_max_entries"] = int(env["NBA_CACHE_MAX_ENTRIES"])
        if env.get("NBA_SEASON"):
            values["season"] = int(env["NBA_SEASON"])
        return cls(**values)

