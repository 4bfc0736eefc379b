"""ESPN NBA JSON API client.

Site API:  https://site.api.espn.com/apis/site/v2/sports/basketball/nba
Stats API: https://site.web.api.espn.com/apis/common/v3/sports/basketball/nba
No authentication required. Undocumented, so payload shapes drift; callers
must treat every field as optional.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

import httpx

from ..config import Settings
from ..errors import UpstreamTransportError, UpstreamUnavailable

logger = logging.getLogger(__name__)

Payload = dict[str, Any]


class Api(str, Enum):
    SITE = "site"
    STATS = "stats"


@dataclass(frozen=True)
class Endpoint:
    api: Api
    path: str


# Site API
SCOREBOARD = Endpoint(Api.SITE, "scoreboard")
NEWS = Endpoint(Api.SITE, "news")


def team_roster(team_id: str) -> Endpoint:
    return Endpoint(Api.SITE, f"teams/{team_id}/roster")


def team_schedule(team_id: str) -> Endpoint:
    return Endpoint(Api.SITE, f"teams/{team_id}/schedule")


def athlete(player_id: str) -> Endpoint:
    return Endpoint(Api.SITE, f"athletes/{player_id}")


# Stats API
ATHLETE_STATISTICS = Endpoint(Api.STATS, "statistics/byathlete")


class EspnClient:
    """One pooled AsyncClient for both ESPN APIs. No retries."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or Settings()
        self._bases = {
            Api.SITE: self.settings.site_api_base.rstrip("/"),
            Api.STATS: self.settings.stats_api_base.rstrip("/"),
        }
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def url_for(self, endpoint: Endpoint) -> str:
        return f"{self._bases[endpoint.api]}/{endpoint.path.lstrip('/')}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout_s, connect=self.settings.connect_timeout_s),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> EspnClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def fetch(self, endpoint: Endpoint, params: Optional[Mapping[str, Any]] = None) -> Payload:
        """GET one endpoint and return its JSON object.

        Raises:
            UpstreamUnavailable: non-2xx status (status preserved).
            UpstreamTransportError: the call could not complete or the body
                was not a JSON object.
        """
        url = self.url_for(endpoint)
        try:
            response = await self._get_client().get(url, params=dict(params) if params else None)
        except httpx.TimeoutException as exc:
            logger.warning("ESPN request timed out: %s (%s)", url, exc)
            raise UpstreamTransportError("timed out", url) from exc
        except httpx.TransportError as exc:
            logger.warning("ESPN request failed: %s (%s)", url, exc)
            raise UpstreamTransportError(str(exc) or type(exc).__name__, url) from exc

        if not response.is_success:
            logger.warning("ESPN returned HTTP %d for %s", response.status_code, url)
            raise UpstreamUnavailable(response.status_code, url)

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamTransportError("response was not valid JSON", url) from exc

        if not isinstance(data, dict):
            raise UpstreamTransportError(f"expected JSON object, got {type(data).__name__}", url)
        return data
