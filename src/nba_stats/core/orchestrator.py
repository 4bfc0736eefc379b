"""Concurrent fan-out of upstream calls for one logical request.

Results are keyed by the role each call plays ("home_roster",
"away_schedule", ...) so the aggregate never depends on completion order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from .cache import ResponseCache, cache_key
from .clients.espn import Endpoint, EspnClient, Payload
from .config import FetchPolicy
from .errors import UpstreamError, UpstreamTransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamCall:
    role: str
    endpoint: Endpoint
    params: Optional[Mapping[str, Any]] = None
    required: bool = True


@dataclass
class FetchResult:
    """Payloads and failures keyed by role, in request order."""

    payloads: dict[str, Payload] = field(default_factory=dict)
    failures: dict[str, UpstreamError] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return bool(self.failures)

    def payload(self, role: str) -> Payload:
        """Payload for `role`, or an empty mapping when that call failed."""
        return self.payloads.get(role, {})


class FetchOrchestrator:
    """Issue independent upstream calls concurrently and join on all of them."""

    def __init__(
        self,
        client: EspnClient,
        *,
        policy: FetchPolicy = FetchPolicy.FAIL_FAST,
        cache: Optional[ResponseCache] = None,
        request_timeout_s: Optional[float] = None,
    ):
        self.client = client
        self.policy = policy
        self.cache = cache
        self.request_timeout_s = request_timeout_s

    async def fetch_one(self, call: UpstreamCall) -> Payload:
        if self.cache is None:
            return await self.client.fetch(call.endpoint, call.params)
        key = cache_key(self.client.url_for(call.endpoint), call.params)
        return await self.cache.get_or_fetch(key, lambda: self.client.fetch(call.endpoint, call.params))

    async def gather(self, calls: Sequence[UpstreamCall], *, policy: Optional[FetchPolicy] = None) -> FetchResult:
        roles = [c.role for c in calls]
        if len(set(roles)) != len(roles):
            raise ValueError(f"Duplicate roles in fan-out: {roles}")
        if not calls:
            return FetchResult()

        policy = policy or self.policy
        run = self._run(calls, policy)
        if self.request_timeout_s is None:
            return await run
        try:
            return await asyncio.wait_for(run, timeout=self.request_timeout_s)
        except asyncio.TimeoutError as exc:
            logger.warning("Fan-out of %d call(s) exceeded %.1fs: %s", len(calls), self.request_timeout_s, roles)
            raise UpstreamTransportError(f"request exceeded {self.request_timeout_s:g}s") from exc

    async def _run(self, calls: Sequence[UpstreamCall], policy: FetchPolicy) -> FetchResult:
        tasks = {call.role: asyncio.ensure_future(self.fetch_one(call)) for call in calls}
        by_role = {call.role: call for call in calls}
        pending = set(tasks.values())
        result = FetchResult()
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
                # request order among the calls that settled together
                for role, task in tasks.items():
                    if task not in done or role in result.failures:
                        continue
                    error = _task_error(task)
                    if error is None:
                        continue
                    if (
                        policy is FetchPolicy.FAIL_FAST
                        or by_role[role].required
                        or not isinstance(error, UpstreamError)
                    ):
                        raise error
                    logger.warning("Optional upstream call '%s' failed, continuing: %s", role, error)
                    result.failures[role] = error
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if len(result.failures) == len(calls):
            raise next(iter(result.failures.values()))

        for role, task in tasks.items():
            if role not in result.failures:
                result.payloads[role] = task.result()
        return result


def _task_error(task: asyncio.Future) -> Optional[BaseException]:
    if task.cancelled():
        return UpstreamTransportError("cancelled")
    return task.exception()
