from __future__ import annotations

import asyncio

import pytest

from nba_stats.core.cache import ResponseCache, cache_key
from nba_stats.core.clients.espn import Api, Endpoint
from nba_stats.core.errors import UpstreamUnavailable
from nba_stats.core.orchestrator import FetchOrchestrator, UpstreamCall


class Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_concurrent_identical_fetches_share_one_call() -> None:
    cache = ResponseCache(60)
    calls = 0

    async def fetch() -> dict:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.05)
        return {"events": [1]}

    async def run() -> list:
        return await asyncio.gather(*(cache.get_or_fetch("k", fetch) for _ in range(5)))

    results = asyncio.run(run())

    assert calls == 1
    assert results == [{"events": [1]}] * 5
    assert cache.misses == 1
    assert cache.hits == 4


def test_entries_expire_after_ttl() -> None:
    clock = Clock()
    cache = ResponseCache(30, clock=clock)
    calls = 0

    async def fetch() -> int:
        nonlocal calls
        calls += 1
        return calls

    assert asyncio.run(cache.get_or_fetch("k", fetch)) == 1
    clock.now = 29.0
    assert asyncio.run(cache.get_or_fetch("k", fetch)) == 1
    clock.now = 30.0
    assert asyncio.run(cache.get_or_fetch("k", fetch)) == 2


def test_failures_are_shared_but_not_cached() -> None:
    cache = ResponseCache(60)
    attempts = 0

    async def failing() -> dict:
        nonlocal attempts
        attempts += 1
        await asyncio.sleep(0.01)
        raise UpstreamUnavailable(503)

    async def run() -> list:
        return await asyncio.gather(
            cache.get_or_fetch("k", failing),
            cache.get_or_fetch("k", failing),
            return_exceptions=True,
        )

    results = asyncio.run(run())
    assert attempts == 1
    assert all(isinstance(r, UpstreamUnavailable) for r in results)
    assert len(cache) == 0

    async def ok() -> dict:
        return {"ok": True}

    assert asyncio.run(cache.get_or_fetch("k", ok)) == {"ok": True}


def test_ttl_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ResponseCache(0)


def test_cache_key_ignores_param_order() -> None:
    assert cache_key("u", {"a": 1, "b": 2}) == cache_key("u", {"b": 2, "a": 1})
    assert cache_key("u", None) == cache_key("u", {})


def test_orchestrator_dedupes_concurrent_requests_through_cache() -> None:
    class CountingClient:
        def __init__(self) -> None:
            self.calls = 0

        def url_for(self, endpoint: Endpoint) -> str:
            return f"https://espn.test/{endpoint.path}"

        async def fetch(self, endpoint: Endpoint, params=None) -> dict:
            self.calls += 1
            await asyncio.sleep(0.05)
            return {"path": endpoint.path}

    client = CountingClient()
    orchestrator = FetchOrchestrator(client, cache=ResponseCache(60))
    call = UpstreamCall("scoreboard", Endpoint(Api.SITE, "scoreboard"), {"dates": "20260115"})

    async def run() -> list:
        return await asyncio.gather(*(orchestrator.gather([call]) for _ in range(3)))

    results = asyncio.run(run())
    assert client.calls == 1
    assert all(r.payloads == {"scoreboard": {"path": "scoreboard"}} for r in results)


class SlowClient:
    """Per-path delay and outcome; counts calls and cancellations."""

    def __init__(self, responses: dict) -> None:
        self.responses = responses
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    def url_for(self, endpoint: Endpoint) -> str:
        return f"https://espn.test/{endpoint.path}"

    async def fetch(self, endpoint: Endpoint, params=None) -> dict:
        self.calls.append(endpoint.path)
        delay, outcome = self.responses[endpoint.path]
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(endpoint.path)
            raise
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def test_other_request_survives_first_callers_fail_fast() -> None:
    client = SlowClient({
        "shared": (0.05, {"ok": "shared"}),
        "bad": (0.01, UpstreamUnavailable(503)),
    })
    orchestrator = FetchOrchestrator(client, cache=ResponseCache(60))
    shared = UpstreamCall("shared", Endpoint(Api.SITE, "shared"))
    bad = UpstreamCall("bad", Endpoint(Api.SITE, "bad"))

    async def run() -> list:
        first = asyncio.ensure_future(orchestrator.gather([shared, bad]))
        await asyncio.sleep(0)
        second = asyncio.ensure_future(orchestrator.gather([shared]))
        return await asyncio.gather(first, second, return_exceptions=True)

    first, second = asyncio.run(run())

    assert isinstance(first, UpstreamUnavailable)
    assert second.payloads == {"shared": {"ok": "shared"}}
    assert client.calls.count("shared") == 1
    assert client.cancelled == []


def test_cancelled_waiter_does_not_cancel_shared_fetch() -> None:
    cache = ResponseCache(60)
    cancelled = []

    async def fetch() -> dict:
        try:
            await asyncio.sleep(0.05)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise
        return {"events": []}

    async def run() -> dict:
        leader = asyncio.ensure_future(cache.get_or_fetch("k", fetch))
        waiter = asyncio.ensure_future(cache.get_or_fetch("k", fetch))
        await asyncio.sleep(0.01)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        return await leader

    assert asyncio.run(run()) == {"events": []}
    assert cancelled == []
    assert len(cache) == 1


def test_first_caller_cancelled_waiter_still_gets_result() -> None:
    cache = ResponseCache(60)

    async def fetch() -> dict:
        await asyncio.sleep(0.05)
        return {"events": [1]}

    async def run() -> dict:
        leader = asyncio.ensure_future(cache.get_or_fetch("k", fetch))
        await asyncio.sleep(0)
        waiter = asyncio.ensure_future(cache.get_or_fetch("k", fetch))
        await asyncio.sleep(0.01)
        leader.cancel()
        with pytest.raises(asyncio.CancelledError):
            await leader
        return await waiter

    assert asyncio.run(run()) == {"events": [1]}
    assert cache.misses == 1


def test_fetch_is_cancelled_when_every_caller_leaves() -> None:
    cache = ResponseCache(60)
    cancelled = []

    async def fetch() -> dict:
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise
        return {}

    async def run() -> None:
        callers = [asyncio.ensure_future(cache.get_or_fetch("k", fetch)) for _ in range(2)]
        await asyncio.sleep(0.01)
        for caller in callers:
            caller.cancel()
        await asyncio.gather(*callers, return_exceptions=True)
        await asyncio.sleep(0.01)

    asyncio.run(run())
    assert cancelled == [True]
    assert cache.inflight == 0
    assert len(cache) == 0


def test_expired_keys_are_swept_on_insert() -> None:
    clock = Clock()
    cache = ResponseCache(1, clock=clock)

    async def fetch() -> dict:
        return {"ok": True}

    async def run() -> None:
        for i in range(100):
            clock.now = i * 10.0
            await cache.get_or_fetch(f"date-{i}", fetch)

    asyncio.run(run())
    assert len(cache) == 1


def test_max_entries_drops_oldest() -> None:
    cache = ResponseCache(60, max_entries=2)

    async def fetch() -> dict:
        return {"ok": True}

    async def run() -> None:
        for key in ("a", "b", "c"):
            await cache.get_or_fetch(key, fetch)

    asyncio.run(run())
    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == {"ok": True}


def test_max_entries_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ResponseCache(60, max_entries=0)
