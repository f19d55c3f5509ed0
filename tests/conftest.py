"""Shared pytest fixtures for the Mojang proxy test suite."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from mojang_proxy.interfaces.dispatcher import IDispatcher, UpstreamResponse
from mojang_proxy.providers.cache.memory_cache import (
    MemoryCacheProvider,
    normalize_username,
    normalize_uuid,
)
from mojang_proxy.utils.metrics import Metrics

# Real account data used throughout the tests.
NOTCH_UNDASHED = "069a79f444e94726a5befca90e38aaf6"
NOTCH_DASHED = "069a79f4-44e9-4726-a5be-fca90e38aaf6"
JEB_UNDASHED = "853c80ef3c3749fdaa49938b674adae6"
JEB_DASHED = "853c80ef-3c37-49fd-aa49-938b674adae6"

BATCH_URL = "https://batch.test/profiles/minecraft"

KNOWN_PLAYERS = {
    "alice": ("Alice", NOTCH_UNDASHED),
    "jeb_": ("jeb_", JEB_UNDASHED),
}


# ---------------------------------------------------------------------------
# Fake upstream
# ---------------------------------------------------------------------------


def known_players_response(url: str, usernames: list[str]) -> UpstreamResponse:
    """Answer like the bulk endpoint: only existing players, canonical casing."""
    body = []
    for name in usernames:
        known = KNOWN_PLAYERS.get(name.lower())
        if known is not None:
            body.append({"id": known[1], "name": known[0]})
    return UpstreamResponse(status_code=200, body=body)


def textures_profile_response(url: str) -> UpstreamResponse:
    return UpstreamResponse(
        status_code=200,
        body={
            "id": NOTCH_UNDASHED,
            "name": "Alice",
            "properties": [
                {"name": "textures", "value": "dGV4dHVyZXM=", "signature": "c2lnbmF0dXJl"}
            ],
        },
    )


class FakeDispatcher(IDispatcher):
    """Scripted IDispatcher recording every call.

    ``on_post`` / ``on_get`` compute the response; they may raise to
    simulate transport failures.
    """

    def __init__(self) -> None:
        self.post_calls: list[tuple[str, Any]] = []
        self.get_calls: list[str] = []
        self.on_post: Callable[[str, Any], UpstreamResponse] = known_players_response
        self.on_get: Callable[[str], UpstreamResponse] = textures_profile_response
        self.closed = False

    async def get(self, url: str) -> UpstreamResponse:
        self.get_calls.append(url)
        return self.on_get(url)

    async def post(self, url: str, json_body: Any) -> UpstreamResponse:
        self.post_calls.append((url, list(json_body)))
        return self.on_post(url, json_body)

    def pick_batch_endpoint(self) -> str:
        return BATCH_URL

    async def aclose(self) -> None:
        self.closed = True

    @property
    def posted_batches(self) -> list[list[str]]:
        return [body for _, body in self.post_calls]


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics() -> Metrics:
    return Metrics()


@pytest.fixture
def name_cache(clock: FakeClock) -> MemoryCacheProvider:
    return MemoryCacheProvider(
        max_size=100, ttl=3600, name="name_cache", normalize_key=normalize_username, clock=clock
    )


@pytest.fixture
def profile_cache(clock: FakeClock) -> MemoryCacheProvider:
    return MemoryCacheProvider(
        max_size=100, ttl=3600, name="profile_cache", normalize_key=normalize_uuid, clock=clock
    )
