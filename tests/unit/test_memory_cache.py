"""Unit tests for MemoryCacheProvider."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mojang_proxy.providers.cache.memory_cache import (
    MemoryCacheProvider,
    normalize_username,
    normalize_uuid,
)
from tests.conftest import NOTCH_DASHED, NOTCH_UNDASHED, FakeClock


class TestMemoryCacheProvider:
    @pytest.fixture()
    def cache(self, clock: FakeClock) -> MemoryCacheProvider[str]:
        return MemoryCacheProvider(max_size=100, ttl=3600, clock=clock)

    def test_get_missing_key_returns_none(self, cache: MemoryCacheProvider[str]) -> None:
        assert cache.get("nonexistent") is None

    def test_put_and_get(self, cache: MemoryCacheProvider[str]) -> None:
        cache.put("alice", NOTCH_DASHED)
        entry = cache.get("alice")
        assert entry is not None
        assert entry.value == NOTCH_DASHED
        assert entry.exists is True

    def test_put_overwrites_existing(self, cache: MemoryCacheProvider[str]) -> None:
        cache.put("alice", "old")
        cache.put("alice", "new")
        entry = cache.get("alice")
        assert entry is not None and entry.value == "new"
        assert len(cache) == 1

    def test_keys_are_case_insensitive(self, cache: MemoryCacheProvider[str]) -> None:
        cache.put("Alice", NOTCH_DASHED)
        entry = cache.get("ALICE")
        assert entry is not None
        assert entry.value == NOTCH_DASHED

    def test_negative_entry_is_a_hit(self, cache: MemoryCacheProvider[str]) -> None:
        cache.put("ghost", None)
        entry = cache.get("ghost")
        assert entry is not None
        assert entry.value is None
        assert entry.exists is False

    def test_clear_removes_all(self, cache: MemoryCacheProvider[str]) -> None:
        cache.put("a", "1")
        cache.put("b", None)
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None


class TestMemoryCacheExpiry:
    def test_entry_served_up_to_ttl(self, clock: FakeClock) -> None:
        cache: MemoryCacheProvider[str] = MemoryCacheProvider(ttl=60, clock=clock)
        cache.put("alice", NOTCH_DASHED)
        clock.advance(60)
        assert cache.get("alice") is not None

    def test_entry_older_than_ttl_is_a_miss_and_dropped(self, clock: FakeClock) -> None:
        cache: MemoryCacheProvider[str] = MemoryCacheProvider(ttl=60, clock=clock)
        cache.put("alice", NOTCH_DASHED)
        clock.advance(61)
        assert cache.get("alice") is None
        assert len(cache) == 0

    def test_created_at_is_the_supplied_time(self, clock: FakeClock) -> None:
        cache: MemoryCacheProvider[str] = MemoryCacheProvider(ttl=60, clock=clock)
        cache.put("alice", NOTCH_DASHED, created_at=clock.now - 100)
        assert cache.get("alice") is None

    def test_datetime_created_at_is_floored_to_seconds(self, clock: FakeClock) -> None:
        cache: MemoryCacheProvider[str] = MemoryCacheProvider(ttl=60, clock=clock)
        stamp = datetime(2024, 1, 1, 12, 0, 0, 750_000, tzinfo=timezone.utc)  # noqa: UP017
        cache.put("alice", NOTCH_DASHED, created_at=stamp)
        entry = cache._cache["alice"]
        assert entry.created_at == int(stamp.replace(microsecond=0).timestamp())

    def test_negative_entries_expire_too(self, clock: FakeClock) -> None:
        cache: MemoryCacheProvider[str] = MemoryCacheProvider(ttl=10, clock=clock)
        cache.put("ghost", None)
        clock.advance(11)
        assert cache.get("ghost") is None


class TestMemoryCacheCapacity:
    def test_least_recently_used_entry_is_evicted(self, clock: FakeClock) -> None:
        cache: MemoryCacheProvider[str] = MemoryCacheProvider(max_size=2, ttl=3600, clock=clock)
        cache.put("a", "1")
        cache.put("b", "2")
        cache.get("a")  # "b" is now the least recently used
        cache.put("c", "3")

        assert cache.get("b") is None
        assert cache.get("a") is not None
        assert cache.get("c") is not None
        assert len(cache) == 2

    def test_max_size_property(self) -> None:
        cache: MemoryCacheProvider[str] = MemoryCacheProvider(max_size=7)
        assert cache.max_size == 7


class TestKeyNormalizers:
    def test_normalize_username_lowercases(self) -> None:
        assert normalize_username("JeB_") == "jeb_"

    def test_normalize_uuid_canonicalizes_both_forms(self) -> None:
        assert normalize_uuid(NOTCH_UNDASHED.upper()) == NOTCH_DASHED
        assert normalize_uuid(NOTCH_DASHED) == NOTCH_DASHED

    def test_profile_cache_shares_entries_between_forms(self, clock: FakeClock) -> None:
        cache: MemoryCacheProvider[str] = MemoryCacheProvider(
            normalize_key=normalize_uuid, clock=clock
        )
        cache.put(NOTCH_DASHED, "skin")
        entry = cache.get(NOTCH_UNDASHED)
        assert entry is not None and entry.value == "skin"
