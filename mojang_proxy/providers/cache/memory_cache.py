"""In-memory lookup cache backed by ``cachetools.LRUCache``.

Capacity is bounded by LRU eviction; freshness is bounded by comparing each
entry's ``created_at`` against the TTL on every read.  The creation time is
supplied by the caller (the moment the upstream answered) rather than taken
at insertion, so the expiry check lives here instead of in
``cachetools.TTLCache``.

Contents are lost on restart.
"""

from __future__ import annotations

import math
import time
from datetime import datetime
from typing import Callable, TypeVar

import structlog
from cachetools import LRUCache

from mojang_proxy.interfaces.cache_provider import CacheEntry, ICacheProvider
from mojang_proxy.utils.uuid_utils import try_parse_uuid

logger = structlog.get_logger(logger_name=__name__)

V = TypeVar("V")

DEFAULT_MAX_SIZE = 10_000
DEFAULT_TTL_SECONDS = 6 * 60 * 60


def normalize_username(key: str) -> str:
    return key.lower()


def normalize_uuid(key: str) -> str:
    """Canonical dashed form for valid ids; plain lowercase otherwise."""
    return try_parse_uuid(key) or key.lower()


class MemoryCacheProvider(ICacheProvider[V]):
    """Memory-resident LRU cache with per-entry expiry.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    ttl:
        Seconds after ``created_at`` at which an entry stops being served.
    name:
        Label used in log events (``"name"`` or ``"profile"``).
    normalize_key:
        Maps raw keys to their canonical form before every lookup/store.
    clock:
        Returns the current time in seconds; injectable for tests.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl: int = DEFAULT_TTL_SECONDS,
        name: str = "cache",
        normalize_key: Callable[[str], str] = normalize_username,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl
        self._name = name
        self._normalize_key = normalize_key
        self._clock = clock
        self._cache: LRUCache[str, CacheEntry[V]] = LRUCache(maxsize=max_size)

    @property
    def ttl(self) -> int:
        return self._ttl

    @property
    def max_size(self) -> int:
        return int(self._cache.maxsize)

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    def get(self, key: str) -> CacheEntry[V] | None:
        """Return the entry for *key* if present and not older than the TTL."""
        normalized = self._normalize_key(key)
        entry = self._cache.get(normalized)
        if entry is None:
            logger.debug("cache_miss", cache=self._name, key=normalized)
            return None

        if self._clock() - entry.created_at > self._ttl:
            self._cache.pop(normalized, None)
            logger.debug("cache_expired", cache=self._name, key=normalized)
            return None

        logger.debug("cache_hit", cache=self._name, key=normalized)
        return entry

    def put(self, key: str, value: V | None, created_at: datetime | float | None = None) -> None:
        """Store *value* under *key*, replacing any previous entry."""
        normalized = self._normalize_key(key)
        entry = CacheEntry(created_at=self._to_seconds(created_at), value=value)
        # Deleting first moves a re-inserted key to the most-recent position.
        self._cache.pop(normalized, None)
        self._cache[normalized] = entry
        logger.debug("cache_set", cache=self._name, key=normalized, exists=entry.exists)

    def clear(self) -> None:
        self._cache.clear()
        logger.info("cache_cleared", cache=self._name)

    def __len__(self) -> int:
        return len(self._cache)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _to_seconds(self, created_at: datetime | float | None) -> int:
        if created_at is None:
            return math.floor(self._clock())
        if isinstance(created_at, datetime):
            return math.floor(created_at.timestamp())
        return math.floor(created_at)
