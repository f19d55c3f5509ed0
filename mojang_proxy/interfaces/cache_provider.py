"""Abstract base class for lookup-result caches.

Defines the contract for the two expiring key-value stores used by the
proxy (username -> UUID and UUID -> skin property).  Implementations may be
memory-resident or backed by another store; the batch coalescer and the
profile resolver only depend on this interface.

Unlike a general-purpose async cache, every operation here is synchronous.
The coalescer relies on cache reads and writes completing without yielding
to the event loop, so an implementation must never perform I/O.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached lookup result.

    ``value is None`` is a first-class "confirmed does not exist" result,
    distinct from a cache miss (which is represented by ``get`` returning
    ``None`` instead of an entry).
    """

    created_at: int
    value: V | None

    @property
    def exists(self) -> bool:
        return self.value is not None


class ICacheProvider(ABC, Generic[V]):
    """Contract for expiring lookup-result caches."""

    @abstractmethod
    def get(self, key: str) -> CacheEntry[V] | None:
        """Return the live entry for *key*, or ``None`` on a miss.

        Parameters
        ----------
        key:
            Lookup key; implementations normalize it before use.

        Returns
        -------
        CacheEntry or None
            The entry if present and younger than the TTL; ``None`` otherwise.
        """

    @abstractmethod
    def put(self, key: str, value: V | None, created_at: datetime | float | None = None) -> None:
        """Store *value* (or a negative result) under *key*.

        Parameters
        ----------
        key:
            Lookup key; implementations normalize it before use.
        value:
            The result to cache.  ``None`` records "does not exist".
        created_at:
            When the result was obtained.  Defaults to the cache clock's now.
        """

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of physically stored entries (expired ones included)."""
