"""In-process traffic counters read and reset by the metrics reporter.

Counters are plain integers mutated from the event loop thread only, so no
locking is needed.  :meth:`Metrics.snapshot_and_reset` hands the reporter an
immutable copy and starts a new reporting period.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields


@dataclass(frozen=True)
class MetricsSnapshot:
    """Immutable view of one reporting period."""

    name_requests: int
    profile_requests: int
    name_cache_hits: int
    name_cache_misses: int
    profile_cache_hits: int
    profile_cache_misses: int
    batches_processed: int
    usernames_batched: int
    bytes_sent: int
    bytes_received: int
    upstream_requests: int
    upstream_errors: int
    started_at: float
    period_started_at: float
    taken_at: float

    @property
    def total_requests(self) -> int:
        return self.name_requests + self.profile_requests

    @property
    def cache_hit_rate(self) -> float | None:
        """Percentage of cache lookups that hit, or ``None`` with no lookups."""
        hits = self.name_cache_hits + self.profile_cache_hits
        lookups = hits + self.name_cache_misses + self.profile_cache_misses
        if lookups == 0:
            return None
        return hits / lookups * 100

    @property
    def uptime_seconds(self) -> float:
        return self.taken_at - self.started_at

    @property
    def period_seconds(self) -> float:
        return self.taken_at - self.period_started_at


@dataclass
class Metrics:
    """Monotonic counters for one reporting period."""

    name_requests: int = 0
    profile_requests: int = 0

    name_cache_hits: int = 0
    name_cache_misses: int = 0
    profile_cache_hits: int = 0
    profile_cache_misses: int = 0

    batches_processed: int = 0
    usernames_batched: int = 0

    bytes_sent: int = 0
    bytes_received: int = 0

    upstream_requests: int = 0
    upstream_errors: int = 0

    started_at: float = field(default_factory=time.time)
    last_report_at: float = field(default_factory=time.time)

    _TIMESTAMP_FIELDS = ("started_at", "last_report_at")

    def _counter_names(self) -> list[str]:
        return [f.name for f in fields(self) if f.name not in self._TIMESTAMP_FIELDS]

    def snapshot_and_reset(self, now: float | None = None) -> MetricsSnapshot:
        """Return the current counters and zero them for the next period."""
        taken_at = time.time() if now is None else now
        counters = {name: getattr(self, name) for name in self._counter_names()}
        snapshot = MetricsSnapshot(
            **counters,
            started_at=self.started_at,
            period_started_at=self.last_report_at,
            taken_at=taken_at,
        )
        for name in counters:
            setattr(self, name, 0)
        self.last_report_at = taken_at
        return snapshot
