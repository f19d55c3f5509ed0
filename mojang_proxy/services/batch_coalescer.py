"""Coalesces username -> UUID lookups into batched upstream calls.

Callers await :meth:`BatchCoalescer.resolve_name`.  Cache hits return
immediately; misses join a FIFO window that is flushed to the bulk endpoint
either when it holds ``batch_size`` requests or when the periodic timer
fires, whichever comes first.  Each flush fans the upstream answer back out
to the futures it claimed.

Concurrency model
-----------------
Everything runs on one event loop.  Cache reads/writes, enqueueing and the
claim of a batch from the window never await, so they cannot interleave.
The claim always completes before the flush's upstream call starts; two
flushes therefore never share a request.  Several flushes may be in flight
at once, each touching only the requests it claimed.

Failure policy
--------------
A flush-level failure (HTTP 400, other non-2xx, timeout, transport error)
fails every request of that flush with the same error and writes nothing to
the cache, so a retry is never served a poisoned entry.  An unparseable id
fails only the affected request.  Nothing is retried automatically.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

import structlog

from mojang_proxy.interfaces.cache_provider import ICacheProvider
from mojang_proxy.interfaces.dispatcher import IDispatcher
from mojang_proxy.utils.errors import (
    DataIntegrityError,
    LookupValidationError,
    MojangProxyError,
    ServiceClosedError,
    UpstreamServerError,
    UpstreamTransportError,
)
from mojang_proxy.utils.logging import get_logger
from mojang_proxy.utils.metrics import Metrics
from mojang_proxy.utils.uuid_utils import try_parse_uuid

_logger: structlog.BoundLogger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_INTERVAL = 3.0  # seconds


@dataclass(frozen=True)
class NameLookupResult:
    """Outcome of a username lookup."""

    exists: bool
    uuid: str | None

    @classmethod
    def found(cls, uuid: str) -> NameLookupResult:
        return cls(exists=True, uuid=uuid)

    @classmethod
    def missing(cls) -> NameLookupResult:
        return cls(exists=False, uuid=None)


@dataclass
class PendingRequest:
    """A cache-missed lookup waiting for a flush to claim it."""

    name: str
    future: asyncio.Future[NameLookupResult] = field(repr=False)

    def resolve(self, result: NameLookupResult) -> None:
        if not self.future.done():
            self.future.set_result(result)

    def fail(self, error: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(error)


class BatchCoalescer:
    """Batches username lookups against the bulk profile endpoint.

    Parameters
    ----------
    dispatcher:
        Upstream I/O; its ``pick_batch_endpoint`` spreads calls over the
        configured equivalent endpoints.
    cache:
        The username -> UUID cache (owned by this instance; cleared on
        shutdown).
    batch_size:
        Maximum names per upstream call and the size that triggers an
        immediate flush.
    interval:
        Seconds between periodic flushes.
    metrics:
        Lookup, cache and batch counters.
    """

    def __init__(
        self,
        dispatcher: IDispatcher,
        cache: ICacheProvider[str],
        batch_size: int = DEFAULT_BATCH_SIZE,
        interval: float = DEFAULT_BATCH_INTERVAL,
        metrics: Metrics | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._dispatcher = dispatcher
        self._cache = cache
        self._batch_size = batch_size
        self._interval = interval
        self._metrics = metrics or Metrics()

        self._window: deque[PendingRequest] = deque()
        self._inflight: set[asyncio.Task[None]] = set()
        self._timer_task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def pending_count(self) -> int:
        """Number of requests waiting in the window (not yet claimed)."""
        return len(self._window)

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic flush timer.  Must be called from a running loop."""
        if self._closed:
            raise ServiceClosedError(provider_name="batch_coalescer")
        if self.is_running:
            return
        self._timer_task = asyncio.get_running_loop().create_task(self._run_timer())
        _logger.info(
            "batch_coalescer_started",
            batch_size=self._batch_size,
            interval_seconds=self._interval,
        )

    async def shutdown(self) -> None:
        """Stop the timer, flush everything still queued, then release the cache.

        Requests left in the window are flushed in ``batch_size`` chunks so
        none is abandoned; in-flight flushes are awaited before the cache is
        cleared.
        """
        if self._closed:
            return
        self._closed = True

        if self._timer_task is not None:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

        remaining = len(self._window)
        while self._window:
            self._schedule_flush(reason="shutdown")
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

        self._cache.clear()
        _logger.info("batch_coalescer_stopped", flushed_on_shutdown=remaining)

    # ------------------------------------------------------------------
    # Request path
    # ------------------------------------------------------------------

    async def resolve_name(self, name: str) -> NameLookupResult:
        """Resolve *name* to a UUID, from cache or via the next batch.

        Raises
        ------
        LookupValidationError
            The upstream rejected the batch this name was sent in.
        UpstreamServerError
            The upstream answered with another non-2xx status.
        UpstreamTimeoutError
            The batch call exceeded its deadline.
        UpstreamTransportError
            The batch call failed at the network level.
        DataIntegrityError
            The upstream returned an id for this name that is not a UUID.
        ServiceClosedError
            The coalescer has been shut down.
        """
        if self._closed:
            raise ServiceClosedError(provider_name="batch_coalescer")

        self._metrics.name_requests += 1
        cached = self._cache.get(name)
        if cached is not None:
            self._metrics.name_cache_hits += 1
            if cached.value is None:
                return NameLookupResult.missing()
            return NameLookupResult.found(cached.value)

        self._metrics.name_cache_misses += 1
        future: asyncio.Future[NameLookupResult] = asyncio.get_running_loop().create_future()
        self._window.append(PendingRequest(name=name, future=future))

        if len(self._window) >= self._batch_size:
            self._schedule_flush(reason="size")

        return await future

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    def flush_now(self) -> asyncio.Task[None] | None:
        """Claim up to ``batch_size`` queued requests and dispatch them.

        Returns the task running the upstream call, or ``None`` if the window
        was empty.
        """
        return self._schedule_flush(reason="manual")

    def _claim_batch(self) -> list[PendingRequest]:
        # Never awaits: this is what keeps concurrent flushes disjoint.
        count = min(self._batch_size, len(self._window))
        return [self._window.popleft() for _ in range(count)]

    def _schedule_flush(self, reason: str) -> asyncio.Task[None] | None:
        batch = self._claim_batch()
        if not batch:
            return None
        task = asyncio.get_running_loop().create_task(self._dispatch_batch(batch, reason))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._schedule_flush(reason="timer")

    async def _dispatch_batch(self, batch: list[PendingRequest], reason: str) -> None:
        usernames = [request.name for request in batch]
        endpoint = self._dispatcher.pick_batch_endpoint()
        self._metrics.batches_processed += 1
        self._metrics.usernames_batched += len(usernames)

        _logger.info(
            "batch_flushing",
            reason=reason,
            size=len(usernames),
            endpoint=endpoint,
        )

        try:
            response = await self._dispatcher.post(endpoint, usernames)
        except UpstreamTransportError as exc:
            _logger.error("batch_transport_failed", error=str(exc), size=len(batch))
            error_cls = type(exc)
            self._fail_all(
                batch,
                lambda: error_cls(message=exc.message, provider_name=exc.provider_name),
            )
            return
        except Exception:
            # Claimed callers must still be released exactly once.
            _logger.exception("batch_unexpected_error", size=len(batch))
            self._fail_all(
                batch,
                lambda: MojangProxyError(
                    message="Internal server error", provider_name="batch_coalescer"
                ),
            )
            return

        if response.status_code == 400:
            _logger.error("batch_rejected", status=400, body=response.body, size=len(batch))
            self._fail_all(
                batch,
                lambda: LookupValidationError(
                    message="Validation error in batch request",
                    provider_name="mojang",
                ),
            )
            return

        if not response.is_success:
            _logger.error("batch_server_error", status=response.status_code, size=len(batch))
            self._fail_all(
                batch,
                lambda: UpstreamServerError(
                    message=f"Server error: {response.status_code}",
                    provider_name="mojang",
                    upstream_status=response.status_code,
                ),
            )
            return

        if not isinstance(response.body, list):
            _logger.error(
                "batch_malformed_body",
                body_type=type(response.body).__name__,
                size=len(batch),
            )
            self._fail_all(
                batch,
                lambda: DataIntegrityError(
                    message="Batch response is not a list of profiles",
                    provider_name="mojang",
                ),
            )
            return

        self._resolve_batch(batch, response.body)

    def _resolve_batch(self, batch: list[PendingRequest], body: list[object]) -> None:
        by_name: dict[str, object] = {}
        unreadable = 0
        for entry in body:
            if isinstance(entry, dict) and isinstance(entry.get("name"), str):
                by_name[entry["name"].lower()] = entry.get("id")
            else:
                unreadable += 1

        if unreadable:
            _logger.warning("batch_unreadable_entries", count=unreadable, size=len(batch))

        found = 0
        for request in batch:
            key = request.name.lower()
            if key not in by_name:
                if unreadable:
                    # An unreadable entry may have been this name's answer.
                    request.fail(
                        DataIntegrityError(
                            message="Unreadable entry in batch response",
                            provider_name="mojang",
                        )
                    )
                    continue
                self._cache.put(request.name, None)
                request.resolve(NameLookupResult.missing())
                continue

            uuid = try_parse_uuid(by_name[key])  # type: ignore[arg-type]
            if uuid is None:
                _logger.warning("batch_invalid_uuid", name=request.name, raw_id=by_name[key])
                request.fail(DataIntegrityError(provider_name="mojang"))
                continue

            self._cache.put(request.name, uuid)
            request.resolve(NameLookupResult.found(uuid))
            found += 1

        _logger.info("batch_resolved", size=len(batch), found=found)

    @staticmethod
    def _fail_all(
        batch: list[PendingRequest], make_error: Callable[[], MojangProxyError]
    ) -> None:
        for request in batch:
            request.fail(make_error())
