"""Periodic export of traffic counters.

Every ``interval`` seconds the reporter takes a snapshot of the shared
:class:`Metrics` (resetting the counters), writes it to the structured log
and, when a Discord webhook URL is configured, posts it as an embed.  A
failing webhook is logged and never stops the loop.
"""

from __future__ import annotations

import asyncio
import socket
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from mojang_proxy.utils.logging import get_logger
from mojang_proxy.utils.metrics import Metrics, MetricsSnapshot

_logger: structlog.BoundLogger = get_logger(__name__)

DEFAULT_REPORT_INTERVAL = 5 * 60.0
_WEBHOOK_TIMEOUT = 10.0

_COLOR_OK = 0x2ECC71
_COLOR_WARN = 0xF39C12
_COLOR_BAD = 0xE74C3C


def format_bytes(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def format_uptime(seconds: float) -> str:
    total = int(seconds)
    days, rest = divmod(total, 86_400)
    hours, rest = divmod(rest, 3_600)
    minutes, secs = divmod(rest, 60)

    parts: list[str] = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)


def build_embed(snapshot: MetricsSnapshot, host: str | None = None) -> dict[str, Any]:
    """Render a snapshot as a Discord embed payload."""
    hit_rate = snapshot.cache_hit_rate
    if snapshot.upstream_errors == 0:
        color = _COLOR_OK
    elif snapshot.upstream_errors > 10:
        color = _COLOR_BAD
    else:
        color = _COLOR_WARN

    fields = [
        {
            "name": "Requests",
            "value": (
                f"Total: **{snapshot.total_requests:,}**\n"
                f"UUID: {snapshot.name_requests:,}\n"
                f"Skin: {snapshot.profile_requests:,}"
            ),
            "inline": True,
        },
        {
            "name": "Cache",
            "value": (
                f"Hit rate: **{'N/A' if hit_rate is None else f'{hit_rate:.1f}%'}**\n"
                f"UUID: {snapshot.name_cache_hits:,} hit / {snapshot.name_cache_misses:,} miss\n"
                f"Skin: {snapshot.profile_cache_hits:,} hit / {snapshot.profile_cache_misses:,} miss"
            ),
            "inline": True,
        },
        {
            "name": "Batching",
            "value": (
                f"Batches: {snapshot.batches_processed:,}\n"
                f"Usernames: {snapshot.usernames_batched:,}"
            ),
            "inline": True,
        },
        {
            "name": "Upstream",
            "value": (
                f"Requests: {snapshot.upstream_requests:,}\n"
                f"Errors: {snapshot.upstream_errors:,}\n"
                f"Sent: {format_bytes(snapshot.bytes_sent)}\n"
                f"Received: {format_bytes(snapshot.bytes_received)}"
            ),
            "inline": True,
        },
        {
            "name": "Process",
            "value": (
                f"Uptime: {format_uptime(snapshot.uptime_seconds)}\n"
                f"Period: {format_uptime(snapshot.period_seconds)}"
            ),
            "inline": True,
        },
    ]

    return {
        "title": "Mojang proxy report",
        "color": color,
        "fields": fields,
        "footer": {"text": host or socket.gethostname()},
        "timestamp": datetime.fromtimestamp(snapshot.taken_at, tz=timezone.utc).isoformat(),  # noqa: UP017
    }


class MetricsReporter:
    """Background task exporting :class:`Metrics` on a fixed cycle."""

    def __init__(
        self,
        metrics: Metrics,
        webhook_url: str = "",
        interval: float = DEFAULT_REPORT_INTERVAL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._metrics = metrics
        self._webhook_url = webhook_url
        self._interval = interval
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(_WEBHOOK_TIMEOUT))
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        _logger.info(
            "metrics_reporter_started",
            interval_seconds=self._interval,
            webhook=bool(self._webhook_url),
        )

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._owns_client:
            await self._client.aclose()
        _logger.info("metrics_reporter_stopped")

    async def report_once(self) -> MetricsSnapshot:
        """Snapshot, log and (optionally) post the current counters."""
        snapshot = self._metrics.snapshot_and_reset()
        _logger.info(
            "metrics_report",
            requests=snapshot.total_requests,
            name_requests=snapshot.name_requests,
            profile_requests=snapshot.profile_requests,
            cache_hit_rate=snapshot.cache_hit_rate,
            batches=snapshot.batches_processed,
            usernames_batched=snapshot.usernames_batched,
            upstream_requests=snapshot.upstream_requests,
            upstream_errors=snapshot.upstream_errors,
            bytes_sent=snapshot.bytes_sent,
            bytes_received=snapshot.bytes_received,
        )
        if self._webhook_url:
            await self._post(snapshot)
        return snapshot

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.report_once()

    async def _post(self, snapshot: MetricsSnapshot) -> None:
        try:
            response = await self._client.post(
                self._webhook_url,
                json={"embeds": [build_embed(snapshot)]},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            _logger.warning("metrics_webhook_failed", error=str(exc))
