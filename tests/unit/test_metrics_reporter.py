"""Unit tests for Metrics and MetricsReporter."""

from __future__ import annotations

import json

import httpx
import pytest

from mojang_proxy.services.metrics_reporter import (
    MetricsReporter,
    build_embed,
    format_bytes,
    format_uptime,
)
from mojang_proxy.utils.metrics import Metrics

WEBHOOK = "https://discord.test/api/webhooks/1/abc"


def _metrics(**counters: int) -> Metrics:
    metrics = Metrics(started_at=1000.0, last_report_at=1000.0)
    for name, value in counters.items():
        setattr(metrics, name, value)
    return metrics


class TestMetrics:
    def test_snapshot_resets_counters(self) -> None:
        metrics = _metrics(name_requests=5, upstream_errors=2, bytes_sent=100)
        snapshot = metrics.snapshot_and_reset(now=1300.0)

        assert snapshot.name_requests == 5
        assert snapshot.upstream_errors == 2
        assert snapshot.bytes_sent == 100
        assert metrics.name_requests == 0
        assert metrics.upstream_errors == 0
        assert metrics.last_report_at == 1300.0

    def test_periods_and_uptime(self) -> None:
        metrics = _metrics()
        metrics.snapshot_and_reset(now=1300.0)
        snapshot = metrics.snapshot_and_reset(now=1600.0)

        assert snapshot.uptime_seconds == 600.0
        assert snapshot.period_seconds == 300.0

    def test_cache_hit_rate(self) -> None:
        snapshot = _metrics(
            name_cache_hits=3, name_cache_misses=1, profile_cache_hits=0, profile_cache_misses=0
        ).snapshot_and_reset(now=1001.0)
        assert snapshot.cache_hit_rate == pytest.approx(75.0)

    def test_cache_hit_rate_without_lookups(self) -> None:
        assert _metrics().snapshot_and_reset(now=1001.0).cache_hit_rate is None

    def test_total_requests(self) -> None:
        snapshot = _metrics(name_requests=4, profile_requests=6).snapshot_and_reset(now=1001.0)
        assert snapshot.total_requests == 10


class TestFormatting:
    @pytest.mark.parametrize(
        ("num_bytes", "expected"),
        [(512, "512 B"), (2048, "2.00 KB"), (3 * 1024 * 1024, "3.00 MB")],
    )
    def test_format_bytes(self, num_bytes: int, expected: str) -> None:
        assert format_bytes(num_bytes) == expected

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "0s"), (59, "59s"), (61, "1m 1s"), (3_600, "1h 0s"), (90_061, "1d 1h 1m 1s")],
    )
    def test_format_uptime(self, seconds: float, expected: str) -> None:
        assert format_uptime(seconds) == expected

    @pytest.mark.parametrize(("errors", "color"), [(0, 0x2ECC71), (5, 0xF39C12), (11, 0xE74C3C)])
    def test_embed_color_tracks_error_count(self, errors: int, color: int) -> None:
        snapshot = _metrics(upstream_errors=errors).snapshot_and_reset(now=1001.0)
        assert build_embed(snapshot, host="node-1")["color"] == color

    def test_embed_footer_and_fields(self) -> None:
        snapshot = _metrics(name_requests=2).snapshot_and_reset(now=1001.0)
        embed = build_embed(snapshot, host="node-1")

        assert embed["footer"] == {"text": "node-1"}
        assert [f["name"] for f in embed["fields"]] == [
            "Requests",
            "Cache",
            "Batching",
            "Upstream",
            "Process",
        ]
        assert "N/A" in embed["fields"][1]["value"]


class TestMetricsReporter:
    @pytest.mark.asyncio
    async def test_report_posts_embed_to_webhook(self) -> None:
        posted: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            posted.append(json.loads(request.content))
            return httpx.Response(204)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        metrics = _metrics(name_requests=3)
        reporter = MetricsReporter(metrics, webhook_url=WEBHOOK, http_client=client)

        snapshot = await reporter.report_once()
        await client.aclose()

        assert snapshot.name_requests == 3
        assert metrics.name_requests == 0
        assert len(posted) == 1
        assert posted[0]["embeds"][0]["title"] == "Mojang proxy report"

    @pytest.mark.asyncio
    async def test_webhook_failure_is_not_raised(self) -> None:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )
        reporter = MetricsReporter(_metrics(), webhook_url=WEBHOOK, http_client=client)

        await reporter.report_once()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_no_webhook_only_logs(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(204)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        reporter = MetricsReporter(_metrics(), webhook_url="", http_client=client)

        await reporter.report_once()
        await client.aclose()
        assert calls == []

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        reporter = MetricsReporter(_metrics(), interval=60)
        reporter.start()
        await reporter.stop()
