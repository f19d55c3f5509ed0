"""httpx-based dispatcher for calls against the Mojang API.

Every call:

1. asks the outbound identity provider for a source address or proxy,
2. builds an ``httpx.AsyncHTTPTransport`` bound to that identity,
3. runs the request under a single deadline covering connect, send and
   read (httpx's own timeouts are per phase, so the total is enforced with
   ``asyncio.wait_for``),
4. returns the status and decoded JSON body without raising on non-2xx.

Calls without a special identity share one pooled client; identity-bound
calls get a short-lived client because a transport can only be bound to a
single local address or proxy.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Callable

import httpx
import structlog

from mojang_proxy.interfaces.dispatcher import IDispatcher, UpstreamResponse
from mojang_proxy.interfaces.outbound_identity import (
    IOutboundIdentityProvider,
    LocalAddress,
    OutboundIdentity,
    ProxyEntry,
)
from mojang_proxy.providers.outbound.direct import DirectProvider
from mojang_proxy.utils.errors import (
    ConfigurationError,
    UpstreamTimeoutError,
    UpstreamTransportError,
)
from mojang_proxy.utils.metrics import Metrics

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_USER_AGENT = "SRMojangAPI"

TransportFactory = Callable[[OutboundIdentity | None], httpx.AsyncBaseTransport]


def build_transport(identity: OutboundIdentity | None) -> httpx.AsyncBaseTransport:
    """Create a transport that connects using *identity*."""
    if isinstance(identity, LocalAddress):
        return httpx.AsyncHTTPTransport(local_address=identity.host)
    if isinstance(identity, ProxyEntry):
        return httpx.AsyncHTTPTransport(proxy=httpx.Proxy(identity.url, auth=identity.auth))
    return httpx.AsyncHTTPTransport()


class HttpDispatcher(IDispatcher):
    """Upstream dispatcher with per-call identity rotation and a hard deadline.

    Parameters
    ----------
    batch_endpoints:
        Functionally equivalent bulk name-lookup URLs.
    identity_provider:
        Outbound identity strategy; defaults to :class:`DirectProvider`.
    timeout:
        Per-call deadline in seconds.
    user_agent:
        ``User-Agent`` header sent upstream.
    metrics:
        Counters for requests, errors and traffic volume.
    rng:
        Random source for endpoint selection.
    transport_factory:
        Builds the transport for an identity; tests pass one returning an
        ``httpx.MockTransport``.
    """

    def __init__(
        self,
        batch_endpoints: list[str],
        identity_provider: IOutboundIdentityProvider | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        metrics: Metrics | None = None,
        rng: random.Random | None = None,
        transport_factory: TransportFactory = build_transport,
    ) -> None:
        if not batch_endpoints:
            raise ConfigurationError(
                message="At least one batch endpoint must be configured",
                provider_name="mojang",
            )
        self._batch_endpoints = list(batch_endpoints)
        self._identity_provider = identity_provider or DirectProvider()
        self._timeout = timeout
        self._metrics = metrics or Metrics()
        self._rng = rng or random.SystemRandom()
        self._transport_factory = transport_factory
        self._headers = {
            "Accept": "application/json",
            "Accept-Language": "en-US,en",
            "User-Agent": user_agent,
        }
        self._shared_client: httpx.AsyncClient | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    # ------------------------------------------------------------------
    # IDispatcher implementation
    # ------------------------------------------------------------------

    async def get(self, url: str) -> UpstreamResponse:
        return await self._request("GET", url)

    async def post(self, url: str, json_body: Any) -> UpstreamResponse:
        return await self._request("POST", url, json_body=json_body)

    def pick_batch_endpoint(self) -> str:
        return self._rng.choice(self._batch_endpoints)

    async def aclose(self) -> None:
        if self._shared_client is not None:
            await self._shared_client.aclose()
            self._shared_client = None
            logger.info("dispatcher_closed")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, url: str, json_body: Any = None) -> UpstreamResponse:
        identity = self._identity_provider.next_identity()
        self._metrics.upstream_requests += 1

        try:
            response = await asyncio.wait_for(
                self._send(identity, method, url, json_body),
                timeout=self._timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            self._metrics.upstream_errors += 1
            logger.warning(
                "upstream_timeout",
                method=method,
                url=url,
                identity=str(identity) if identity else None,
                timeout=self._timeout,
            )
            raise UpstreamTimeoutError(
                message=f"{method} {url} exceeded {self._timeout}s",
                provider_name="mojang",
            ) from exc
        except httpx.RequestError as exc:
            self._metrics.upstream_errors += 1
            logger.warning(
                "upstream_transport_error",
                method=method,
                url=url,
                identity=str(identity) if identity else None,
                error=str(exc),
            )
            raise UpstreamTransportError(
                message=f"{method} {url} failed: {exc}",
                provider_name="mojang",
            ) from exc

        self._metrics.bytes_sent += response.bytes_sent
        self._metrics.bytes_received += response.bytes_received
        if response.status_code >= 400 and response.status_code != 404:
            self._metrics.upstream_errors += 1

        logger.debug(
            "upstream_response",
            method=method,
            url=url,
            status=response.status_code,
            bytes_received=response.bytes_received,
        )
        return response

    async def _send(
        self,
        identity: OutboundIdentity | None,
        method: str,
        url: str,
        json_body: Any,
    ) -> UpstreamResponse:
        if identity is None:
            return await self._send_with(self._get_shared_client(), method, url, json_body)
        async with self._new_client(identity) as client:
            return await self._send_with(client, method, url, json_body)

    async def _send_with(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        json_body: Any,
    ) -> UpstreamResponse:
        request = client.build_request(method, url, json=json_body)
        response = await client.send(request)
        content = response.content
        return UpstreamResponse(
            status_code=response.status_code,
            body=_decode_json(response) if content else None,
            bytes_sent=len(request.content),
            bytes_received=len(content),
        )

    def _new_client(self, identity: OutboundIdentity | None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport_factory(identity),
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout),
        )

    def _get_shared_client(self) -> httpx.AsyncClient:
        if self._shared_client is None:
            self._shared_client = self._new_client(None)
        return self._shared_client


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        logger.debug("upstream_body_not_json", status=response.status_code)
        return None
