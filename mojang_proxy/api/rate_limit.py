"""Per-IP request rate limiting using slowapi.

The service runs behind Cloudflare tunnels, so the client address is taken
from ``CF-Connecting-IP`` when present and from the socket peer otherwise.
Counters live in process memory; each application instance gets its own
limiter.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from mojang_proxy.api.schemas import RateLimitResponse

_CLIENT_IP_HEADER = "CF-Connecting-IP"
_DEFAULT_RETRY_AFTER = 60


def get_client_key(request: Request) -> str:
    """Rate-limit key: the Cloudflare client IP, or the remote address."""
    return request.headers.get(_CLIENT_IP_HEADER) or get_remote_address(request)


def build_limiter(rate_limit: str) -> Limiter:
    """Create an in-memory limiter applying *rate_limit* (e.g. ``"1000/minute"``)."""
    return Limiter(
        key_func=get_client_key,
        default_limits=[rate_limit],
        storage_uri="memory://",
        strategy="fixed-window",
    )


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return a clean 429 response with retry_after."""
    retry_after = getattr(exc, "retry_after", None) or _DEFAULT_RETRY_AFTER
    body = RateLimitResponse(
        detail=f"Rate limit exceeded: {exc.detail}",
        retry_after=retry_after,
    )
    return JSONResponse(
        status_code=429,
        content=body.model_dump(),
        headers={"Retry-After": str(retry_after)},
    )
