"""FastAPI routes for the Mojang proxy.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# Endpoint                  Method  Description
# ───────────────────────────────────────────────────────────────
# /mojang/uuid/{name}       GET     Username -> UUID (batched upstream)
# /mojang/skin/{uuid}       GET     UUID -> signed textures property
# /health                   GET     Liveness check
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from mojang_proxy.api.middleware import error_response
from mojang_proxy.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProfileResponse,
    RateLimitResponse,
    UUIDResponse,
)
from mojang_proxy.services.batch_coalescer import BatchCoalescer
from mojang_proxy.services.profile_resolver import ProfileResolver
from mojang_proxy.utils.errors import LookupValidationError, MojangProxyError
from mojang_proxy.utils.logging import get_logger
from mojang_proxy.utils.validation import is_invalid_username

_logger: structlog.BoundLogger = get_logger(__name__)

DEFAULT_CACHE_MAX_AGE = 15 * 60  # seconds

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Invalid input or rejected by upstream"},
    429: {"model": RateLimitResponse, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Upstream or internal failure"},
    503: {"model": ErrorResponse, "description": "Upstream timed out"},
}

router = APIRouter(prefix="/mojang", tags=["mojang"])
health_router = APIRouter(tags=["system"])


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_batch_coalescer(request: Request) -> BatchCoalescer:
    return request.app.state.batch_coalescer


def _get_profile_resolver(request: Request) -> ProfileResolver:
    return request.app.state.profile_resolver


def _cache_control(request: Request) -> str:
    max_age = getattr(request.app.state, "cache_max_age", DEFAULT_CACHE_MAX_AGE)
    return f"public, max-age={max_age}"


# ---------------------------------------------------------------------------
# Lookup endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/uuid/{name}",
    response_model=UUIDResponse,
    responses=_ERROR_RESPONSES,
    summary="Resolve a username to its UUID",
)
async def get_uuid(
    name: str,
    request: Request,
    response: Response,
    coalescer: Annotated[BatchCoalescer, Depends(_get_batch_coalescer)],
) -> UUIDResponse | JSONResponse:
    """Look up *name* (case-insensitive) and return its dashed UUID."""
    if is_invalid_username(name):
        return error_response(
            LookupValidationError(message=f"Invalid username {name!r}", provider_name="api")
        )

    try:
        result = await coalescer.resolve_name(name)
    except MojangProxyError as exc:
        _logger.warning(
            "uuid_lookup_failed",
            name=name,
            error_type=exc.error_type.value,
            error=exc.message,
        )
        return error_response(exc)

    response.headers["Cache-Control"] = _cache_control(request)
    return UUIDResponse.from_result(result)


@router.get(
    "/skin/{uuid}",
    response_model=ProfileResponse,
    responses=_ERROR_RESPONSES,
    summary="Fetch the signed skin property of a UUID",
)
async def get_skin(
    uuid: str,
    request: Request,
    response: Response,
    resolver: Annotated[ProfileResolver, Depends(_get_profile_resolver)],
) -> ProfileResponse | JSONResponse:
    """Return the ``textures`` property for *uuid* (dashed or undashed)."""
    try:
        result = await resolver.resolve_profile(uuid)
    except MojangProxyError as exc:
        _logger.warning(
            "skin_lookup_failed",
            uuid=uuid,
            error_type=exc.error_type.value,
            error=exc.message,
        )
        return error_response(exc)

    response.headers["Cache-Control"] = _cache_control(request)
    return ProfileResponse.from_result(result)


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    return HealthResponse()
