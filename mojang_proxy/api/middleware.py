"""API middleware: CORS, request logging and error handling.

Starlette middleware is a stack (last added, first executed).  In
``main.create_app``::

    app.add_middleware(ErrorHandlingMiddleware)    # added 1st -> inner
    app.add_middleware(RequestLoggingMiddleware)   # added 2nd -> outer

so the request log sees the final status code, including responses that
ErrorHandlingMiddleware produced from an escaped ``MojangProxyError``.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from mojang_proxy.api.schemas import ErrorResponse
from mojang_proxy.utils.errors import MojangProxyError
from mojang_proxy.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Allow read-only cross-origin access to the lookup routes."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def error_response(exc: MojangProxyError) -> JSONResponse:
    """Serialize *exc* into the public ``{"error": ...}`` body and status."""
    body = ErrorResponse(error=exc.error_type)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert escaped ``MojangProxyError`` subclasses into JSON error bodies.

    Details stay in the server log; the client only sees the error code.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except MojangProxyError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            return error_response(exc)
