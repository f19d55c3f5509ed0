"""Mojang proxy FastAPI application entry point.

Wires the caches, outbound identity strategy, upstream dispatcher and
lookup services together and exposes them through the HTTP routes.
Loads configuration from ``.env`` and ``config/config.yaml`` and
configures structured logging.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from mojang_proxy.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from mojang_proxy.api.rate_limit import build_limiter, rate_limit_handler
from mojang_proxy.api.routes import DEFAULT_CACHE_MAX_AGE, health_router, router
from mojang_proxy.config.loader import load_config
from mojang_proxy.config.settings import Settings
from mojang_proxy.interfaces.dispatcher import IDispatcher
from mojang_proxy.providers.cache.memory_cache import (
    MemoryCacheProvider,
    normalize_username,
    normalize_uuid,
)
from mojang_proxy.providers.outbound import build_identity_provider
from mojang_proxy.providers.upstream.http_dispatcher import HttpDispatcher
from mojang_proxy.services.batch_coalescer import BatchCoalescer
from mojang_proxy.services.metrics_reporter import MetricsReporter
from mojang_proxy.services.profile_resolver import ProfileResolver
from mojang_proxy.utils.logging import configure_logging, get_logger
from mojang_proxy.utils.metrics import Metrics

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    dispatcher: IDispatcher | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    A pre-built *dispatcher* replaces the HTTP one (tests pass a fake).
    """
    metrics = Metrics()

    name_cache: MemoryCacheProvider[str] = MemoryCacheProvider(
        max_size=app_settings.name_cache_max_size,
        ttl=app_settings.name_cache_ttl_seconds,
        name="name_cache",
        normalize_key=normalize_username,
    )
    profile_cache: MemoryCacheProvider[Any] = MemoryCacheProvider(
        max_size=app_settings.profile_cache_max_size,
        ttl=app_settings.profile_cache_ttl_seconds,
        name="profile_cache",
        normalize_key=normalize_uuid,
    )

    if dispatcher is None:
        identity_provider = build_identity_provider(app_settings)
        dispatcher = HttpDispatcher(
            batch_endpoints=app_settings.get_batch_endpoints(),
            identity_provider=identity_provider,
            timeout=app_settings.request_timeout_seconds,
            user_agent=app_settings.user_agent,
            metrics=metrics,
        )
        outbound = identity_provider.get_provider_name()
    else:
        outbound = "injected"

    batch_coalescer = BatchCoalescer(
        dispatcher=dispatcher,
        cache=name_cache,
        batch_size=app_settings.batch_size,
        interval=app_settings.batch_interval_ms / 1000,
        metrics=metrics,
    )
    profile_resolver = ProfileResolver(
        dispatcher=dispatcher,
        cache=profile_cache,
        metrics=metrics,
        profile_url_template=app_settings.profile_url_template,
    )
    metrics_reporter = MetricsReporter(
        metrics=metrics,
        webhook_url=app_settings.discord_webhook,
        interval=app_settings.metrics_report_interval_seconds,
    )

    return {
        "metrics": metrics,
        "name_cache": name_cache,
        "profile_cache": profile_cache,
        "dispatcher": dispatcher,
        "outbound_strategy": outbound,
        "batch_coalescer": batch_coalescer,
        "profile_resolver": profile_resolver,
        "metrics_reporter": metrics_reporter,
    }


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    dispatcher: IDispatcher | None = None,
    app_config: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Components are created inside the lifespan so that the background
    tasks attach to the server's event loop.
    """
    app_settings = app_settings or settings
    http_config = (app_config if app_config is not None else config).get("http") or {}

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        components = build_components(app_settings, dispatcher=dispatcher)
        for key, value in components.items():
            setattr(application.state, key, value)

        components["batch_coalescer"].start()
        components["metrics_reporter"].start()

        _logger.info(
            "app_startup",
            version=__version__,
            environment=app_settings.app_env,
            outbound=components["outbound_strategy"],
            batch_size=app_settings.batch_size,
            batch_interval_ms=app_settings.batch_interval_ms,
        )

        yield

        await components["metrics_reporter"].stop()
        await components["batch_coalescer"].shutdown()
        components["profile_cache"].clear()
        await components["dispatcher"].aclose()
        _logger.info("app_shutdown")

    application = FastAPI(
        title="Mojang proxy",
        version=__version__,
        description=(
            "Caching, request-coalescing proxy in front of the Mojang username "
            "and session-server APIs."
        ),
        lifespan=_lifespan,
    )
    application.state.cache_max_age = http_config.get(
        "cache_max_age_seconds", DEFAULT_CACHE_MAX_AGE
    )

    # -- Rate limiting --
    application.state.limiter = build_limiter(app_settings.rate_limit)
    application.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore[arg-type]

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(SlowAPIMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=http_config.get("cors_origins"))

    # -- Routes --
    application.include_router(router)
    application.include_router(health_router)

    @application.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def run() -> None:
    uvicorn.run(
        "mojang_proxy.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    run()
