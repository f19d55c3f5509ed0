"""Utility modules for the Mojang proxy.

- **errors** -- exception hierarchy rooted at MojangProxyError; each class
  knows the public error code and HTTP status it maps to.
- **logging** -- structlog setup, console in development and JSON in
  production.
- **metrics** -- traffic counters read and reset by the metrics reporter.
- **uuid_utils** -- dashed/undashed UUID canonicalization.
- **validation** -- username syntax checks applied before any lookup.
"""

from mojang_proxy.utils.errors import (
    ConfigurationError,
    DataIntegrityError,
    ErrorType,
    LookupValidationError,
    MojangProxyError,
    ServiceClosedError,
    UpstreamServerError,
    UpstreamTimeoutError,
    UpstreamTransportError,
)
from mojang_proxy.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DataIntegrityError",
    "ErrorType",
    "LookupValidationError",
    "MojangProxyError",
    "ServiceClosedError",
    "UpstreamServerError",
    "UpstreamTimeoutError",
    "UpstreamTransportError",
    "configure_logging",
    "get_logger",
]
