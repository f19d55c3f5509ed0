"""Custom exception hierarchy for the Mojang API proxy.

All application exceptions inherit from :class:`MojangProxyError`, which
carries an optional ``provider_name`` so error handlers can identify which
upstream (e.g. "mojang-batch", "sessionserver") caused the failure.

    MojangProxyError  (base -- catch-all for any proxy error)
    +-- LookupValidationError   (malformed input / upstream rejected a batch)
    +-- UpstreamServerError     (upstream answered non-2xx, non-400)
    +-- UpstreamTransportError  (connection refused, DNS failure, ...)
    |   +-- UpstreamTimeoutError (per-call deadline exceeded)
    +-- DataIntegrityError      (upstream returned an id we cannot parse)
    +-- ServiceClosedError      (lookup submitted after shutdown)
    +-- ConfigurationError      (startup / missing config)

Each class also declares the public :class:`ErrorType` and HTTP status the
route layer reports for it, so the mapping lives next to the error.
"""

from __future__ import annotations

from enum import Enum


class ErrorType(str, Enum):  # noqa: UP042
    """Error codes returned in the JSON body of failed lookups."""

    INVALID_NAME = "INVALID_NAME"
    INVALID_UUID = "INVALID_UUID"
    INTERNAL_TIMEOUT = "INTERNAL_TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class MojangProxyError(Exception):
    """Base exception for all proxy errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets
    for structured log output, e.g. ``[sessionserver] Server error: 502``.
    """

    error_type: ErrorType = ErrorType.INTERNAL_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input / batch rejection
# ---------------------------------------------------------------------------


class LookupValidationError(MojangProxyError):
    """Raised for malformed input or when the upstream rejects a whole batch (HTTP 400)."""

    error_type = ErrorType.INVALID_NAME
    status_code = 400

    def __init__(
        self,
        message: str = "Validation error in lookup request",
        provider_name: str | None = None,
        error_type: ErrorType | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        if error_type is not None:
            self.error_type = error_type


# ---------------------------------------------------------------------------
# Upstream failures
# ---------------------------------------------------------------------------


class UpstreamServerError(MojangProxyError):
    """Raised when the upstream answers with a non-2xx status other than 400."""

    def __init__(
        self,
        message: str = "Upstream server error",
        provider_name: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.upstream_status = upstream_status


class UpstreamTransportError(MojangProxyError):
    """Raised when the upstream cannot be reached (connection refused, DNS, TLS)."""

    def __init__(
        self,
        message: str = "Upstream transport failure",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UpstreamTimeoutError(UpstreamTransportError):
    """Raised when a single upstream call exceeds its deadline.

    Mirrors ``httpx.TimeoutException`` being a ``TransportError``: callers
    that only care about "the network failed" can catch the parent class.
    """

    error_type = ErrorType.INTERNAL_TIMEOUT
    status_code = 503

    def __init__(
        self,
        message: str = "Request timeout",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DataIntegrityError(MojangProxyError):
    """Raised when the upstream returns an id that is not a valid UUID."""

    def __init__(
        self,
        message: str = "Received invalid UUID format from upstream",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Lifecycle / configuration
# ---------------------------------------------------------------------------


class ServiceClosedError(MojangProxyError):
    """Raised when a lookup is submitted to a component that has been shut down."""

    status_code = 503

    def __init__(
        self,
        message: str = "Lookup service is shutting down",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(MojangProxyError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
