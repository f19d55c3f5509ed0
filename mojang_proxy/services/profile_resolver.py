"""Resolves UUID -> skin property lookups.

The session server has no bulk endpoint, so profile lookups skip the batch
coalescer and go straight through the profile cache and the dispatcher.
Negative answers (204/404, or a profile without a ``textures`` property)
are cached with the same TTL as positive ones; errors are never cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from mojang_proxy.interfaces.cache_provider import ICacheProvider
from mojang_proxy.interfaces.dispatcher import IDispatcher
from mojang_proxy.utils.errors import ErrorType, LookupValidationError, UpstreamServerError
from mojang_proxy.utils.logging import get_logger
from mojang_proxy.utils.metrics import Metrics
from mojang_proxy.utils.uuid_utils import to_undashed, try_parse_uuid

_logger: structlog.BoundLogger = get_logger(__name__)

DEFAULT_PROFILE_URL_TEMPLATE = (
    "https://sessionserver.mojang.com/session/minecraft/profile/{uuid}?unsigned=false"
)
_TEXTURES_PROPERTY = "textures"
_NOT_FOUND_STATUSES = frozenset({204, 404})


@dataclass(frozen=True)
class SkinProperty:
    """The signed ``textures`` property of a profile (opaque base64 strings)."""

    value: str
    signature: str


@dataclass(frozen=True)
class ProfileLookupResult:
    """Outcome of a profile lookup."""

    exists: bool
    skin_property: SkinProperty | None


class ProfileResolver:
    """Direct cache + dispatcher path for profile lookups.

    Parameters
    ----------
    dispatcher:
        Upstream I/O.
    cache:
        The UUID -> skin property cache.
    metrics:
        Lookup and cache counters.
    profile_url_template:
        URL with a ``{uuid}`` placeholder receiving the undashed id.
    """

    def __init__(
        self,
        dispatcher: IDispatcher,
        cache: ICacheProvider[SkinProperty],
        metrics: Metrics | None = None,
        profile_url_template: str = DEFAULT_PROFILE_URL_TEMPLATE,
    ) -> None:
        self._dispatcher = dispatcher
        self._cache = cache
        self._metrics = metrics or Metrics()
        self._profile_url_template = profile_url_template

    async def resolve_profile(self, uuid: str) -> ProfileLookupResult:
        """Return the skin property for *uuid* (dashed or undashed).

        Raises
        ------
        LookupValidationError
            *uuid* is not a valid UUID.
        UpstreamServerError
            The session server answered with an unexpected status.
        UpstreamTimeoutError / UpstreamTransportError
            The upstream call failed at the network level.
        """
        canonical = try_parse_uuid(uuid)
        if canonical is None:
            raise LookupValidationError(
                message=f"Invalid UUID {uuid!r}",
                provider_name="profile_resolver",
                error_type=ErrorType.INVALID_UUID,
            )

        self._metrics.profile_requests += 1
        cached = self._cache.get(canonical)
        if cached is not None:
            self._metrics.profile_cache_hits += 1
            return ProfileLookupResult(exists=cached.exists, skin_property=cached.value)
        self._metrics.profile_cache_misses += 1

        url = self._profile_url_template.format(uuid=to_undashed(canonical))
        response = await self._dispatcher.get(url)

        if response.status_code in _NOT_FOUND_STATUSES:
            self._cache.put(canonical, None)
            _logger.debug("profile_not_found", uuid=canonical, status=response.status_code)
            return ProfileLookupResult(exists=False, skin_property=None)

        if not response.is_success:
            _logger.error("profile_server_error", uuid=canonical, status=response.status_code)
            raise UpstreamServerError(
                message=f"Server error: {response.status_code}",
                provider_name="sessionserver",
                upstream_status=response.status_code,
            )

        skin = _extract_textures(response.body)
        self._cache.put(canonical, skin)
        return ProfileLookupResult(exists=skin is not None, skin_property=skin)


def _extract_textures(body: Any) -> SkinProperty | None:
    if not isinstance(body, dict):
        return None
    for prop in body.get("properties") or []:
        if isinstance(prop, dict) and prop.get("name") == _TEXTURES_PROPERTY:
            return SkinProperty(
                value=str(prop.get("value", "")),
                signature=str(prop.get("signature", "")),
            )
    return None
