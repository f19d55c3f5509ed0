"""Outbound network-identity strategies.

Three implementations of IOutboundIdentityProvider, selected by
``OUTBOUND_STRATEGY``:
    1. DirectProvider       : no binding, no proxy (default).
    2. LocalAddressProvider : binds each call to a source address whose
       trailing ``IP_RANGE`` bits of ``IP_BASE`` are randomized.
    3. ProxyListProvider    : tunnels each call through a proxy picked at
       random from ``PROXY_LIST``.

build_identity_provider() turns settings into the matching provider.
"""

from __future__ import annotations

import random

from mojang_proxy.config.settings import Settings
from mojang_proxy.interfaces.outbound_identity import IOutboundIdentityProvider
from mojang_proxy.providers.outbound.direct import DirectProvider
from mojang_proxy.providers.outbound.local_address import LocalAddressProvider, randomize_address
from mojang_proxy.providers.outbound.proxy_list import ProxyListProvider, parse_proxy_list
from mojang_proxy.utils.errors import ConfigurationError


def build_identity_provider(
    settings: Settings, rng: random.Random | None = None
) -> IOutboundIdentityProvider:
    """Create the outbound identity provider selected by *settings*."""
    if settings.outbound_strategy == "local_address":
        if not settings.ip_base:
            raise ConfigurationError(
                message="OUTBOUND_STRATEGY=local_address requires IP_BASE",
                provider_name="local_address",
            )
        return LocalAddressProvider(settings.ip_base, settings.ip_range, rng=rng)
    if settings.outbound_strategy == "proxy":
        return ProxyListProvider.from_source(settings.proxy_list, rng=rng)
    return DirectProvider()


__all__ = [
    "DirectProvider",
    "LocalAddressProvider",
    "ProxyListProvider",
    "build_identity_provider",
    "parse_proxy_list",
    "randomize_address",
]
