"""Provider interfaces (ABCs) for caches, outbound identity and upstream dispatch."""

from mojang_proxy.interfaces.cache_provider import CacheEntry, ICacheProvider
from mojang_proxy.interfaces.dispatcher import IDispatcher, UpstreamResponse
from mojang_proxy.interfaces.outbound_identity import (
    IOutboundIdentityProvider,
    LocalAddress,
    OutboundIdentity,
    ProxyEntry,
)

__all__ = [
    "CacheEntry",
    "ICacheProvider",
    "IDispatcher",
    "IOutboundIdentityProvider",
    "LocalAddress",
    "OutboundIdentity",
    "ProxyEntry",
    "UpstreamResponse",
]
