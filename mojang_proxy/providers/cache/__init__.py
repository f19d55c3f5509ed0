"""Cache providers.

Memory-resident LRU caches with per-entry expiry.  The proxy runs two
independent instances: username -> UUID and UUID -> skin property.  Both
store negative results ("does not exist") with the same TTL as positive ones
so repeat lookups for unknown players never reach the upstream.
"""

from mojang_proxy.providers.cache.memory_cache import (
    MemoryCacheProvider,
    normalize_username,
    normalize_uuid,
)

__all__ = ["MemoryCacheProvider", "normalize_username", "normalize_uuid"]
