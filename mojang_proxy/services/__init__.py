"""Lookup services.

    BatchCoalescer   : username -> UUID, cached and batched upstream.
    ProfileResolver  : UUID -> skin property, cached, one upstream call each.
    MetricsReporter  : periodic export of the traffic counters.
"""

from mojang_proxy.services.batch_coalescer import BatchCoalescer, NameLookupResult
from mojang_proxy.services.metrics_reporter import MetricsReporter
from mojang_proxy.services.profile_resolver import (
    ProfileLookupResult,
    ProfileResolver,
    SkinProperty,
)

__all__ = [
    "BatchCoalescer",
    "MetricsReporter",
    "NameLookupResult",
    "ProfileLookupResult",
    "ProfileResolver",
    "SkinProperty",
]
