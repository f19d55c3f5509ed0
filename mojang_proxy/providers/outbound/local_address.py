"""Rotating local source address strategy.

Hosts with a routed IPv6 prefix (or a block of IPv4 addresses) can spread
outbound traffic over many source addresses so the upstream's per-address
quota is not exhausted by a single identity.  Each call keeps the configured
base address and replaces its last ``random_bits`` bits with random ones.
"""

from __future__ import annotations

import ipaddress
import random

import structlog

from mojang_proxy.interfaces.outbound_identity import IOutboundIdentityProvider, LocalAddress
from mojang_proxy.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def randomize_address(base: str, random_bits: int, rng: random.Random) -> str:
    """Return *base* with its trailing *random_bits* bits randomized.

    Works for both 4-byte (IPv4) and 16-byte (IPv6) addresses.  The bit
    count is clamped to the address width; ``0`` returns *base* unchanged
    (in normalized textual form).

    Raises
    ------
    ConfigurationError
        If *base* is not a valid IP address.
    """
    try:
        address = ipaddress.ip_address(base.strip())
    except ValueError as exc:
        raise ConfigurationError(
            message=f"Invalid IP_BASE {base!r}: {exc}",
            provider_name="local_address",
        ) from exc

    bits = max(0, min(random_bits, address.max_prefixlen))
    if bits == 0:
        return str(address)

    mask = (1 << bits) - 1
    value = (int(address) & ~mask) | rng.getrandbits(bits)
    return str(type(address)(value))


class LocalAddressProvider(IOutboundIdentityProvider):
    """Hands out a freshly randomized source address for every call.

    Parameters
    ----------
    base:
        The configured base address (``IP_BASE``).
    random_bits:
        How many trailing bits to randomize (``IP_RANGE``).
    rng:
        Random source; pass a seeded ``random.Random`` for reproducible tests.
    """

    def __init__(self, base: str, random_bits: int, rng: random.Random | None = None) -> None:
        self._rng = rng or random.SystemRandom()
        # Validate eagerly so a bad IP_BASE fails at startup, not on first call.
        randomize_address(base, 0, self._rng)
        self._base = base.strip()
        self._random_bits = random_bits
        logger.info(
            "local_address_provider_initialized",
            base=self._base,
            random_bits=random_bits,
        )

    def next_identity(self) -> LocalAddress:
        return LocalAddress(host=randomize_address(self._base, self._random_bits, self._rng))

    def get_provider_name(self) -> str:
        return "local_address"
