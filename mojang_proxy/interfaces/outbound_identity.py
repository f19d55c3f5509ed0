"""Abstract base class for outbound network-identity strategies.

Every upstream call asks the configured provider for a fresh identity: a
local source address to bind, a proxy to tunnel through, or nothing at all
(use the default interface).  Identities are never persisted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import quote


@dataclass(frozen=True)
class LocalAddress:
    """A local source address to bind outgoing connections to."""

    host: str


@dataclass(frozen=True)
class ProxyEntry:
    """An HTTP proxy with optional basic credentials."""

    host: str
    port: int
    username: str | None = None
    password: str | None = None

    @property
    def url(self) -> str:
        """Proxy URL without credentials (those are passed separately)."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}"

    @property
    def auth(self) -> tuple[str, str] | None:
        if self.username is None:
            return None
        return (self.username, self.password or "")

    def __str__(self) -> str:
        # Credentials stay out of logs.
        user = f"{quote(self.username)}@" if self.username else ""
        return f"{user}{self.host}:{self.port}"


OutboundIdentity = LocalAddress | ProxyEntry


class IOutboundIdentityProvider(ABC):
    """Contract for per-call outbound identity selection."""

    @abstractmethod
    def next_identity(self) -> OutboundIdentity | None:
        """Return the identity for the next outbound call.

        ``None`` means "no special identity": connect from the default
        interface without a proxy.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Short strategy name used in logs (e.g. ``"local_address"``)."""
