"""Default outbound strategy: connect from the host's default interface."""

from __future__ import annotations

from mojang_proxy.interfaces.outbound_identity import IOutboundIdentityProvider


class DirectProvider(IOutboundIdentityProvider):
    def next_identity(self) -> None:
        return None

    def get_provider_name(self) -> str:
        return "direct"
