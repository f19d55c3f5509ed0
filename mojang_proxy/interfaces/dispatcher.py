"""Abstract base class for the upstream HTTP dispatcher.

The dispatcher is the only component that performs network I/O against the
Mojang API.  It reports every HTTP status back to the caller instead of
raising, because 204 and 404 are meaningful answers in this domain; only
genuine transport failures (timeouts, refused connections, DNS errors)
surface as exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class UpstreamResponse:
    """Status and decoded body of one upstream call.

    ``body`` is the parsed JSON payload, or ``None`` when the response had
    no body or the body was not valid JSON.
    """

    status_code: int
    body: Any = None
    bytes_sent: int = 0
    bytes_received: int = 0

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class IDispatcher(ABC):
    """Contract for upstream GET/POST calls."""

    @abstractmethod
    async def get(self, url: str) -> UpstreamResponse:
        """Issue a GET request.

        Raises
        ------
        UpstreamTimeoutError
            If the call exceeds the per-call deadline.
        UpstreamTransportError
            On any other network-level failure.
        """

    @abstractmethod
    async def post(self, url: str, json_body: Any) -> UpstreamResponse:
        """Issue a POST request with a JSON body.

        Raises
        ------
        UpstreamTimeoutError
            If the call exceeds the per-call deadline.
        UpstreamTransportError
            On any other network-level failure.
        """

    @abstractmethod
    def pick_batch_endpoint(self) -> str:
        """Return one of the equivalent bulk name endpoints, chosen at random."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release any pooled resources."""
