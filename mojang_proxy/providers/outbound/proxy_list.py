"""Rotating proxy strategy.

The proxy list is parsed once at startup from ``PROXY_LIST``, which is
either a path to a file or the list itself.  Two formats are understood:

* one proxy per line (commas also separate entries), ``host:port`` or
  ``host:port:username:password``; blank lines and ``#`` comments are
  skipped.  IPv6 hosts are written in brackets: ``[2001:db8::1]:3128``.
* JSON, either a single object or an array of objects shaped like
  ``{"host": ..., "port": ..., "auth": {"username": ..., "password": ...}}``.

Every outbound call picks one entry uniformly at random.
"""

from __future__ import annotations

import json
import random
import re
from pathlib import Path
from typing import Any

import structlog

from mojang_proxy.interfaces.outbound_identity import IOutboundIdentityProvider, ProxyEntry
from mojang_proxy.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_LINE_RE = re.compile(r"(\[[^\]]+\]|[^:\s\[\]]+):(\d{1,5})(?::([^:]*):(.*))?")


def parse_proxy_list(text: str) -> list[ProxyEntry]:
    """Parse proxy definitions from *text*.

    Raises
    ------
    ConfigurationError
        On any malformed entry.
    """
    stripped = text.strip()
    if stripped.startswith("{") or stripped.startswith("[{"):
        return _parse_json(stripped)

    entries: list[ProxyEntry] = []
    for raw in re.split(r"[\n,]", text):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(_parse_line(line))
    return entries


def _parse_line(line: str) -> ProxyEntry:
    match = _LINE_RE.fullmatch(line)
    if match is None:
        raise ConfigurationError(
            message=f"Malformed proxy entry {line!r}; expected host:port[:username:password]",
            provider_name="proxy",
        )
    host, port, username, password = match.groups()
    return ProxyEntry(
        host=host.strip("[]"),
        port=_check_port(int(port), line),
        username=username or None,
        password=password if username else None,
    )


def _parse_json(text: str) -> list[ProxyEntry]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            message=f"Proxy list is not valid JSON: {exc}", provider_name="proxy"
        ) from exc

    items: list[Any] = data if isinstance(data, list) else [data]
    entries: list[ProxyEntry] = []
    for item in items:
        if not isinstance(item, dict) or "host" not in item or "port" not in item:
            raise ConfigurationError(
                message=f"Malformed proxy object {item!r}; expected host and port",
                provider_name="proxy",
            )
        auth = item.get("auth") or {}
        try:
            port = int(item["port"])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                message=f"Invalid proxy port {item['port']!r}", provider_name="proxy"
            ) from exc
        entries.append(
            ProxyEntry(
                host=str(item["host"]),
                port=_check_port(port, str(item)),
                username=auth.get("username") or None,
                password=auth.get("password") if auth.get("username") else None,
            )
        )
    return entries


def _check_port(port: int, source: str) -> int:
    if not 0 < port < 65536:
        raise ConfigurationError(
            message=f"Proxy port out of range in {source!r}", provider_name="proxy"
        )
    return port


class ProxyListProvider(IOutboundIdentityProvider):
    """Picks a proxy uniformly at random for every outbound call."""

    def __init__(self, entries: list[ProxyEntry], rng: random.Random | None = None) -> None:
        if not entries:
            raise ConfigurationError(
                message="OUTBOUND_STRATEGY=proxy requires at least one proxy in PROXY_LIST",
                provider_name="proxy",
            )
        self._entries = list(entries)
        self._rng = rng or random.SystemRandom()
        logger.info("proxy_list_loaded", proxies=len(self._entries))

    @classmethod
    def from_source(cls, source: str, rng: random.Random | None = None) -> ProxyListProvider:
        """Build a provider from a file path or an inline proxy list."""
        text = source
        if source.strip() and "\n" not in source:
            path = Path(source.strip())
            try:
                if path.is_file():
                    text = path.read_text(encoding="utf-8")
            except OSError:
                # Inline lists can be longer than a valid file name.
                pass
        return cls(parse_proxy_list(text), rng=rng)

    @property
    def entries(self) -> list[ProxyEntry]:
        return list(self._entries)

    def next_identity(self) -> ProxyEntry:
        return self._rng.choice(self._entries)

    def get_provider_name(self) -> str:
        return "proxy"
