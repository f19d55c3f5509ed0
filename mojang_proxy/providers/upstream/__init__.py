"""Upstream dispatch providers.

HttpDispatcher implements IDispatcher on top of httpx: per-call outbound
identity, a single deadline per call, status passthrough and random choice
among equivalent bulk endpoints.
"""

from mojang_proxy.providers.upstream.http_dispatcher import HttpDispatcher, build_transport

__all__ = ["HttpDispatcher", "build_transport"]
