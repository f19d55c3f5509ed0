"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, in priority order:

  1. Environment variables, e.g. ``BATCH_SIZE=10`` (always wins)
  2. A ``.env`` file in the working directory (local development)

Field ``batch_size`` maps to env var ``BATCH_SIZE``; defaults apply when
neither source sets a value.
"""

from __future__ import annotations

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_BATCH_ENDPOINTS = (
    "https://api.mojang.com/profiles/minecraft,"
    "https://api.minecraftservices.com/minecraft/profile/lookup/bulk/byname"
)


class Settings(BaseSettings):
    """Mojang proxy settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Caches ===
    name_cache_max_size: int = 10_000
    name_cache_ttl_seconds: int = 6 * 60 * 60
    profile_cache_max_size: int = 10_000
    profile_cache_ttl_seconds: int = 6 * 60 * 60

    # === Batching ===
    batch_size: int = 10
    batch_interval_ms: int = 3000

    # === Upstream ===
    request_timeout_seconds: float = 15.0
    # Comma-separated list of functionally equivalent bulk name endpoints.
    batch_endpoints: str = _DEFAULT_BATCH_ENDPOINTS
    profile_url_template: str = (
        "https://sessionserver.mojang.com/session/minecraft/profile/{uuid}?unsigned=false"
    )
    user_agent: str = "SRMojangAPI"

    # === Outbound identity ===
    # "direct" binds nothing, "local_address" randomizes the source address,
    # "proxy" rotates through PROXY_LIST.
    outbound_strategy: Literal["direct", "local_address", "proxy"] = "direct"
    ip_base: str = ""
    ip_range: int = 0
    proxy_list: str = ""  # file path or inline "host:port[:user:pass]" lines

    # === Rate limiting ===
    rate_limit: str = "1000/minute"

    # === Telemetry ===
    discord_webhook: str = ""
    metrics_report_interval_seconds: float = 5 * 60

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    app_env: str = "development"
    log_level: str = "INFO"

    @field_validator("batch_size")
    @classmethod
    def _batch_size_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("batch_size must be at least 1")
        return value

    @field_validator("batch_interval_ms", "request_timeout_seconds")
    @classmethod
    def _positive_duration(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("durations must be positive")
        return value

    def get_batch_endpoints(self) -> list[str]:
        """Return the configured bulk endpoints as a list, skipping blanks."""
        return [url.strip() for url in self.batch_endpoints.split(",") if url.strip()]
