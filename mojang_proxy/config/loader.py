"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static keys with no env variable (http, app.name)
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

``load_config`` reads the YAML file first, then deep-merges the values
resolved by :class:`Settings` on top.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from mojang_proxy.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read otherwise.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "cache": {
            "name": {
                "max_size": settings.name_cache_max_size,
                "ttl_seconds": settings.name_cache_ttl_seconds,
            },
            "profile": {
                "max_size": settings.profile_cache_max_size,
                "ttl_seconds": settings.profile_cache_ttl_seconds,
            },
        },
        "batch": {
            "size": settings.batch_size,
            "interval_ms": settings.batch_interval_ms,
        },
        "upstream": {
            "timeout_seconds": settings.request_timeout_seconds,
            "batch_endpoints": settings.get_batch_endpoints(),
            "profile_url_template": settings.profile_url_template,
            "user_agent": settings.user_agent,
        },
        "outbound": {
            "strategy": settings.outbound_strategy,
            "ip_base": settings.ip_base,
            "ip_range": settings.ip_range,
            "proxy_list": settings.proxy_list,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
