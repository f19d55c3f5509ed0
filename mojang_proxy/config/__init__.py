"""Configuration: Settings, load_config and a module-level settings instance."""

from mojang_proxy.config.loader import load_config
from mojang_proxy.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "load_config", "settings"]
