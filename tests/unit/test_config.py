"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from mojang_proxy.config.loader import load_config
from mojang_proxy.config.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("BATCH_SIZE", "BATCH_INTERVAL_MS", "APP_PORT", "OUTBOUND_STRATEGY"):
            monkeypatch.delenv(var, raising=False)
        settings = Settings(_env_file=None)

        assert settings.batch_size == 10
        assert settings.batch_interval_ms == 3000
        assert settings.app_port == 3000
        assert settings.outbound_strategy == "direct"
        assert settings.rate_limit == "1000/minute"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BATCH_SIZE", "25")
        monkeypatch.setenv("OUTBOUND_STRATEGY", "proxy")
        settings = Settings(_env_file=None)

        assert settings.batch_size == 25
        assert settings.outbound_strategy == "proxy"

    def test_batch_endpoints_split(self) -> None:
        settings = Settings(batch_endpoints=" https://a.test/bulk , ,https://b.test/bulk")
        assert settings.get_batch_endpoints() == ["https://a.test/bulk", "https://b.test/bulk"]

    def test_batch_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(batch_size=0)

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(batch_interval_ms=0)

    def test_unknown_strategy_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(outbound_strategy="carrier-pigeon")


class TestLoadConfig:
    def test_yaml_merged_with_settings(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "http:\n  cache_max_age_seconds: 120\nbatch:\n  size: 3\n  note: keep\n",
            encoding="utf-8",
        )
        config = load_config(str(config_file), settings=Settings(batch_size=7))

        assert config["http"]["cache_max_age_seconds"] == 120
        assert config["batch"]["size"] == 7
        assert config["batch"]["note"] == "keep"

    def test_missing_file_uses_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings(app_port=8080))
        assert config["app"]["port"] == 8080
        assert "http" not in config

    def test_repo_yaml_only_holds_keys_settings_do_not_fill(self) -> None:
        config_file = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        raw = yaml.safe_load(config_file.read_text(encoding="utf-8"))

        assert set(raw) == {"app", "http"}
        assert set(raw["app"]) == {"name"}

        config = load_config(str(config_file), settings=Settings(_env_file=None, batch_size=4))
        assert config["app"]["name"] == "mojang-proxy"
        assert config["http"]["cache_max_age_seconds"] == 900
        assert config["batch"]["size"] == 4
