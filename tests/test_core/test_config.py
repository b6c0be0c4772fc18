"""Tests for storewatch/core/config.py — YAML loading, defaults, SecretStr."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from storewatch.core.config import (
    DatabaseConfig,
    LoggingConfig,
    MonitoringConfig,
    RedisConfig,
    Settings,
    get_settings,
    load_settings,
    reset_settings,
)


@pytest.fixture(autouse=True)
def _clean_settings() -> None:
    """Reset the global settings cache before each test."""
    reset_settings()


class TestDefaults:
    """Settings should have sensible defaults when no YAML is provided."""

    def test_default_monitoring_config(self) -> None:
        cfg = MonitoringConfig()
        assert cfg.service_name == "ecommerce-api"
        assert cfg.check_interval_secs == 60.0
        assert cfg.alert_retention_hours == 24.0
        assert cfg.alert_ttl_secs == 86400
        assert cfg.alert_key_prefix == "alert:"
        assert cfg.cache_timeout_secs == 5.0
        assert cfg.error_rate_threshold_pct == 10.0
        assert cfg.response_time_threshold_secs == 5.0

    def test_default_redis_config(self) -> None:
        cfg = RedisConfig()
        assert cfg.enabled is True
        assert cfg.url.get_secret_value() == "redis://localhost:6379/0"

    def test_default_database_config(self) -> None:
        cfg = DatabaseConfig()
        assert cfg.enabled is True
        assert cfg.url.get_secret_value().startswith("postgresql+asyncpg://")

    def test_default_logging_config(self) -> None:
        cfg = LoggingConfig()
        assert cfg.level == "INFO"
        assert cfg.format == "json"

    def test_default_settings(self) -> None:
        s = Settings()
        assert s.monitoring.service_name == "ecommerce-api"
        assert s.redis.enabled is True
        assert s.logging.level == "INFO"


class TestYamlLoading:
    """Settings should load correctly from YAML files."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "monitoring": {
                "service_name": "storefront",
                "check_interval_secs": 15,
                "error_rate_threshold_pct": 2.5,
            },
            "redis": {
                "url": "redis://cache:6379/3",
            },
            "database": {
                "enabled": False,
            },
            "logging": {
                "level": "DEBUG",
                "format": "console",
            },
        }
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump(config_data))

        settings = load_settings(config_file)

        assert settings.monitoring.service_name == "storefront"
        assert settings.monitoring.check_interval_secs == 15
        assert settings.monitoring.error_rate_threshold_pct == 2.5
        assert settings.redis.url.get_secret_value() == "redis://cache:6379/3"
        assert settings.database.enabled is False
        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "console"

    def test_load_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.monitoring.check_interval_secs == 60.0

    def test_load_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        settings = load_settings(config_file)
        assert settings.monitoring.service_name == "ecommerce-api"

    def test_partial_yaml_merges_with_defaults(self, tmp_path: Path) -> None:
        config_data = {"monitoring": {"alert_retention_hours": 48}}
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump(config_data))

        settings = load_settings(config_file)
        assert settings.monitoring.alert_retention_hours == 48
        # Other defaults still intact
        assert settings.monitoring.alert_ttl_secs == 86400
        assert settings.redis.enabled is True

    def test_get_settings_caches(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"monitoring": {"service_name": "cached"}}))
        loaded = load_settings(config_file)
        assert get_settings() is loaded
        assert get_settings().monitoring.service_name == "cached"


class TestSecretStr:
    """Connection URLs carry credentials and must not leak in reprs."""

    def test_secret_str_repr_does_not_leak(self) -> None:
        cfg = DatabaseConfig(
            url="postgresql+asyncpg://shop:hunter2@db/shop",  # type: ignore[arg-type]
        )
        repr_str = repr(cfg)
        assert "hunter2" not in repr_str
        assert "**********" in repr_str

    def test_secret_str_get_value(self) -> None:
        cfg = RedisConfig(url="redis://:pw@cache:6379/0")  # type: ignore[arg-type]
        assert cfg.url.get_secret_value() == "redis://:pw@cache:6379/0"
