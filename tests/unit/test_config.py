"""Test Settings loading, env overrides and backend validation."""

from datetime import timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from audit_room.core.config import AuditConfig, Settings, load_settings
from audit_room.core.enums import StoreBackend
from audit_room.core.errors import ConfigError


class TestDefaults:
    def test_audit_defaults(self):
        cfg = AuditConfig()
        assert cfg.daily_accuracy_window_days == 7
        assert cfg.recent_executions_limit == 10
        assert cfg.risk_window_size == 100
        assert cfg.base_capital == 10_000.0
        assert cfg.max_leverage == 50.0
        assert cfg.anomaly_min_observations == 3
        assert cfg.anomaly_medium_threshold_pct == 5.0
        assert cfg.anomaly_high_threshold_pct == 10.0

    def test_storage_defaults_to_memory(self):
        settings = Settings()
        assert settings.storage.fill_backend == StoreBackend.MEMORY
        assert settings.storage.override_backend == StoreBackend.MEMORY

    def test_base_capital_must_be_positive(self):
        with pytest.raises(ValidationError, match="base_capital"):
            AuditConfig(base_capital=0)

    def test_tz(self):
        assert AuditConfig().tz is timezone.utc
        assert AuditConfig(display_timezone="Europe/London").tz == ZoneInfo("Europe/London")


class TestLoadSettings:
    def test_toml_file(self, tmp_path):
        path = tmp_path / "audit.toml"
        path.write_text(
            '[audit]\nmax_leverage = 30.0\n'
            '[storage]\noverride_backend = "redis"\nredis_prefix = "desk:"\n'
        )
        settings = load_settings(config_path=path)
        assert settings.audit.max_leverage == 30.0
        assert settings.storage.override_backend == StoreBackend.REDIS
        assert settings.storage.redis_prefix == "desk:"

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(config_path=tmp_path / "nope.toml")
        assert settings.audit.max_leverage == 50.0

    def test_overrides_merge_into_section(self, tmp_path):
        path = tmp_path / "audit.toml"
        path.write_text('[storage]\nredis_prefix = "desk:"\n')
        settings = load_settings(
            config_path=path, overrides={"storage": {"fill_backend": "postgres"}},
        )
        assert settings.storage.fill_backend == StoreBackend.POSTGRES
        assert settings.storage.redis_prefix == "desk:"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("AUDIT_ROOM_AUDIT__MAX_LEVERAGE", "25")
        assert Settings().audit.max_leverage == 25.0


class TestValidateBackends:
    def test_memory_ok(self):
        Settings().validate_backends()  # Should not raise

    def test_redis_override_ok(self):
        Settings(storage={"override_backend": "redis"}).validate_backends()

    def test_redis_fill_store_rejected(self):
        settings = Settings(storage={"fill_backend": "redis"})
        with pytest.raises(ConfigError, match="override backend"):
            settings.validate_backends()
