"""Tests for core.settings module.

Covers:
- TaskPoolSettings defaults
- TASKPOOL_* environment overrides
- Validation of negative values
- Cached accessor
"""

import pytest
from pydantic import ValidationError

from taskpool.core.settings import TaskPoolSettings, get_settings, setup_logging


class TestTaskPoolSettingsDefaults:
    def test_defaults(self):
        s = TaskPoolSettings()
        assert s.concurrency_limit == 10
        assert s.max_retry == 2
        assert s.wait_time == 0.0
        assert s.log_level == "INFO"
        assert s.log_json is None


class TestTaskPoolSettingsEnvOverride:
    def test_concurrency_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKPOOL_CONCURRENCY_LIMIT", "4")
        assert TaskPoolSettings().concurrency_limit == 4

    def test_wait_time_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKPOOL_WAIT_TIME", "0.25")
        assert TaskPoolSettings().wait_time == 0.25

    def test_unprefixed_env_is_ignored(self, monkeypatch):
        monkeypatch.setenv("MAX_RETRY", "7")
        assert TaskPoolSettings().max_retry == 2


class TestTaskPoolSettingsValidation:
    def test_negative_max_retry_rejected(self, monkeypatch):
        monkeypatch.setenv("TASKPOOL_MAX_RETRY", "-1")
        with pytest.raises(ValidationError):
            TaskPoolSettings()

    def test_negative_wait_time_rejected(self, monkeypatch):
        monkeypatch.setenv("TASKPOOL_WAIT_TIME", "-0.5")
        with pytest.raises(ValidationError):
            TaskPoolSettings()


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("TASKPOOL_MAX_RETRY", "5")
        get_settings.cache_clear()
        second = get_settings()
        assert first is not second
        assert second.max_retry == 5


class TestSetupLogging:
    def test_passes_settings_through(self, monkeypatch):
        seen = {}

        def _fake_configure(**kwargs):
            seen.update(kwargs)

        monkeypatch.setattr("taskpool.core.logging.configure_logging", _fake_configure)
        setup_logging(TaskPoolSettings(log_level="DEBUG", log_json=True))
        assert seen == {"level": "DEBUG", "json_format": True}
