"""
RunCache — Configuration Loading Tests

Environment variables and .env files flowing into RunCacheConfig.
"""

from pathlib import Path

import pytest  # type: ignore[import-untyped]

from run_cache.config import (
    Environment,
    EventDispatch,
    LogFormat,
    LogLevel,
    RunCacheConfig,
    get_config,
    load_config,
    reload_config,
)
from run_cache.config import loader
from run_cache.errors import ConfigurationError

ENV_VARS = ("ENVIRONMENT", "LOG_LEVEL", "RUN_CACHE_LOG_FORMAT", "RUN_CACHE_EVENT_DISPATCH")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start each test with no cached config and default-valued variables."""
    monkeypatch.setattr(loader, "_config_instance", None)
    # setenv first so monkeypatch restores anything a .env file overrides
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def missing_env_file(tmp_path: Path) -> str:
    return str(tmp_path / "absent.env")


class TestLoadConfig:
    """Test suite for load_config."""

    def test_defaults(self, missing_env_file: str) -> None:
        config = load_config(env_file=missing_env_file)

        assert config.environment is Environment.DEVELOPMENT
        assert config.log_level is LogLevel.INFO
        assert config.log_format is LogFormat.JSON
        assert config.event_dispatch is EventDispatch.AWAIT

    def test_environment_variables(self, monkeypatch: pytest.MonkeyPatch, missing_env_file: str) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("RUN_CACHE_LOG_FORMAT", "TEXT")
        monkeypatch.setenv("RUN_CACHE_EVENT_DISPATCH", "Background")

        config = load_config(env_file=missing_env_file)

        assert config.environment is Environment.PRODUCTION
        assert config.log_level is LogLevel.WARNING
        assert config.log_format is LogFormat.TEXT
        assert config.event_dispatch is EventDispatch.BACKGROUND

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("RUN_CACHE_EVENT_DISPATCH=background\nLOG_LEVEL=ERROR\n")

        config = load_config(env_file=str(env_file))

        assert config.event_dispatch is EventDispatch.BACKGROUND
        assert config.log_level is LogLevel.ERROR

    def test_cached_until_reload(self, monkeypatch: pytest.MonkeyPatch, missing_env_file: str) -> None:
        first = load_config(env_file=missing_env_file)
        monkeypatch.setenv("RUN_CACHE_EVENT_DISPATCH", "background")

        assert load_config(env_file=missing_env_file) is first
        assert get_config() is first

        reloaded = reload_config(env_file=missing_env_file)
        assert reloaded is not first
        assert reloaded.event_dispatch is EventDispatch.BACKGROUND
        assert get_config() is reloaded

    def test_invalid_dispatch(self, monkeypatch: pytest.MonkeyPatch, missing_env_file: str) -> None:
        monkeypatch.setenv("RUN_CACHE_EVENT_DISPATCH", "eventually")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(env_file=missing_env_file)

        assert "validation_errors" in exc_info.value.details
        assert exc_info.value.status_code == 500

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch, missing_env_file: str) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ConfigurationError):
            load_config(env_file=missing_env_file)


class TestRunCacheConfig:
    """Test suite for the RunCacheConfig model."""

    def test_enum_instances_pass_through(self) -> None:
        config = RunCacheConfig(log_level=LogLevel.DEBUG, event_dispatch=EventDispatch.BACKGROUND)

        assert config.log_level is LogLevel.DEBUG
        assert config.event_dispatch is EventDispatch.BACKGROUND

    def test_case_insensitive_strings(self) -> None:
        config = RunCacheConfig(log_level="debug", log_format="Json", event_dispatch="AWAIT")  # type: ignore[arg-type]

        assert config.log_level is LogLevel.DEBUG
        assert config.log_format is LogFormat.JSON
        assert config.event_dispatch is EventDispatch.AWAIT
