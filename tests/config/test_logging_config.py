"""Tests for logging configuration."""

import logging

import pytest

from fleet_commons.config.logging_config import (
    FORMAT_STRINGS,
    LogFormat,
    LoggingConfig,
    get_log_level_from_verbosity,
    get_logger,
    setup_logging,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "LOG_VERBOSITY", "LOG_FORMAT", "ENABLE_RBAC_LOGGING"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestVerbosity:
    """Test verbosity to level mapping."""
    
    @pytest.mark.parametrize("verbosity,level", [
        ("quiet", "ERROR"),
        ("NORMAL", "WARNING"),
        ("verbose", "INFO"),
        ("DEBUG", "DEBUG"),
        ("chatty", "WARNING"),
    ])
    def test_mapping(self, verbosity, level):
        """Test each verbosity mode and the fallback."""
        assert get_log_level_from_verbosity(verbosity) == level


class TestLoggingConfig:
    """Test dictConfig construction from the environment."""
    
    def test_defaults(self, clean_env):
        """Test default level, format and quiet modules."""
        config = LoggingConfig.build_config()
        
        assert config["root"]["level"] == "WARNING"
        assert config["formatters"]["default"]["format"] == FORMAT_STRINGS[LogFormat.SIMPLE]
        assert config["loggers"]["redis"]["level"] == "ERROR"
        assert config["loggers"]["asyncio"]["level"] == "ERROR"
        assert config["loggers"][LoggingConfig.RBAC_MODULE]["level"] == "WARNING"
    
    def test_log_level_overrides_verbosity(self, clean_env):
        """Test LOG_LEVEL wins over LOG_VERBOSITY."""
        clean_env.setenv("LOG_VERBOSITY", "QUIET")
        clean_env.setenv("LOG_LEVEL", "info")
        
        config = LoggingConfig.build_config()
        
        assert config["root"]["level"] == "INFO"
        assert config["handlers"]["console"]["level"] == "INFO"
    
    def test_invalid_log_level_uses_verbosity(self, clean_env):
        """Test an unknown LOG_LEVEL falls back to verbosity."""
        clean_env.setenv("LOG_VERBOSITY", "VERBOSE")
        clean_env.setenv("LOG_LEVEL", "LOUD")
        
        assert LoggingConfig.build_config()["root"]["level"] == "INFO"
    
    def test_rbac_decisions_quiet_at_debug(self, clean_env):
        """Test RBAC decision logs stay at INFO unless enabled."""
        clean_env.setenv("LOG_LEVEL", "DEBUG")
        
        config = LoggingConfig.build_config()
        
        assert config["root"]["level"] == "DEBUG"
        assert config["loggers"][LoggingConfig.RBAC_MODULE]["level"] == "INFO"
        assert config["loggers"][LoggingConfig.RBAC_MODULE]["propagate"] is False
    
    def test_rbac_logging_enabled(self, clean_env):
        """Test ENABLE_RBAC_LOGGING leaves RBAC loggers at the root level."""
        clean_env.setenv("LOG_LEVEL", "DEBUG")
        clean_env.setenv("ENABLE_RBAC_LOGGING", "true")
        
        assert LoggingConfig.RBAC_MODULE not in LoggingConfig.build_config()["loggers"]
    
    @pytest.mark.parametrize("log_format,expected", [
        ("detailed", LogFormat.DETAILED),
        ("JSON", LogFormat.JSON),
        ("xml", LogFormat.SIMPLE),
    ])
    def test_format_selection(self, clean_env, log_format, expected):
        """Test LOG_FORMAT selection and fallback."""
        clean_env.setenv("LOG_FORMAT", log_format)
        
        config = LoggingConfig.build_config()
        
        assert config["formatters"]["default"]["format"] == FORMAT_STRINGS[expected]
    
    def test_setup_logging_applies_config(self, clean_env, mocker):
        """Test setup_logging hands the built config to dictConfig."""
        dict_config = mocker.patch("logging.config.dictConfig")
        
        setup_logging()
        
        dict_config.assert_called_once()
        assert dict_config.call_args.args[0]["root"]["level"] == "WARNING"
    
    def test_set_module_level(self):
        """Test per-module level overrides."""
        name = "fleet_commons.tests.level"
        
        LoggingConfig.set_module_level(name, "info")
        assert get_logger(name).level == logging.INFO
        
        LoggingConfig.silence_module(name)
        assert get_logger(name).level == logging.CRITICAL
