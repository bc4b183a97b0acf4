"""
Unit tests for agentloop/core/config.py - Settings Class and Singleton.
"""

import os
from unittest.mock import patch

import pytest


class TestSettingsDefaults:
    """Defaults applied when no environment is set."""

    def test_settings_extends_base_settings(self):
        from pydantic_settings import BaseSettings

        from agentloop.core.config import Settings

        assert issubclass(Settings, BaseSettings)

    def test_agent_loop_defaults(self):
        from agentloop.core.config import Settings

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.max_steps == 20
        assert settings.tool_timeout_seconds == 30.0
        assert settings.verbose is True

    def test_gateway_defaults(self):
        from agentloop.core.config import Settings

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.default_model == "gemini-1.5-flash"
        assert settings.gemini_api_base.startswith("https://generativelanguage.googleapis.com")
        assert settings.gateway_max_retries == 3
        assert settings.gemini_api_key.get_secret_value() == ""


class TestSettingsEnvironment:
    """Values loaded from AGENTLOOP_ environment variables."""

    def test_env_prefix_applies(self):
        from agentloop.core.config import Settings

        env = {"AGENTLOOP_MAX_STEPS": "7", "AGENTLOOP_VERBOSE": "false"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.max_steps == 7
        assert settings.verbose is False

    def test_gemini_api_key_read_from_plain_variable(self):
        from agentloop.core.config import Settings

        with patch.dict(os.environ, {"GEMINI_API_KEY": "AIza-test"}, clear=True):
            settings = Settings()

        assert settings.gemini_api_key.get_secret_value() == "AIza-test"

    def test_api_key_is_not_rendered(self):
        from agentloop.core.config import Settings

        with patch.dict(os.environ, {"GEMINI_API_KEY": "AIza-secret"}, clear=True):
            settings = Settings()

        assert "AIza-secret" not in repr(settings)

    def test_negative_max_steps_rejected(self):
        from pydantic import ValidationError

        from agentloop.core.config import Settings

        with patch.dict(os.environ, {"AGENTLOOP_MAX_STEPS": "-1"}, clear=True):
            with pytest.raises(ValidationError):
                Settings()

    def test_log_level_normalized(self):
        from agentloop.core.config import Settings

        with patch.dict(os.environ, {"AGENTLOOP_LOG_LEVEL": "debug"}, clear=True):
            settings = Settings()

        assert settings.log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        from pydantic import ValidationError

        from agentloop.core.config import Settings

        with patch.dict(os.environ, {"AGENTLOOP_LOG_LEVEL": "LOUD"}, clear=True):
            with pytest.raises(ValidationError):
                Settings()

    def test_invalid_environment_rejected(self):
        from pydantic import ValidationError

        from agentloop.core.config import Settings

        with patch.dict(os.environ, {"AGENTLOOP_ENVIRONMENT": "moon"}, clear=True):
            with pytest.raises(ValidationError):
                Settings()


class TestSettingsSingleton:
    """get_settings() caching."""

    def test_get_settings_returns_same_instance(self):
        from agentloop.core.config import get_settings

        assert get_settings() is get_settings()

    def test_cache_clear_reloads_environment(self):
        from agentloop.core.config import get_settings

        with patch.dict(os.environ, {"AGENTLOOP_MAX_STEPS": "3"}, clear=True):
            get_settings.cache_clear()
            assert get_settings().max_steps == 3
