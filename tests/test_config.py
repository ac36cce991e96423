"""
Config.from_env() tests.
"""

import os
from unittest import mock

import pytest

from config import Config, ConfigurationError, DEFAULT_API_URL


@pytest.fixture
def valid_env_vars():
    return {
        "CX_API_USERNAME": "debug@example.com",
        "CX_API_PASSWORD": "secret",
    }


class TestConfigFromEnv:

    def test_defaults(self, valid_env_vars):
        with mock.patch.dict(os.environ, valid_env_vars, clear=True):
            config = Config.from_env()

        assert config.api_url == DEFAULT_API_URL
        assert config.api_username == "debug@example.com"
        assert config.api_password == "secret"
        assert config.api_timeout == 30
        assert config.log_level == "INFO"

    def test_overrides(self, valid_env_vars):
        env = dict(valid_env_vars, CX_API_URL="http://localhost:8080/api/",
                   CX_API_TIMEOUT="2.5", LOG_LEVEL="debug")
        with mock.patch.dict(os.environ, env, clear=True):
            config = Config.from_env()

        assert config.api_url == "http://localhost:8080/api/"
        assert config.api_timeout == 2.5
        assert config.log_level == "debug"

    def test_missing_credentials_are_listed(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                Config.from_env()

        assert "CX_API_USERNAME" in str(exc_info.value)
        assert "CX_API_PASSWORD" in str(exc_info.value)

    @pytest.mark.parametrize("timeout", ["abc", "0", "-1"])
    def test_invalid_timeout(self, valid_env_vars, timeout):
        env = dict(valid_env_vars, CX_API_TIMEOUT=timeout)
        with mock.patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError, match="CX_API_TIMEOUT"):
                Config.from_env()

    def test_invalid_url(self, valid_env_vars):
        env = dict(valid_env_vars, CX_API_URL="ftp://example.com")
        with mock.patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError, match="CX_API_URL"):
                Config.from_env()

    def test_invalid_log_level(self, valid_env_vars):
        env = dict(valid_env_vars, LOG_LEVEL="VERBOSE")
        with mock.patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
                Config.from_env()
