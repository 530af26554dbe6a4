"""Unit tests for configuration management."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from assistant_gateway.core.config import Settings


class TestSettings:
    """Test Settings configuration class."""

    def test_default_values(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.app_name == "Assistant Gateway"
            assert settings.debug is False
            assert settings.host == "127.0.0.1"
            assert settings.port == 7777
            assert settings.ws_port == 7778
            assert settings.allowed_hosts == ["*"]
            assert settings.push_queue_size == 256
            assert settings.push_close_timeout == 2.0
            assert settings.screenshot_timeout == 30.0
            assert settings.base_url == "http://127.0.0.1:7777"

    def test_environment_overrides(self):
        env = {
            "GATEWAY_PORT": "9000",
            "GATEWAY_WS_PORT": "9001",
            "GATEWAY_DEBUG": "true",
            "GATEWAY_ALLOWED_HOSTS": '["http://localhost:3000"]',
            "GATEWAY_SCREENSHOT_TIMEOUT": "5.5",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

            assert settings.port == 9000
            assert settings.ws_port == 9001
            assert settings.debug is True
            assert settings.allowed_hosts == ["http://localhost:3000"]
            assert settings.screenshot_timeout == 5.5

    def test_unprefixed_variables_ignored(self):
        with patch.dict(os.environ, {"PORT": "1234"}, clear=True):
            assert Settings(_env_file=None).port == 7777

    def test_empty_values_ignored(self):
        with patch.dict(os.environ, {"GATEWAY_PORT": ""}, clear=True):
            assert Settings(_env_file=None).port == 7777

    def test_queue_size_must_be_positive(self):
        with patch.dict(os.environ, {"GATEWAY_PUSH_QUEUE_SIZE": "0"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)
