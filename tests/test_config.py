"""Tests for environment-driven settings."""

import pytest

from core.config import Settings
from core.errors import ConfigError


def test_defaults_from_empty_env():
    settings = Settings.from_env({})
    assert settings.max_tool_calls == 5
    assert settings.model_name == "openrouter/openai/gpt-4o"
    assert settings.weather_tool_url.endswith("/mcp")


def test_values_are_parsed():
    settings = Settings.from_env({
        "MAX_TOOL_CALLS_PER_TURN": "3",
        "TOOL_TIMEOUT_SECONDS": "1.5",
        "LOG_LEVEL": "debug",
        "MODEL_NAME": "openai/gpt-4o-mini",
    })
    assert settings.max_tool_calls == 3
    assert settings.tool_timeout == 1.5
    assert settings.log_level == "DEBUG"
    assert settings.model_name == "openai/gpt-4o-mini"


@pytest.mark.parametrize("value", ["many", "0", "-2"])
def test_invalid_numbers_raise(value):
    with pytest.raises(ConfigError):
        Settings.from_env({"MAX_TOOL_CALLS_PER_TURN": value})
