# =============================================================================
# core/config.py  —  Runtime settings
# =============================================================================
#
# Every knob is an environment variable, optionally supplied by a .env file
# (python-dotenv).  LiteLLM reads its own provider keys (OPENROUTER_API_KEY,
# OPENAI_API_KEY, ...) straight from the environment, so those are not
# duplicated here.
#
#   MODEL_NAME                      LiteLLM model string
#   MODEL_TIMEOUT_SECONDS           per model call
#   WEATHER_TOOL_URL                where the agent finds the tool server
#   WEATHER_TOOL_HOST / _PORT       where the tool server listens
#   TOOL_TIMEOUT_SECONDS            per tool call
#   SESSION_IDLE_TIMEOUT_SECONDS    idle sessions older than this are evicted
#   SESSION_SWEEP_INTERVAL_SECONDS  how often the sweeper runs
#   MAX_TOOL_CALLS_PER_TURN         loop bound per user message
#   API_HOST / API_PORT             chat API bind address
#   LOG_LEVEL
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from core.errors import ConfigError


def _number(env: Mapping[str, str], name: str, default, cast=float):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a {cast.__name__}, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    model_name: str = "openrouter/openai/gpt-4o"
    model_timeout: float = 30.0
    weather_tool_url: str = "http://127.0.0.1:8001/mcp"
    weather_tool_host: str = "127.0.0.1"
    weather_tool_port: int = 8001
    tool_timeout: float = 5.0
    session_idle_timeout: float = 1800.0
    session_sweep_interval: float = 60.0
    max_tool_calls: int = 5
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``env`` (default: os.environ after loading .env)."""
        if env is None:
            load_dotenv()
            env = os.environ

        defaults = cls()
        return cls(
            model_name=env.get("MODEL_NAME", defaults.model_name),
            model_timeout=_number(env, "MODEL_TIMEOUT_SECONDS", defaults.model_timeout),
            weather_tool_url=env.get("WEATHER_TOOL_URL", defaults.weather_tool_url),
            weather_tool_host=env.get("WEATHER_TOOL_HOST", defaults.weather_tool_host),
            weather_tool_port=_number(env, "WEATHER_TOOL_PORT", defaults.weather_tool_port, int),
            tool_timeout=_number(env, "TOOL_TIMEOUT_SECONDS", defaults.tool_timeout),
            session_idle_timeout=_number(
                env, "SESSION_IDLE_TIMEOUT_SECONDS", defaults.session_idle_timeout
            ),
            session_sweep_interval=_number(
                env, "SESSION_SWEEP_INTERVAL_SECONDS", defaults.session_sweep_interval
            ),
            max_tool_calls=_number(env, "MAX_TOOL_CALLS_PER_TURN", defaults.max_tool_calls, int),
            api_host=env.get("API_HOST", defaults.api_host),
            api_port=_number(env, "API_PORT", defaults.api_port, int),
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
        )
