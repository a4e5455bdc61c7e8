# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of every piece of information that flows
# between the session store, the orchestrator, the tool client and the wire.
#
#   Session ─┬─ Turn (user)
#            ├─ Turn (assistant) ── ToolCall / ToolResult pairs
#            └─ ...
#
# A Turn is frozen once built: history is an append-only log, never edited.
# WeatherData is generated per request and never stored on its own.
# =============================================================================

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"

STATUS_OK = "ok"
STATUS_NOT_FOUND = "not_found"
STATUS_ERROR = "error"

EVENT_TEXT = "text"
EVENT_WEATHER_DATA = "weather_data"
EVENT_ERROR = "error"
EVENT_DONE = "done"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# WeatherData — one city's current conditions (mock)
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class WeatherData:
    """Current conditions for a single city."""

    city: str                          # Display name, e.g. "Paris"
    temperature_c: float
    condition: str                     # e.g. "Partly Cloudy"
    condition_icon: str                # Emoji for the UI card
    humidity_pct: int                  # 0–100
    wind_kph: float                    # >= 0

    def __post_init__(self):
        if not 0 <= self.humidity_pct <= 100:
            raise ValueError(f"humidity_pct out of range: {self.humidity_pct}")
        if self.wind_kph < 0:
            raise ValueError(f"wind_kph must be non-negative: {self.wind_kph}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "WeatherData":
        """Build from an untrusted dict, raising ValueError if it is malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")
        try:
            city = data["city"]
            condition = data["condition"]
            icon = data["condition_icon"]
            humidity = data["humidity_pct"]
            temperature = data["temperature_c"]
            wind = data["wind_kph"]
        except KeyError as exc:
            raise ValueError(f"missing field {exc.args[0]!r}") from exc

        if not all(isinstance(v, str) for v in (city, condition, icon)):
            raise ValueError("city, condition and condition_icon must be strings")
        # bool is an int subclass; reject it explicitly.
        if isinstance(humidity, bool) or not isinstance(humidity, int):
            raise ValueError("humidity_pct must be an integer")
        for name, value in (("temperature_c", temperature), ("wind_kph", wind)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number")

        return cls(
            city=city,
            temperature_c=float(temperature),
            condition=condition,
            condition_icon=icon,
            humidity_pct=humidity,
            wind_kph=float(wind),
        )


# -----------------------------------------------------------------------------
# ToolCall / ToolResult — one round-trip to the tool server
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ToolCall:
    """A validated request, issued by the model, to run a tool."""

    call_id: str
    tool_name: str
    arguments: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a ToolCall. ``status`` is one of ok / not_found / error."""

    call_id: str
    status: str
    payload: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


# -----------------------------------------------------------------------------
# Turn — one role-attributed message in a session
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Turn:
    role: str
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_results: tuple[ToolResult, ...] = ()
    timestamp: datetime = field(default_factory=utcnow)
    # Leading characters of `content` streamed before the last tool results.
    pre_tool_chars: int = 0

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role=ROLE_USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls=(), tool_results=(), pre_tool_chars=0) -> "Turn":
        return cls(
            role=ROLE_ASSISTANT,
            content=content,
            tool_calls=tuple(tool_calls),
            tool_results=tuple(tool_results),
            pre_tool_chars=pre_tool_chars,
        )


# -----------------------------------------------------------------------------
# Session — a conversation, owned by the SessionStore
# -----------------------------------------------------------------------------
@dataclass
class Session:
    id: str
    created_at: datetime = field(default_factory=utcnow)
    last_active_at: datetime = field(default_factory=utcnow)
    turns: list[Turn] = field(default_factory=list)

    def history(self) -> tuple[Turn, ...]:
        """A snapshot of the turns; callers cannot mutate the log through it."""
        return tuple(self.turns)


# -----------------------------------------------------------------------------
# StreamEvent — one unit of the outbound wire protocol
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class StreamEvent:
    type: str
    content: Optional[str] = None

    @classmethod
    def text(cls, content: str) -> "StreamEvent":
        return cls(EVENT_TEXT, content)

    @classmethod
    def weather_data(cls, weather: dict) -> "StreamEvent":
        return cls(EVENT_WEATHER_DATA, json.dumps(weather))

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(EVENT_ERROR, message)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(EVENT_DONE)

    def to_dict(self) -> dict:
        data = {"type": self.type}
        if self.content is not None:
            data["content"] = self.content
        return data
