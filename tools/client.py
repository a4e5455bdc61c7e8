# =============================================================================
# tools/client.py  —  Tool Client (orchestrator → weather tool server)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Turns an orchestrator-level ToolCall into an MCP call against the weather
#   server and normalises whatever comes back into a ToolResult:
#
#     server says {"status": "ok", ...}         → ToolResult(status="ok")
#     server says {"status": "not_found", ...}  → ToolResult(status="not_found")
#     timeout / refused / ToolError / garbage   → ToolResult(status="error")
#
#   Arguments are validated here, before any network traffic: the model's
#   JSON is untrusted.
#
# TARGET:
#   Anything fastmcp.Client accepts: the server URL in production, or the
#   FastMCP instance itself (in-process transport) in tests.
#   A fresh client session is opened per invocation; nothing is cached.
# =============================================================================

import asyncio
import logging
import uuid
from typing import Any, Optional

from fastmcp import Client
from fastmcp.exceptions import ToolError

from core.errors import ToolTransportError
from core.models import (
    STATUS_ERROR,
    STATUS_NOT_FOUND,
    STATUS_OK,
    ToolResult,
    WeatherData,
)

logger = logging.getLogger(__name__)

GET_WEATHER = "get_weather"

# OpenAI-style function schema handed to the model.
WEATHER_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": GET_WEATHER,
        "description": (
            "Get the current weather for a city. Returns temperature (°C), "
            "condition, humidity (%) and wind speed (km/h), or a not_found "
            "status if the city is unknown."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "city": {
                    "type": "string",
                    "description": "City name only, e.g. 'Paris' or 'New York'.",
                },
            },
            "required": ["city"],
            "additionalProperties": False,
        },
    },
}


def validate_arguments(tool_name: str, arguments: Any) -> Optional[str]:
    """Return a reason string if the call is invalid, else None."""
    if tool_name != GET_WEATHER:
        return f"unknown tool {tool_name!r}"
    if not isinstance(arguments, dict):
        return "arguments must be a JSON object"
    extra = set(arguments) - {"city"}
    if extra:
        return f"unexpected argument(s): {', '.join(sorted(extra))}"
    city = arguments.get("city")
    if not isinstance(city, str) or not city.strip():
        return "'city' must be a non-empty string"
    return None


class WeatherToolClient:
    def __init__(self, target, default_timeout: float = 5.0):
        self._target = target
        self.default_timeout = default_timeout

    async def invoke(
        self,
        tool_name: str,
        arguments: Any,
        timeout: Optional[float] = None,
        call_id: Optional[str] = None,
    ) -> ToolResult:
        """Run one tool call and return its normalised result.  Never raises
        for transport problems; cancellation still propagates."""
        call_id = call_id or f"call_{uuid.uuid4().hex[:12]}"
        if timeout is None:
            timeout = self.default_timeout

        problem = validate_arguments(tool_name, arguments)
        if problem:
            logger.warning(f"Rejected tool call {call_id}: {problem}")
            return ToolResult(call_id, STATUS_ERROR, {"reason": f"invalid call: {problem}"})

        try:
            payload = await asyncio.wait_for(
                self._call(tool_name, arguments), timeout=timeout
            )
            return self._normalise(call_id, payload)
        except asyncio.TimeoutError:
            logger.warning(f"Tool call {call_id} timed out after {timeout}s")
            return ToolResult(call_id, STATUS_ERROR, {"reason": "timeout"})
        except ToolTransportError as exc:
            logger.warning(f"Tool call {call_id} failed: {exc}")
            return ToolResult(call_id, STATUS_ERROR, {"reason": str(exc)})

    async def _call(self, tool_name: str, arguments: dict) -> Any:
        try:
            async with Client(self._target) as client:
                result = await client.call_tool(tool_name, arguments)
        except ToolError as exc:
            raise ToolTransportError(f"tool server error: {exc}") from exc
        except asyncio.TimeoutError:
            raise
        except Exception as exc:
            # fastmcp surfaces refused connections and protocol failures as a
            # mix of httpx, MCP and RuntimeError types.
            raise ToolTransportError(
                f"tool server unreachable: {type(exc).__name__}"
            ) from exc

        if isinstance(result.structured_content, dict):
            return result.structured_content
        raise ToolTransportError("malformed response: no structured content")

    @staticmethod
    def _normalise(call_id: str, payload: Any) -> ToolResult:
        if not isinstance(payload, dict):
            raise ToolTransportError("malformed response: not an object")

        status = payload.get("status")
        if status == STATUS_OK:
            try:
                weather = WeatherData.from_dict(payload.get("weather"))
            except ValueError as exc:
                raise ToolTransportError(f"malformed response: {exc}") from exc
            return ToolResult(call_id, STATUS_OK, weather.to_dict())
        if status == STATUS_NOT_FOUND:
            return ToolResult(call_id, STATUS_NOT_FOUND, {
                "city": payload.get("city"),
                "message": payload.get("message", "City not found."),
            })
        raise ToolTransportError(f"malformed response: unknown status {status!r}")
