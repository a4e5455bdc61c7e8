# =============================================================================
# tools/mcp_server.py  —  FastMCP Weather Lookup Server
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the mock weather lookup (core/weather.py) as MCP tools.  The chat
#   API's Tool Client calls them over streamable HTTP.
#
# HOW IT WORKS (the flow):
#   1. The orchestrator decides the model's tool call is valid
#   2. tools/client.py calls "get_weather" on this server over HTTP
#   3. FastMCP routes the call to the decorated function below
#   4. The function calls core/ logic and returns a small dict
#
# RESPONSE SHAPE:
#   {"status": "ok", "weather": {...WeatherData...}}
#   {"status": "not_found", "city": "<as given>", "message": "..."}
#   "Not found" is an answer, not an error — the tool call itself succeeded.
#
# RUNNING THIS SERVER:
#   python main.py tools          (reads WEATHER_TOOL_HOST / WEATHER_TOOL_PORT)
#   python -m tools.mcp_server
# =============================================================================

import logging

from fastmcp import FastMCP

from core.log import log_request, log_response, log_status
from core.weather import get_weather as lookup_weather
from core.weather import list_known_cities

logger = logging.getLogger("weather-lookup")

mcp = FastMCP("weather-lookup")


@mcp.tool()
def get_weather(city: str) -> dict:
    """Get the current weather for a city.

    WHEN TO CALL THIS: whenever the user asks about weather, temperature,
    humidity or wind somewhere.  Call it once per city.

    Args:
        city: The city name only, e.g. "Paris" or "New York".

    Returns:
        On success: {"status": "ok", "weather": {city, temperature_c,
        condition, condition_icon, humidity_pct, wind_kph}}.
        If the city is unknown: {"status": "not_found", "city", "message"}.
    """
    log_request(logger, "get_weather", city=city)

    weather = lookup_weather(city)
    if weather is None:
        log_status(logger, f"No data for {city!r}")
        return log_response(logger, "get_weather", {
            "status": "not_found",
            "city": city,
            "message": f"No weather data is available for '{city}'.",
        })

    log_status(logger, f"Resolved {city!r} to {weather.city}")
    return log_response(logger, "get_weather", {
        "status": "ok",
        "weather": weather.to_dict(),
    })


@mcp.tool()
def known_cities() -> dict:
    """List the cities this server has weather for."""
    log_request(logger, "known_cities")
    return log_response(logger, "known_cities", {"cities": list_known_cities()})


def serve(host: str = "127.0.0.1", port: int = 8001) -> None:
    """Run the server over streamable HTTP at http://<host>:<port>/mcp."""
    mcp.run(transport="http", host=host, port=port)


if __name__ == "__main__":
    from core.config import Settings
    from core.log import configure_logging

    settings = Settings.from_env()
    configure_logging(settings.log_level, tag="MCP")
    serve(settings.weather_tool_host, settings.weather_tool_port)
