# =============================================================================
# tools/__init__.py
# =============================================================================
# Both ends of the weather tool's MCP connection.
#
#   mcp_server.py  FastMCP server wrapping core/weather.py (get_weather)
#   client.py      Tool Client used by the orchestrator; validates arguments
#                  and normalises every outcome into a ToolResult
#
# The tool's docstring is what the model sees; keep it specific.
# =============================================================================
