# =============================================================================
# main.py  —  Entry Point for the Weather Chat Agent
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py tools     # 1. start the mock weather tool server
#   uv run python main.py serve     # 2. start the chat API (POST /api/chat)
#   uv run python main.py chat      #    or talk to the agent in the terminal
#
# WHAT HAPPENS ON EACH MESSAGE:
#   1. The session's history is loaded (or a new session is created)
#   2. The orchestrator sends history + the message to the model
#   3. The model answers in text, or asks for get_weather(city)
#   4. Tool results go back to the model until it produces a final answer
#   5. Every step is streamed as an event; the finished turn is saved
#
# CONFIGURATION:
#   Environment variables or a .env file; see core/config.py.
# =============================================================================

import argparse
import asyncio
import json
import uuid

from core.config import Settings
from core.log import configure_logging


def run_tools(settings: Settings) -> None:
    from tools.mcp_server import serve

    configure_logging(settings.log_level, tag="MCP")
    serve(settings.weather_tool_host, settings.weather_tool_port)


def run_api(settings: Settings) -> None:
    import uvicorn

    from api.server import create_app

    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


async def run_chat(settings: Settings) -> None:
    """Interactive console conversation driving the orchestrator directly."""
    from agent.model import LiteLlmModel
    from agent.orchestrator import Orchestrator
    from core.sessions import SessionStore
    from tools.client import WeatherToolClient

    configure_logging("WARNING")
    store = SessionStore(idle_timeout=settings.session_idle_timeout)
    model = LiteLlmModel(settings.model_name, timeout=settings.model_timeout)
    tool_client = WeatherToolClient(settings.weather_tool_url, settings.tool_timeout)
    session_id = uuid.uuid4().hex

    print("=" * 70)
    print("  WEATHER CHAT AGENT")
    print(f"  model: {settings.model_name}   tools: {settings.weather_tool_url}")
    print("=" * 70)
    print("💬 Ask about the weather anywhere!  (Type 'quit' to exit)")

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break
        if not user_input:
            continue

        orchestrator = Orchestrator(
            model, tool_client, store,
            max_tool_calls=settings.max_tool_calls,
            tool_timeout=settings.tool_timeout,
        )
        with store.lease(session_id):
            session = store.get_or_create(session_id)
            print("\n🤖 Agent: ", end="", flush=True)
            async for event in orchestrator.handle(session, user_input):
                if event.type == "text":
                    print(event.content, end="", flush=True)
                elif event.type == "weather_data":
                    weather = json.loads(event.content)
                    print(
                        f"\n  {weather['condition_icon']} {weather['city']}: "
                        f"{weather['temperature_c']}°C, {weather['condition']}, "
                        f"humidity {weather['humidity_pct']}%, wind {weather['wind_kph']} km/h\n  ",
                        end="",
                        flush=True,
                    )
                elif event.type == "error":
                    print(f"\n  ⚠️  {event.content}", flush=True)
            print()

    await store.close()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Weather chat agent")
    parser.add_argument("command", nargs="?", default="serve", choices=("serve", "tools", "chat"))
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.command == "tools":
        run_tools(settings)
    elif args.command == "chat":
        asyncio.run(run_chat(settings))
    else:
        run_api(settings)


if __name__ == "__main__":
    main()
