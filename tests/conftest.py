"""Shared fixtures: a scripted model, an in-process weather tool client."""

import asyncio
import json

import pytest

from agent.model import TextDelta, ToolCallRequest
from core.models import STATUS_ERROR, ToolResult
from core.sessions import SessionStore
from tools.client import WeatherToolClient
from tools.mcp_server import mcp


class ScriptedModel:
    """Plays back one scripted round per model call.

    A round is a list of deltas, or an exception instance to raise (after any
    deltas listed before it).
    """

    def __init__(self, *rounds):
        self.rounds = list(rounds)
        self.calls: list[list[dict]] = []

    async def stream(self, messages, tools):
        self.calls.append([dict(m) for m in messages])
        round_ = self.rounds.pop(0) if self.rounds else [TextDelta("ok")]
        for item in round_:
            if isinstance(item, BaseException):
                raise item
            await asyncio.sleep(0)
            yield item


class BlockingModel:
    """Streams one fragment, then holds the call open until ``release`` is set."""

    def __init__(self, lead="Looking that up. ", tail="Mild and dry."):
        self.lead = lead
        self.tail = tail
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.cancelled = False

    async def stream(self, messages, tools):
        self.started.set()
        yield TextDelta(self.lead)
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        yield TextDelta(self.tail)


def weather_call(city, call_id="call_1"):
    return ToolCallRequest(call_id=call_id, name="get_weather", raw_arguments=json.dumps({"city": city}))


class TimeoutThenRealClient:
    """Fails the first invocation with a timeout, then delegates."""

    def __init__(self, delegate):
        self.delegate = delegate
        self.invocations = 0

    async def invoke(self, tool_name, arguments, timeout=None, call_id=None):
        self.invocations += 1
        if self.invocations == 1:
            return ToolResult(call_id, STATUS_ERROR, {"reason": "timeout"})
        return await self.delegate.invoke(tool_name, arguments, timeout, call_id)


@pytest.fixture
def store():
    return SessionStore(idle_timeout=60)


@pytest.fixture
def tool_client():
    return WeatherToolClient(mcp, default_timeout=5)


async def collect(events):
    return [event async for event in events]
