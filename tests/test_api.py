"""Tests for the chat HTTP API and the SSE streamer."""

import asyncio
import json

import pytest
from conftest import BlockingModel, ScriptedModel, weather_call
from httpx import ASGITransport, AsyncClient

from agent.model import TextDelta
from agent.orchestrator import Orchestrator, State
from api.server import create_app
from api.streamer import ResponseStreamer, encode_event
from core.config import Settings
from core.models import StreamEvent


def _parse_sse(body: str) -> list[dict]:
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


def _app(model, tool_client, store):
    return create_app(Settings(), model=model, tool_client=tool_client, store=store)


@pytest.mark.asyncio
async def test_chat_streams_events(store, tool_client):
    model = ScriptedModel([weather_call("Paris")], [TextDelta("Lovely in Paris.")])
    app = _app(model, tool_client, store)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/api/chat", json={"message": "What's the weather in Paris?", "sessionId": "abc"})

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    assert r.headers["x-session-id"] == "abc"

    events = _parse_sse(r.text)
    assert [e["type"] for e in events] == ["weather_data", "text", "done"]
    assert json.loads(events[0]["content"])["city"] == "Paris"
    assert "content" not in events[-1]
    assert len(store.get_or_create("abc").turns) == 2
    assert not store.is_leased("abc")


@pytest.mark.asyncio
async def test_session_id_generated_when_missing(store, tool_client):
    app = _app(ScriptedModel([TextDelta("Hi!")]), tool_client, store)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/api/chat", json={"message": "hello"})

    session_id = r.headers["x-session-id"]
    assert session_id
    assert session_id in store


@pytest.mark.asyncio
async def test_concurrent_request_for_same_session_is_rejected(store, tool_client):
    app = _app(ScriptedModel([TextDelta("Hi!")]), tool_client, store)
    store.get_or_create("busy")
    lease = store.lease("busy")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/api/chat", json={"message": "hello", "sessionId": "busy"})

    assert r.status_code == 409
    assert r.headers["retry-after"] == "1"
    assert [e["type"] for e in _parse_sse(r.text)] == ["error", "done"]
    assert store.get_or_create("busy").turns == []
    lease.release()


@pytest.mark.asyncio
async def test_overlapping_requests_for_same_session(store, tool_client):
    model = BlockingModel()
    app = _app(model, tool_client, store)
    body = {"message": "What's the weather in Paris?", "sessionId": "shared"}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        first = asyncio.create_task(ac.post("/api/chat", json=body))
        await asyncio.wait_for(model.started.wait(), timeout=5)
        assert store.is_leased("shared")

        second = await ac.post("/api/chat", json=body)

        model.release.set()
        first = await asyncio.wait_for(first, timeout=5)

    assert second.status_code == 409
    assert second.headers["retry-after"] == "1"
    assert [e["type"] for e in _parse_sse(second.text)] == ["error", "done"]

    assert first.status_code == 200
    assert [e["type"] for e in _parse_sse(first.text)] == ["text", "text", "done"]
    assert len(store.get_or_create("shared").turns) == 2
    assert not store.is_leased("shared")


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}, {"message": 5}])
async def test_invalid_body_is_rejected(store, tool_client, body):
    app = _app(ScriptedModel(), tool_client, store)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/api/chat", json=body)

    assert r.status_code == 422


@pytest.mark.asyncio
async def test_health(store, tool_client):
    app = _app(ScriptedModel(), tool_client, store)
    store.get_or_create("one")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/health")

    assert r.json() == {"status": "ok", "sessions": 1}


# -----------------------------------------------------------------------------
# ResponseStreamer
# -----------------------------------------------------------------------------
async def _events(*events, fail=None):
    for event in events:
        yield event
    if fail is not None:
        raise fail


@pytest.mark.asyncio
async def test_streamer_adds_done_after_unexpected_failure():
    finished = []
    frames = [
        frame
        async for frame in ResponseStreamer().stream(
            _events(StreamEvent.text("hi"), fail=RuntimeError("bug")),
            on_finish=lambda: finished.append(True),
        )
    ]
    types = [json.loads(f[len("data: "):])["type"] for f in frames]
    assert types == ["text", "error", "done"]
    assert finished == [True]


@pytest.mark.asyncio
async def test_streamer_cancels_in_flight_call_on_disconnect():
    cancelled = []

    async def events():
        yield StreamEvent.text("one")
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise
        yield StreamEvent.text("late")

    gone = asyncio.Event()

    async def is_disconnected():
        return gone.is_set()

    loop = asyncio.get_running_loop()
    loop.call_later(0.05, gone.set)
    started = loop.time()

    frames = [
        f async for f in ResponseStreamer(poll_interval=0.01).stream(events(), is_disconnected)
    ]

    assert loop.time() - started < 1
    assert frames == [encode_event(StreamEvent.text("one"))]
    assert cancelled == [True]


@pytest.mark.asyncio
async def test_disconnect_during_model_call_discards_turn(store, tool_client):
    model = BlockingModel()
    session = store.get_or_create("s1")
    orchestrator = Orchestrator(model, tool_client, store)
    lease = store.lease("s1")

    async def is_disconnected():
        return model.started.is_set()

    frames = [
        f
        async for f in ResponseStreamer(poll_interval=0.01).stream(
            orchestrator.handle(session, "Paris?"), is_disconnected, lease.release
        )
    ]

    assert all('"done"' not in f for f in frames)
    assert model.cancelled
    assert orchestrator.state is State.FAILED
    assert session.turns == []
    assert not store.is_leased("s1")


def test_encode_event_format():
    assert encode_event(StreamEvent.text("hi")) == 'data: {"type": "text", "content": "hi"}\n\n'
    assert encode_event(StreamEvent.done()) == 'data: {"type": "done"}\n\n'
