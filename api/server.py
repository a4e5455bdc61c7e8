# =============================================================================
# api/server.py  —  Chat HTTP API (FastAPI)
# =============================================================================
#
#   POST /api/chat   {"message": "...", "sessionId": "..."?}
#                    → text/event-stream of {"type", "content"?} frames
#                    → 409 (retryable) while another request holds the session
#   GET  /health     → {"status": "ok", "sessions": N}
#
# LIFECYCLE:
#   create_app() builds exactly one SessionStore, model adapter and tool
#   client.  The lifespan hook starts the idle-session sweeper on startup and
#   closes the store on shutdown.
# =============================================================================

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.background import BackgroundTask

from agent.model import LiteLlmModel, ModelCapability
from agent.orchestrator import Orchestrator
from api.streamer import SSE_HEADERS, SSE_MEDIA_TYPE, ResponseStreamer
from core.config import Settings
from core.errors import SessionConflictError
from core.models import StreamEvent
from core.sessions import SessionStore
from tools.client import WeatherToolClient

logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    message: str = Field(min_length=1, max_length=4000)
    session_id: Optional[str] = Field(default=None, alias="sessionId", max_length=128)


def create_app(
    settings: Optional[Settings] = None,
    model: Optional[ModelCapability] = None,
    tool_client: Optional[WeatherToolClient] = None,
    store: Optional[SessionStore] = None,
) -> FastAPI:
    if settings is None:
        settings = Settings.from_env()
    # An empty SessionStore is falsy (it has __len__), so test for None explicitly.
    if store is None:
        store = SessionStore(idle_timeout=settings.session_idle_timeout)
    if model is None:
        model = LiteLlmModel(settings.model_name, timeout=settings.model_timeout)
    if tool_client is None:
        tool_client = WeatherToolClient(
            settings.weather_tool_url, default_timeout=settings.tool_timeout
        )
    streamer = ResponseStreamer()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.start_sweeper(settings.session_sweep_interval)
        logger.info(
            f"Chat API ready (model={settings.model_name}, "
            f"tools={settings.weather_tool_url})"
        )
        yield
        await store.close()

    app = FastAPI(title="Weather Chat Agent", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    @app.post("/api/chat")
    async def chat(body: ChatRequest, request: Request):
        session_id = body.session_id or uuid.uuid4().hex
        headers = {**SSE_HEADERS, "X-Session-Id": session_id}

        try:
            lease = store.lease(session_id)
        except SessionConflictError as exc:
            logger.info(f"Rejected concurrent request: {exc}")
            return StreamingResponse(
                streamer.single(
                    StreamEvent.error("This conversation is busy. Please retry in a moment."),
                    StreamEvent.done(),
                ),
                status_code=409,
                media_type=SSE_MEDIA_TYPE,
                headers={**headers, "Retry-After": "1"},
            )

        session = store.get_or_create(session_id)
        orchestrator = Orchestrator(
            model=model,
            tool_client=tool_client,
            store=store,
            max_tool_calls=settings.max_tool_calls,
            tool_timeout=settings.tool_timeout,
        )
        events = orchestrator.handle(session, body.message)

        return StreamingResponse(
            streamer.stream(events, request.is_disconnected, lease.release),
            media_type=SSE_MEDIA_TYPE,
            headers=headers,
            # Covers a response that never starts streaming; release is idempotent.
            background=BackgroundTask(lease.release),
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "sessions": len(store)}

    return app
