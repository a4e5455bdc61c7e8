# =============================================================================
# agent/orchestrator.py  —  The Agent Orchestrator (tool-calling loop)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Turns one user message into a finished, streamed answer by looping
#   between the language model and the weather tool server:
#
#       IDLE ──► AWAITING_MODEL ──(tool call)──► INVOKING_TOOL
#                     ▲   │                           │
#                     │   └──(no tool call)──► COMPLETED
#                     └───────────────────────────────┘
#
#       any model failure / cancellation ──► FAILED
#
# EVENTS (in model emission order):
#   text          each model text fragment, as soon as it arrives
#   weather_data  right after a successful tool result, before any later text
#   error         tool failure, budget cutoff, or model failure
#   done          always last, exactly once
#
# HISTORY:
#   Nothing touches the session until the pass completes.  On COMPLETED the
#   user turn and the assistant turn (with its tool calls/results) are
#   appended together.  On FAILED nothing is appended.
#
# LOOP BOUND:
#   At most `max_tool_calls` tool invocations per user message.  When the
#   model asks for more, the pass completes with whatever text it has so far
#   plus an `error` event noting the cutoff.
# =============================================================================

import json
import logging
import uuid
from enum import Enum
from typing import AsyncIterator, Callable, Optional

from agent.model import (
    ModelCapability,
    TextDelta,
    ToolCallRequest,
    assistant_tool_call_message,
    tool_result_message,
    turns_to_messages,
)
from agent.prompt import get_system_prompt
from core.errors import ModelError
from core.models import (
    STATUS_ERROR,
    Session,
    StreamEvent,
    ToolCall,
    ToolResult,
    Turn,
)
from core.sessions import SessionStore
from tools.client import WEATHER_TOOL_SCHEMA, WeatherToolClient, validate_arguments

logger = logging.getLogger(__name__)

MODEL_FAILURE_MESSAGE = "Sorry, the assistant is unavailable right now. Please try again."
TOOL_FAILURE_MESSAGE = "I couldn't reach the weather service for that lookup."
BUDGET_FALLBACK_TEXT = "I couldn't finish looking that up. Please try asking again."


class State(str, Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    INVOKING_TOOL = "invoking_tool"
    COMPLETED = "completed"
    FAILED = "failed"


class Orchestrator:
    """Runs one user message to completion.  One instance per request."""

    def __init__(
        self,
        model: ModelCapability,
        tool_client: WeatherToolClient,
        store: SessionStore,
        max_tool_calls: int = 5,
        tool_timeout: Optional[float] = None,
        system_prompt: Callable[[], str] = get_system_prompt,
    ):
        self.model = model
        self.tool_client = tool_client
        self.store = store
        self.max_tool_calls = max_tool_calls
        self.tool_timeout = tool_timeout
        self.system_prompt = system_prompt

        self.state = State.IDLE
        self.tool_calls_made = 0
        self._started = False

    def _transition(self, state: State) -> None:
        logger.debug(f"{self.state.value} → {state.value}")
        self.state = state

    async def handle(self, session: Session, user_message: str) -> AsyncIterator[StreamEvent]:
        """Yield the StreamEvents answering ``user_message``.  Single use."""
        if self._started:
            raise RuntimeError("Orchestrator.handle() may only be consumed once")
        self._started = True

        user_turn = Turn.user(user_message)
        messages = [{"role": "system", "content": self.system_prompt()}]
        messages += turns_to_messages(session.history())
        messages.append({"role": "user", "content": user_turn.content})

        text_parts: list[str] = []
        calls: list[ToolCall] = []
        results: list[ToolResult] = []
        pre_tool_chars = 0
        budget_hit = False

        self._transition(State.AWAITING_MODEL)
        try:
            while True:
                round_start = len(text_parts)
                requests: list[ToolCallRequest] = []
                try:
                    async for delta in self.model.stream(messages, [WEATHER_TOOL_SCHEMA]):
                        if isinstance(delta, TextDelta):
                            if delta.text:
                                text_parts.append(delta.text)
                                yield StreamEvent.text(delta.text)
                        elif isinstance(delta, ToolCallRequest):
                            requests.append(delta)
                except ModelError as exc:
                    logger.warning(f"Session {session.id}: model failed ({exc}); turn discarded")
                    self._transition(State.FAILED)
                    yield StreamEvent.error(MODEL_FAILURE_MESSAGE)
                    yield StreamEvent.done()
                    return

                if not requests:
                    break
                if self.tool_calls_made >= self.max_tool_calls:
                    budget_hit = True
                    break

                self._transition(State.INVOKING_TOOL)
                round_calls: list[ToolCall] = []
                round_results: list[ToolResult] = []
                for request in requests:
                    if self.tool_calls_made >= self.max_tool_calls:
                        budget_hit = True
                        break
                    call, result = await self._run_tool(request, calls + round_calls)
                    round_calls.append(call)
                    round_results.append(result)

                    if result.ok:
                        yield StreamEvent.weather_data(result.payload)
                    elif result.status == STATUS_ERROR:
                        yield StreamEvent.error(TOOL_FAILURE_MESSAGE)

                round_text = "".join(text_parts[round_start:])
                messages.append(assistant_tool_call_message(round_calls, round_text))
                messages.extend(tool_result_message(r) for r in round_results)
                calls.extend(round_calls)
                results.extend(round_results)
                pre_tool_chars = sum(len(part) for part in text_parts)

                if budget_hit:
                    break
                self._transition(State.AWAITING_MODEL)

            if budget_hit:
                logger.warning(
                    f"Session {session.id}: tool-call budget of {self.max_tool_calls} "
                    f"exhausted; completing with best available text"
                )
                yield StreamEvent.error(
                    f"Stopped after {self.max_tool_calls} weather lookups for this message."
                )
                if not text_parts:
                    text_parts.append(BUDGET_FALLBACK_TEXT)
                    yield StreamEvent.text(BUDGET_FALLBACK_TEXT)

            self._transition(State.COMPLETED)
            self.store.append(session.id, user_turn)
            self.store.append(
                session.id, Turn.assistant("".join(text_parts), calls, results, pre_tool_chars)
            )
            yield StreamEvent.done()
        finally:
            if self.state not in (State.COMPLETED, State.FAILED):
                logger.info(f"Session {session.id}: request cancelled in {self.state.value}")
                self._transition(State.FAILED)

    async def _run_tool(self, request: ToolCallRequest, seen: list[ToolCall]):
        """Validate one model request and invoke it.  Counts against the budget
        whether or not it reaches the network."""
        self.tool_calls_made += 1

        call_id = request.call_id
        if not call_id or any(c.call_id == call_id for c in seen):
            call_id = f"call_{uuid.uuid4().hex[:12]}"

        try:
            arguments = json.loads(request.raw_arguments) if request.raw_arguments.strip() else {}
        except json.JSONDecodeError:
            arguments = None

        if isinstance(arguments, dict):
            call = ToolCall(call_id, request.name, arguments)
            problem = validate_arguments(request.name, arguments)
        else:
            call = ToolCall(call_id, request.name, {})
            problem = "arguments are not a JSON object"
        if problem:
            logger.warning(f"Tool call {call_id}: {problem}")
            return call, ToolResult(call_id, STATUS_ERROR, {"reason": f"invalid call: {problem}"})

        result = await self.tool_client.invoke(
            call.tool_name, call.arguments, timeout=self.tool_timeout, call_id=call_id
        )
        return call, result
