# =============================================================================
# agent/model.py  —  Model capability (LiteLLM streaming adapter)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Talks to the language model and hands the orchestrator a stream of
#   tagged values, never raw provider chunks:
#
#     TextDelta(text)                         a fragment of the answer
#     ToolCallRequest(call_id, name, raw)     the model wants a tool run
#
#   Any provider failure (auth, rate limit, timeout, dropped stream) is
#   re-raised as ModelError.
#
# MODEL CHOICE:
#   Any LiteLLM model string works; the default routes GPT-4o through
#   OpenRouter ("openrouter/openai/gpt-4o").  LiteLLM reads the provider key
#   (OPENROUTER_API_KEY, OPENAI_API_KEY, ...) from the environment.
#
# TOOL-CALL STREAMING:
#   OpenAI-style streams split a tool call across many chunks: the first
#   carries the id and function name, later ones append argument fragments.
#   Fragments are accumulated by their `index` and released as complete
#   ToolCallRequests when the stream ends.
# =============================================================================

import json
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Iterable, Optional, Protocol, Union

import litellm

from core.errors import ModelError
from core.models import ROLE_ASSISTANT, ROLE_TOOL, ROLE_USER, ToolResult, Turn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ToolCallRequest:
    call_id: str
    name: str
    raw_arguments: str                 # JSON text exactly as the model produced it


ModelDelta = Union[TextDelta, ToolCallRequest]


class ModelCapability(Protocol):
    def stream(self, messages: list[dict], tools: list[dict]) -> AsyncIterator[ModelDelta]:
        ...


# -----------------------------------------------------------------------------
# History → chat messages
# -----------------------------------------------------------------------------
def tool_result_message(result: ToolResult) -> dict:
    return {
        "role": ROLE_TOOL,
        "tool_call_id": result.call_id,
        "content": json.dumps({"status": result.status, **result.payload}),
    }


def assistant_tool_call_message(calls: Iterable, content: Optional[str] = None) -> dict:
    return {
        "role": ROLE_ASSISTANT,
        "content": content or None,
        "tool_calls": [
            {
                "id": call.call_id,
                "type": "function",
                "function": {
                    "name": call.tool_name,
                    "arguments": json.dumps(call.arguments),
                },
            }
            for call in calls
        ],
    }


def turns_to_messages(turns: Iterable[Turn]) -> list[dict]:
    """Expand stored turns into the OpenAI chat format LiteLLM expects.

    An assistant turn that used tools becomes three parts: the assistant's
    tool-call message (carrying any text streamed before the last tool
    results), one tool message per result, then the rest of the text.
    """
    messages: list[dict] = []
    for turn in turns:
        if turn.role == ROLE_USER:
            messages.append({"role": ROLE_USER, "content": turn.content})
        elif turn.role == ROLE_ASSISTANT:
            answer = turn.content
            if turn.tool_calls:
                lead_in = answer[:turn.pre_tool_chars]
                answer = answer[turn.pre_tool_chars:]
                messages.append(assistant_tool_call_message(turn.tool_calls, lead_in))
                messages.extend(tool_result_message(r) for r in turn.tool_results)
            if answer:
                messages.append({"role": ROLE_ASSISTANT, "content": answer})
        elif turn.role == ROLE_TOOL:
            messages.extend(tool_result_message(r) for r in turn.tool_results)
    return messages


# -----------------------------------------------------------------------------
# LiteLLM adapter
# -----------------------------------------------------------------------------
class LiteLlmModel:
    def __init__(self, model: str, timeout: float = 30.0, temperature: float = 0.2):
        self.model = model
        self.timeout = timeout
        self.temperature = temperature

    async def stream(self, messages: list[dict], tools: list[dict]) -> AsyncIterator[ModelDelta]:
        pending: dict[int, dict] = {}

        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=messages,
                tools=tools,
                tool_choice="auto",
                temperature=self.temperature,
                stream=True,
                timeout=self.timeout,
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta is None:
                    continue

                if delta.content:
                    yield TextDelta(delta.content)

                for fragment in delta.tool_calls or ():
                    index = fragment.index or 0
                    slot = pending.setdefault(index, {"id": None, "name": "", "arguments": ""})
                    if fragment.id:
                        slot["id"] = fragment.id
                    function = fragment.function
                    if function is not None:
                        if function.name:
                            slot["name"] += function.name
                        if function.arguments:
                            slot["arguments"] += function.arguments
        except ModelError:
            raise
        except Exception as exc:
            # litellm maps every provider failure onto openai-style exception
            # classes; they are all fatal to the turn.
            logger.error(f"Model call to {self.model} failed: {type(exc).__name__}: {exc}")
            raise ModelError(f"model call failed: {type(exc).__name__}") from exc

        for index in sorted(pending):
            slot = pending[index]
            yield ToolCallRequest(
                call_id=slot["id"] or f"call_{index}",
                name=slot["name"],
                raw_arguments=slot["arguments"],
            )
