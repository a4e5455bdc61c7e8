# =============================================================================
# api/streamer.py  —  Response Streamer (orchestrator events → SSE frames)
# =============================================================================
#
# Each StreamEvent becomes one Server-Sent Events frame, yielded the moment it
# is produced:
#
#     data: {"type": "text", "content": "It's 14°C"}\n\n
#     data: {"type": "done"}\n\n
#
# DISCONNECTS:
#   A watcher task polls the client connection for the whole response.  Each
#   pull of the next event runs as its own task and is raced against that
#   watcher, so a disconnect during a slow model or tool call cancels the
#   call right away.  The orchestrator's generator is then closed and the
#   partial turn is discarded.
# =============================================================================

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from core.models import EVENT_DONE, StreamEvent

logger = logging.getLogger(__name__)

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

INTERNAL_ERROR_MESSAGE = "Something went wrong while answering. Please try again."

_END = object()


def encode_event(event: StreamEvent) -> str:
    return f"data: {json.dumps(event.to_dict())}\n\n"


async def _pull(events: AsyncIterator[StreamEvent]):
    try:
        return await events.__anext__()
    except StopAsyncIteration:
        return _END


async def _cancel(task: Optional[asyncio.Future]) -> None:
    if task is None or task.done():
        return
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


class ResponseStreamer:
    def __init__(self, poll_interval: float = 0.1):
        self.poll_interval = poll_interval

    async def _wait_for_disconnect(self, is_disconnected: Callable[[], Awaitable[bool]]) -> None:
        while not await is_disconnected():
            await asyncio.sleep(self.poll_interval)

    async def stream(
        self,
        events: AsyncIterator[StreamEvent],
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        on_finish: Optional[Callable[[], None]] = None,
    ) -> AsyncIterator[str]:
        """Yield SSE frames for ``events``, ending with exactly one ``done``."""
        done_sent = False
        disconnected = False
        watcher = None
        pull = None
        if is_disconnected is not None:
            watcher = asyncio.ensure_future(self._wait_for_disconnect(is_disconnected))

        try:
            while not done_sent:
                if watcher is not None and watcher.done():
                    disconnected = True
                    break

                pull = asyncio.ensure_future(_pull(events))
                waiting = {pull} if watcher is None else {pull, watcher}
                await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

                if not pull.done():
                    disconnected = True
                    await _cancel(pull)
                    break

                try:
                    event = pull.result()
                except Exception:
                    logger.exception("Orchestrator failed unexpectedly")
                    yield encode_event(StreamEvent.error(INTERNAL_ERROR_MESSAGE))
                    break
                if event is _END:
                    break

                if event.type == EVENT_DONE:
                    done_sent = True
                yield encode_event(event)

            if disconnected:
                logger.info("Client disconnected; cancelled orchestration")
            elif not done_sent:
                yield encode_event(StreamEvent.done())
        finally:
            await _cancel(pull)
            await _cancel(watcher)
            if watcher is not None and watcher.done() and not watcher.cancelled():
                # Retrieve a failed watcher's exception so it is not reported as unhandled.
                watcher.exception()
            await events.aclose()
            if on_finish is not None:
                on_finish()

    async def single(self, *events: StreamEvent) -> AsyncIterator[str]:
        """Stream a fixed list of events (used for rejections)."""
        for event in events:
            yield encode_event(event)
