"""Server-Sent Events framing for pipeline events.

Each frame is ``data: <json>\\n\\n`` with a single top-level key naming the
event. Frames carry full slide snapshots; clients replace their slide list
when a frame has more slides than they hold and ignore it otherwise.
"""

from __future__ import annotations

import json
import logging
from contextlib import aclosing
from typing import Any, AsyncGenerator, AsyncIterator, Awaitable, Callable, Dict, Optional

from shared.usage import UsageTracker

from .events import PipelineEvent

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def sse_frame(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def event_frame(event: PipelineEvent) -> str:
    return sse_frame({event.type: event.payload()})


def error_frame(message: str) -> str:
    return sse_frame({"error": {"message": message or "Stream processing error"}})


def usage_frame(usage: UsageTracker) -> str:
    return sse_frame({
        "usage_report": usage.report(),
        "session_id": usage.session_id,
        "usage_summary": usage.summary(),
    })


async def stream_frames(
    events: AsyncIterator[PipelineEvent],
    usage: UsageTracker,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncGenerator[str, None]:
    """Turn pipeline events into SSE frames, one at a time and in order.

    Stops quietly when the client goes away. A failure after streaming has
    begun becomes a single ``error`` frame and ends the stream.
    """
    async with aclosing(events) as pipeline_events:
        try:
            async for event in pipeline_events:
                if is_disconnected is not None and await is_disconnected():
                    logger.info(f"🔌 Client disconnected, stopping session {usage.session_id}")
                    return
                if event.type == "done":
                    break
                if event.type == "error":
                    yield error_frame(event.message)
                    return
                logger.info(f"Streaming event: {event.type}")
                yield event_frame(event)
        except Exception as e:  # noqa: BLE001
            logger.exception("Error in stream processing")
            yield error_frame(getattr(e, "message", None) or str(e))
            return

    logger.info("\n" + usage.report())
    yield usage_frame(usage)
    logger.info("Stream completed successfully")
