"""Server-sent event framing for streamed answers."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

from fastapi.responses import StreamingResponse

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def sse_event(data: dict[str, Any]) -> str:
    """Format a dict as an SSE data line."""
    return f"data: {json.dumps(data)}\n\n"


async def sse_lines(events: AsyncGenerator[dict[str, Any], None]) -> AsyncIterator[str]:
    """Frame `events`; closing the frames (client disconnect) closes `events` too."""
    try:
        async for event in events:
            yield sse_event(event)
    finally:
        await events.aclose()


def event_stream_response(events: AsyncGenerator[dict[str, Any], None]) -> StreamingResponse:
    return StreamingResponse(
        sse_lines(events),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
