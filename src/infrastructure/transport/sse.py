"""
Server-Sent Events wire format.

Frames follow the EventSource protocol: optional ``id:``, ``event:`` and
``retry:`` fields, one ``data:`` line per payload line, and a blank line
terminating the event.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from ...models.snapshot import StreamEvent


def format_sse_event(
    data: Any,
    event: Optional[str] = None,
    event_id: Optional[str] = None,
    retry_ms: Optional[int] = None,
) -> str:
    """
    Format one SSE frame.

    Non-string data is JSON-encoded; multi-line strings get one ``data:``
    line per line.
    """
    lines = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    if event:
        lines.append(f"event: {event}")
    if retry_ms is not None:
        lines.append(f"retry: {retry_ms}")

    payload = data if isinstance(data, str) else json.dumps(data, separators=(",", ":"))
    for line in payload.split("\n"):
        lines.append(f"data: {line}")

    return "\n".join(lines) + "\n\n"


def format_stream_event(event: StreamEvent) -> str:
    """SSE frame for a stream session event; only UPDATE events carry an id."""
    event_id = str(event.event_id) if event.event_id is not None else None
    return format_sse_event(event.payload(), event=event.kind.value, event_id=event_id)


def encode_stream_event(event: StreamEvent) -> bytes:
    return format_stream_event(event).encode("utf-8")


def sse_headers() -> Dict[str, str]:
    """Response headers for an SSE endpoint."""
    return {
        "Content-Type": "text/event-stream",
        "Cache-Control": "no-cache, no-transform",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",  # Disable nginx buffering
    }
