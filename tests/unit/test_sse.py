"""Unit tests for the SSE wire format."""

import json
from datetime import datetime, timezone

from src.application.delta_stream import compute_delta
from src.infrastructure.transport import encode_stream_event, format_sse_event, format_stream_event, sse_headers
from src.models.snapshot import EventKind, HolderSnapshot, StreamEvent

FIXED_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _data(frame: str) -> dict:
    data_lines = [line[len("data: "):] for line in frame.splitlines() if line.startswith("data: ")]
    return json.loads("\n".join(data_lines))


class TestFormatSseEvent:
    """Generic SSE frame formatting."""

    def test_full_frame(self):
        frame = format_sse_event({"a": 1}, event="update", event_id="3", retry_ms=5000)
        assert frame == 'id: 3\nevent: update\nretry: 5000\ndata: {"a":1}\n\n'

    def test_data_only(self):
        assert format_sse_event("ping") == "data: ping\n\n"

    def test_multiline_string(self):
        assert format_sse_event("a\nb") == "data: a\ndata: b\n\n"


class TestFormatStreamEvent:
    """Stream session events on the wire."""

    def test_update(self):
        delta = compute_delta(HolderSnapshot(total_holders=100), None, timestamp=FIXED_TIME)
        frame = format_stream_event(StreamEvent(kind=EventKind.UPDATE, data=delta, event_id=1))

        assert frame.startswith("id: 1\nevent: update\n")
        payload = _data(frame)
        assert payload["changes"] is None
        assert payload["current"]["total_holders"] == 100
        assert payload["timestamp"] == 1_704_067_200_000

    def test_heartbeat_has_no_id(self):
        frame = format_stream_event(StreamEvent(kind=EventKind.HEARTBEAT, timestamp=FIXED_TIME))
        assert frame.startswith("event: heartbeat\n")
        assert _data(frame) == {"timestamp": 1_704_067_200_000}

    def test_error(self):
        frame = format_stream_event(StreamEvent(kind=EventKind.ERROR, data="Failed to fetch update"))
        assert _data(frame) == {"message": "Failed to fetch update"}

    def test_encoded_bytes(self):
        encoded = encode_stream_event(StreamEvent(kind=EventKind.ERROR, data="x"))
        assert isinstance(encoded, bytes)
        assert encoded.endswith(b"\n\n")


def test_headers():
    headers = sse_headers()
    assert headers["Content-Type"] == "text/event-stream"
    assert "no-cache" in headers["Cache-Control"]
