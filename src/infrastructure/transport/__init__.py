"""Transport helpers for pushing stream events to subscribers."""

from .sse import format_sse_event, format_stream_event, sse_headers, encode_stream_event

__all__ = ["format_sse_event", "format_stream_event", "sse_headers", "encode_stream_event"]
