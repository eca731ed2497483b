"""
Trace context for correlating logs across a single streaming session.

Provides:
- Unique session IDs (6-char hex) for each stream session
- Context propagation via contextvars (async-safe)
- Easy access to current session ID from any module

Usage:
    # When starting a session task
    with new_session() as session_id:
        await run_session()

    # In any module
    from src.utils.trace_context import get_session_id
    logger.info(f"[{get_session_id()}] Polling...")
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

_session_id: ContextVar[Optional[str]] = ContextVar("session_id", default=None)


def generate_session_id() -> str:
    """
    Generate a new unique session ID.

    Returns:
        6-character hex string (e.g., "a7f3b2").
    """
    return secrets.token_hex(3)


def get_session_id() -> str:
    """
    Get the current session ID.

    Returns:
        Current session ID, or "------" if no session is active.
    """
    session_id = _session_id.get()
    return session_id if session_id else "------"


@contextmanager
def new_session(session_id: Optional[str] = None) -> Generator[str, None, None]:
    """
    Context manager that binds a session ID for the enclosed block.

    Yields:
        The bound session ID.
    """
    session_id = session_id or generate_session_id()
    token = _session_id.set(session_id)
    try:
        yield session_id
    finally:
        _session_id.reset(token)
