"""
Delta Streaming Engine - periodic snapshot polling with delta events and heartbeats.

One DeltaStreamSession serves one subscriber:
- A poll timer fires every ``interval_ms`` and requests a snapshot poll
- A heartbeat timer fires every ``heartbeat_ms`` and requests a keep-alive
- Both timers feed a single worker task through one tick queue, so a poll
  and a heartbeat never run concurrently within a session
- The worker computes the delta against the session's own previous
  snapshot and pushes UPDATE / HEARTBEAT / ERROR events to an outbound queue

Guarantees:
- At most one poll outstanding per session (ticks arriving meanwhile are skipped)
- A failed poll emits one ERROR event, leaves the previous snapshot untouched
  and never ends the session
- ``close()`` cancels both timers and the worker together; nothing is
  emitted after it returns and an in-flight poll result is discarded

State machine:
    IDLE -> RUNNING -> (POLLING | EMITTING | HEARTBEAT_PENDING) -> RUNNING -> ... -> CLOSED
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

from config.models import StreamConfig

from ..domain.exceptions import ConfigurationError, SessionClosedError, UpstreamFailureError
from ..domain.interfaces.snapshot_source import PollFn, SnapshotSource, as_poll_fn
from ..models.snapshot import EventKind, HolderDelta, HolderSnapshot, SnapshotChanges, StreamEvent
from ..utils.logging_setup import get_logger
from ..utils.timezone import now_utc
from ..utils.trace_context import generate_session_id, new_session

logger = get_logger(__name__)


class SessionState(Enum):
    """Lifecycle state of a stream session."""
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    POLLING = "POLLING"
    EMITTING = "EMITTING"
    HEARTBEAT_PENDING = "HEARTBEAT_PENDING"
    CLOSED = "CLOSED"


class _Tick(Enum):
    POLL = "poll"
    HEARTBEAT = "heartbeat"


async def _closed_poll() -> HolderSnapshot:
    # Replaces the source's poll function once a session is closed
    raise SessionClosedError("Stream session is closed")


def compute_delta(
    current: HolderSnapshot,
    previous: Optional[HolderSnapshot],
    timestamp: Optional[datetime] = None,
) -> HolderDelta:
    """
    Delta of ``current`` against ``previous``.

    ``changes`` is None when there is no previous snapshot; otherwise each
    field is ``current - previous`` (None where either side is missing).
    """
    changes = SnapshotChanges.between(current, previous) if previous is not None else None
    return HolderDelta(current=current, changes=changes, timestamp=timestamp or now_utc())


class DeltaStreamSession:
    """
    A single subscriber's delta stream.

    Usage:
        session = DeltaStreamSession(source, StreamConfig(interval_ms=30_000))
        session.start()
        async for event in session:
            send(format_stream_event(event))
        ...
        session.close()  # on transport disconnect

    Or as an async context manager, which starts on enter and closes on exit.
    """

    def __init__(
        self,
        source: SnapshotSource | PollFn,
        config: Optional[StreamConfig] = None,
        session_id: Optional[str] = None,
    ):
        """
        Initialize a stream session (does not start timers).

        Args:
            source: SnapshotSource or bare async callable returning a HolderSnapshot.
            config: Stream configuration (defaults to StreamConfig()).
            session_id: Trace ID for log correlation (generated if omitted).

        Raises:
            ConfigurationError: If an interval or size is not positive.
        """
        self._config = config or StreamConfig()
        for name in ("interval_ms", "heartbeat_ms", "max_queue_size", "failure_warn_threshold"):
            if getattr(self._config, name) <= 0:
                raise ConfigurationError(f"stream.{name} must be positive: {getattr(self._config, name)}")

        self._poll: PollFn = as_poll_fn(source)
        self.session_id = session_id or generate_session_id()

        self._state = SessionState.IDLE
        # Owned exclusively by this session's worker
        self._previous: Optional[HolderSnapshot] = None

        # Created in start() so they bind to the running loop
        self._ticks: Optional[asyncio.Queue[_Tick]] = None
        self._events: Optional[asyncio.Queue[Optional[StreamEvent]]] = None
        self._tasks: List[asyncio.Task] = []

        self._poll_pending = False
        self._heartbeat_pending = False
        self._event_id = 0
        self._consecutive_failures = 0

        self._stats: Dict[str, int] = {
            "polls": 0,
            "updates": 0,
            "heartbeats": 0,
            "errors": 0,
            "skipped_ticks": 0,
            "dropped_events": 0,
            "discarded_polls": 0,
        }

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is SessionState.CLOSED

    @property
    def previous_snapshot(self) -> Optional[HolderSnapshot]:
        """Last successfully fetched snapshot (the baseline for the next delta)."""
        return self._previous

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> "DeltaStreamSession":
        """
        Attach the subscriber: start the worker and both timers.

        Must be called from a running event loop.

        Raises:
            SessionClosedError: If the session was already closed.
        """
        if self.is_closed:
            raise SessionClosedError(f"Stream session {self.session_id} is closed")
        if self._state is not SessionState.IDLE:
            logger.warning(f"Stream session {self.session_id} already running")
            return self

        self._ticks = asyncio.Queue()
        self._events = asyncio.Queue(maxsize=self._config.max_queue_size)
        self._state = SessionState.RUNNING

        # Tasks copy the current context, so every log line carries the session ID
        with new_session(self.session_id):
            if self._config.poll_on_start:
                self._request_poll()
            self._tasks = [
                asyncio.create_task(self._run(), name=f"stream-{self.session_id}-worker"),
                asyncio.create_task(
                    self._timer(self._config.interval_ms, self._request_poll),
                    name=f"stream-{self.session_id}-poll",
                ),
                asyncio.create_task(
                    self._timer(self._config.heartbeat_ms, self._request_heartbeat),
                    name=f"stream-{self.session_id}-heartbeat",
                ),
            ]
            logger.info(
                f"Stream session started: interval={self._config.interval_ms}ms, "
                f"heartbeat={self._config.heartbeat_ms}ms"
            )
        return self

    def close(self) -> None:
        """
        Tear the session down (idempotent).

        Cancels the poll timer, heartbeat timer and worker together before
        returning. Events not yet consumed are discarded and consumers of
        ``events()`` stop. The snapshot source is released.
        """
        if self.is_closed:
            return
        self._state = SessionState.CLOSED
        self._poll = _closed_poll

        for task in self._tasks:
            task.cancel()

        if self._events is not None:
            while not self._events.empty():
                self._events.get_nowait()
            self._events.put_nowait(None)

        with new_session(self.session_id):
            logger.info(f"Stream session closed: {self._stats}")

    async def aclose(self) -> None:
        """Close and wait for the cancelled tasks to finish unwinding."""
        self.close()
        tasks, self._tasks = self._tasks, []
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "DeltaStreamSession":
        return self.start()

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # Consumption
    # -------------------------------------------------------------------------

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Yield events until the session is closed."""
        if self._events is None:
            if self.is_closed:
                return
            raise SessionClosedError(f"Stream session {self.session_id} has not been started")

        while not self.is_closed:
            event = await self._events.get()
            if event is None or self.is_closed:
                return
            yield event

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return self.events()

    # -------------------------------------------------------------------------
    # Timers (never touch session state beyond the tick queue)
    # -------------------------------------------------------------------------

    async def _timer(self, period_ms: int, on_tick) -> None:
        loop = asyncio.get_running_loop()
        period = period_ms / 1000.0
        next_at = loop.time() + period
        while not self.is_closed:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            if self.is_closed:
                return
            on_tick()
            next_at += period
            # Skip missed ticks instead of bursting after a stall
            if next_at < loop.time():
                next_at = loop.time() + period

    def _request_poll(self) -> None:
        if self.is_closed or self._ticks is None:
            return
        if self._poll_pending:
            self._stats["skipped_ticks"] += 1
            logger.debug("Poll tick skipped: previous poll still outstanding")
            return
        self._poll_pending = True
        self._ticks.put_nowait(_Tick.POLL)

    def _request_heartbeat(self) -> None:
        if self.is_closed or self._ticks is None or self._heartbeat_pending:
            return
        self._heartbeat_pending = True
        if self._state is SessionState.RUNNING:
            self._state = SessionState.HEARTBEAT_PENDING
        self._ticks.put_nowait(_Tick.HEARTBEAT)

    # -------------------------------------------------------------------------
    # Worker (the single ordering point)
    # -------------------------------------------------------------------------

    async def _run(self) -> None:
        assert self._ticks is not None
        while not self.is_closed:
            tick = await self._ticks.get()
            if self.is_closed:
                return
            if tick is _Tick.POLL:
                try:
                    await self._poll_once()
                finally:
                    self._poll_pending = False
            else:
                self._heartbeat_pending = False
                self._stats["heartbeats"] += 1
                self._emit(StreamEvent(kind=EventKind.HEARTBEAT))

    async def _poll_once(self) -> None:
        self._state = SessionState.POLLING
        self._stats["polls"] += 1
        try:
            result = await self._poll()
            snapshot = self._coerce_snapshot(result)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self.is_closed:
                return
            self._on_poll_failure(UpstreamFailureError(f"{type(e).__name__}: {e}"))
            return

        if self.is_closed:
            self._stats["discarded_polls"] += 1
            logger.debug("Discarded poll result that completed after close")
            return

        delta = compute_delta(snapshot, self._previous)
        self._previous = snapshot
        if self._consecutive_failures:
            logger.info(f"Snapshot source recovered after {self._consecutive_failures} failed poll(s)")
        self._consecutive_failures = 0

        self._event_id += 1
        self._stats["updates"] += 1
        self._emit(StreamEvent(kind=EventKind.UPDATE, data=delta, event_id=self._event_id))

    def _coerce_snapshot(self, result: Any) -> HolderSnapshot:
        if isinstance(result, HolderSnapshot):
            return result
        if isinstance(result, Mapping):
            return HolderSnapshot.from_mapping(dict(result))
        raise TypeError(f"Snapshot source returned {type(result).__name__}, expected HolderSnapshot")

    def _on_poll_failure(self, error: UpstreamFailureError) -> None:
        self._consecutive_failures += 1
        self._stats["errors"] += 1

        threshold = self._config.failure_warn_threshold
        if self._consecutive_failures % threshold == 0:
            logger.error(
                f"Snapshot source failed {self._consecutive_failures} consecutive polls "
                f"(session stays open): {error}"
            )
        else:
            logger.warning(f"Snapshot poll failed: {error}")

        self._emit(StreamEvent(kind=EventKind.ERROR, data="Failed to fetch update"))

    def _emit(self, event: StreamEvent) -> None:
        if self.is_closed or self._events is None:
            return
        self._state = SessionState.EMITTING
        if self._events.full():
            # Slow subscriber: keep the newest events
            self._events.get_nowait()
            self._stats["dropped_events"] += 1
            logger.warning("Outbound event queue full; dropped oldest event")
        self._events.put_nowait(event)
        self._state = SessionState.HEARTBEAT_PENDING if self._heartbeat_pending else SessionState.RUNNING


def start_delta_stream(
    source: SnapshotSource | PollFn,
    config: Optional[StreamConfig] = None,
) -> DeltaStreamSession:
    """Create and start a session; the caller must ``close()`` it on disconnect."""
    return DeltaStreamSession(source, config).start()
