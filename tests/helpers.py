"""Shared test doubles for stream session tests."""

import asyncio
from typing import Any, List, Optional, Sequence

from src.models.snapshot import EventKind, HolderSnapshot, StreamEvent


class ScriptedSource:
    """
    Snapshot source that replays a script, one entry per fetch.

    Exception instances in the script are raised; the last entry repeats
    once the script runs out. ``delay`` makes each fetch take that long.
    """

    def __init__(self, script: Sequence[Any], delay: float = 0.0):
        self.script = list(script)
        self.delay = delay
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_snapshot(self) -> HolderSnapshot:
        index = min(self.calls, len(self.script) - 1)
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            item = self.script[index]
            if isinstance(item, BaseException):
                raise item
            return item
        finally:
            self.in_flight -= 1


async def collect_events(
    session,
    count: int,
    kinds: Optional[Sequence[EventKind]] = None,
    timeout: float = 2.0,
) -> List[StreamEvent]:
    """Consume events from a session until ``count`` events of ``kinds`` arrived."""
    collected: List[StreamEvent] = []

    async def consume() -> None:
        async for event in session.events():
            if kinds is None or event.kind in kinds:
                collected.append(event)
            if len(collected) >= count:
                return

    await asyncio.wait_for(consume(), timeout=timeout)
    return collected


def holders(count: int) -> HolderSnapshot:
    return HolderSnapshot(total_holders=count)
