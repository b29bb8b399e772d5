"""Event delivery for battle lifecycle records."""

from __future__ import annotations

import asyncio
from typing import List, Protocol

from loguru import logger

from duelarena.battle.models import BattleEvent


class EventSink(Protocol):
    """Receives battle records after a successful mutation."""

    async def emit(self, record: BattleEvent) -> None:
        ...


class RecordingSink:
    """Keeps every record in memory in arrival order."""

    def __init__(self) -> None:
        self.records: List[BattleEvent] = []

    async def emit(self, record: BattleEvent) -> None:
        self.records.append(record)

    def for_session(self, session_id: str) -> List[BattleEvent]:
        return [record for record in self.records if record.session_id == session_id]

    def clear(self) -> None:
        self.records.clear()


class EventDispatcher:
    """Fans records out to registered sinks.

    A failing sink is logged and skipped; it never fails the operation that
    produced the record.
    """

    def __init__(self) -> None:
        self._sinks: List[EventSink] = []
        self._lock = asyncio.Lock()

    async def register(self, sink: EventSink) -> None:
        async with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)

    async def unregister(self, sink: EventSink) -> None:
        async with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    async def emit(self, record: BattleEvent) -> None:
        async with self._lock:
            sinks_snapshot = list(self._sinks)
        if not sinks_snapshot:
            return

        logger.debug(f"Dispatching {record.event_name} for session {record.session_id} to {len(sinks_snapshot)} sink(s)")
        results = await asyncio.gather(
            *(sink.emit(record) for sink in sinks_snapshot), return_exceptions=True
        )
        for index, result in enumerate(results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.opt(exception=result).error(
                    f"Error delivering {record.event_name} to sink_index={index}"
                )


__all__ = ["EventSink", "EventDispatcher", "RecordingSink"]
