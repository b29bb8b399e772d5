"""Append-only JSON Lines log of battle events."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from duelarena.battle.models import BattleEvent
from duelarena.battle.serialization import serialize_event

MAX_QUERY_RESULTS = 1024


@dataclass(slots=True)
class EventRecord:
    """One line of the event log."""

    timestamp: str
    event: str
    session_id: str
    payload: dict[str, Any]

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))


class EventLogger:
    """Event sink that appends every battle record to a JSONL file."""

    def __init__(
        self,
        path: Path,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    async def emit(self, record: BattleEvent) -> None:
        self.append(
            EventRecord(
                timestamp=self._clock().isoformat(),
                event=record.event_name,
                session_id=record.session_id,
                payload=serialize_event(record),
            )
        )

    def append(self, record: EventRecord) -> None:
        line = record.to_json()
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
            handle.flush()

    def query(
        self,
        *,
        session_id: str | None = None,
        event: str | None = None,
        limit: int | None = None,
    ) -> tuple[list[dict[str, Any]], bool]:
        """Return entries in file order, optionally filtered.

        The second element is True when more entries matched than ``limit``.
        """
        if not self._path.exists():
            return [], False

        if limit is None or limit <= 0:
            limit = MAX_QUERY_RESULTS
        limit = min(limit, MAX_QUERY_RESULTS)

        results: list[dict[str, Any]] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for raw in handle:
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    entry = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping malformed event log line: {raw}")
                    continue
                if session_id is not None and entry.get("session_id") != session_id:
                    continue
                if event is not None and entry.get("event") != event:
                    continue
                if len(results) >= limit:
                    return results, True
                results.append(entry)
        return results, False
