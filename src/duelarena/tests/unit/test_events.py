"""Tests for event dispatch, serialization and the JSONL event log."""

from datetime import datetime, timezone

import pytest

from duelarena.battle.models import (
    BattleAction,
    BattleEnded,
    BattleSession,
    BattleStarted,
    Side,
    TurnResult,
)
from duelarena.battle.serialization import serialize_event, serialize_session
from duelarena.events import EventDispatcher, RecordingSink
from duelarena.server_logging.event_log import EventLogger

STARTED = BattleStarted("s1", "knight", "rogue", Side.A)
HIT = TurnResult("s1", "knight", BattleAction.HEAVY, 12, 88, critical=False, shield_consumed=True)
ENDED = BattleEnded("s2", "bob", "rogue", "knight", "timeout")


class _FailingSink:
    async def emit(self, record):
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_dispatcher_fans_out_to_all_sinks():
    dispatcher = EventDispatcher()
    first, second = RecordingSink(), RecordingSink()
    await dispatcher.register(first)
    await dispatcher.register(second)

    await dispatcher.emit(STARTED)

    assert first.records == [STARTED]
    assert second.records == [STARTED]


@pytest.mark.asyncio
async def test_dispatcher_survives_failing_sink():
    dispatcher = EventDispatcher()
    healthy = RecordingSink()
    await dispatcher.register(_FailingSink())
    await dispatcher.register(healthy)

    await dispatcher.emit(HIT)

    assert healthy.records == [HIT]


@pytest.mark.asyncio
async def test_unregistered_sink_stops_receiving():
    dispatcher = EventDispatcher()
    sink = RecordingSink()
    await dispatcher.register(sink)
    await dispatcher.register(sink)
    await dispatcher.emit(STARTED)
    await dispatcher.unregister(sink)
    await dispatcher.emit(HIT)

    assert sink.records == [STARTED]


@pytest.mark.asyncio
async def test_recording_sink_filters_by_session():
    sink = RecordingSink()
    for record in (STARTED, ENDED, HIT):
        await sink.emit(record)
    assert sink.for_session("s1") == [STARTED, HIT]
    sink.clear()
    assert sink.records == []


def test_turn_payload_only_lists_flags_that_happened():
    payload = serialize_event(HIT)
    assert payload == {
        "session_id": "s1",
        "acting_character": "knight",
        "action": "heavy",
        "damage_dealt": 12,
        "resulting_health": 88,
        "shield_consumed": True,
    }


def test_serialize_event_rejects_unknown_records():
    with pytest.raises(TypeError):
        serialize_event(object())


def test_serialize_session_reports_deadline():
    started = datetime(2026, 1, 1, tzinfo=timezone.utc)
    session = BattleSession("s1", "knight", "rogue", Side.B, started, created_at=started)
    payload = serialize_session(session)
    assert payload["turn_owner"] == "B"
    assert payload["deadline"] == "2026-01-01T00:05:00+00:00"
    assert payload["winner"] is None


@pytest.mark.asyncio
async def test_event_log_appends_and_queries(tmp_path):
    stamp = datetime(2026, 1, 1, tzinfo=timezone.utc)
    log = EventLogger(tmp_path / "logs" / "events.jsonl", clock=lambda: stamp)
    for record in (STARTED, HIT, ENDED):
        await log.emit(record)

    entries, truncated = log.query(session_id="s1")
    assert [entry["event"] for entry in entries] == ["battle.started", "battle.turn_result"]
    assert entries[0]["timestamp"] == stamp.isoformat()
    assert entries[1]["payload"]["damage_dealt"] == 12
    assert not truncated

    ended, _ = log.query(event="battle.ended")
    assert ended[0]["payload"]["winner_identity"] == "bob"

    limited, truncated = log.query(limit=2)
    assert len(limited) == 2
    assert truncated


def test_event_log_skips_malformed_lines(tmp_path):
    path = tmp_path / "events.jsonl"
    path.write_text('not json\n\n{"event": "battle.ended", "session_id": "s9", "payload": {}}\n')
    entries, _ = EventLogger(path).query()
    assert [entry["session_id"] for entry in entries] == ["s9"]


def test_event_log_missing_file(tmp_path):
    assert EventLogger(tmp_path / "none.jsonl").query() == ([], False)
