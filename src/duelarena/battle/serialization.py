"""Payload builders for sessions and battle events."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from duelarena.battle.models import (
    BattleEnded,
    BattleEvent,
    BattleSession,
    BattleStarted,
    TurnResult,
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_session(session: BattleSession) -> Dict[str, Any]:
    return {
        "session_id": session.session_id,
        "fighter_a": session.fighter_a,
        "fighter_b": session.fighter_b,
        "health_a": session.health_a,
        "health_b": session.health_b,
        "turn_owner": session.turn_owner.value,
        "active": session.active,
        "defending_a": session.defending_a,
        "defending_b": session.defending_b,
        "winner": session.winner.value if session.winner else None,
        "turn_count": session.turn_count,
        "last_action_time": _iso(session.last_action_time),
        "deadline": _iso(session.deadline),
        "created_at": _iso(session.created_at),
        "ended_at": _iso(session.ended_at),
    }


def serialize_event(record: BattleEvent) -> Dict[str, Any]:
    """Flatten an event record into a JSON-friendly payload."""

    if isinstance(record, BattleStarted):
        return {
            "session_id": record.session_id,
            "fighter_a": record.fighter_a,
            "fighter_b": record.fighter_b,
            "first_turn": record.first_turn.value,
        }
    if isinstance(record, TurnResult):
        payload: Dict[str, Any] = {
            "session_id": record.session_id,
            "acting_character": record.acting_character,
            "action": record.action.value,
            "damage_dealt": record.damage_dealt,
            "resulting_health": record.resulting_health,
        }
        # Only flag outcomes that happened to keep payloads compact
        for flag in ("critical", "missed", "evaded", "shield_consumed"):
            if getattr(record, flag):
                payload[flag] = True
        return payload
    if isinstance(record, BattleEnded):
        return {
            "session_id": record.session_id,
            "winner_identity": record.winner_identity,
            "winner_character": record.winner_character,
            "loser_character": record.loser_character,
            "reason": record.reason,
        }
    raise TypeError(f"Unsupported battle event: {type(record).__name__}")
