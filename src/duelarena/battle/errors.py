"""Errors raised by the battle engine.

Every error rejects the call before any session state is touched.
"""

from __future__ import annotations

from typing import Optional


class BattleError(Exception):
    """Base class for rejected battle operations."""

    def __init__(self, message: str, *, session_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class SessionNotFound(BattleError):
    """Unknown session id."""


class SessionInactive(BattleError):
    """The session has already ended."""


class TurnTimedOut(BattleError):
    """The turn deadline passed; the opponent may claim victory instead."""


class TimeoutNotReached(BattleError):
    """A timeout claim was made before the turn deadline."""


class NotAuthorized(BattleError):
    """Caller does not control the character whose turn it is."""


class InvalidParticipants(BattleError):
    """Fighters are identical, empty or unknown to the registry."""
