"""Battle subsystem for Duel Arena."""

from duelarena.battle.engine import TurnEngine
from duelarena.battle.entropy import EntropySource, SeededEntropy, SystemEntropy
from duelarena.battle.errors import (
    BattleError,
    InvalidParticipants,
    NotAuthorized,
    SessionInactive,
    SessionNotFound,
    TimeoutNotReached,
    TurnTimedOut,
)
from duelarena.battle.models import (
    BattleAction,
    BattleEnded,
    BattleSession,
    BattleStarted,
    Side,
    TurnResult,
)
from duelarena.battle.store import SessionStore

__all__ = [
    "TurnEngine",
    "EntropySource",
    "SeededEntropy",
    "SystemEntropy",
    "BattleError",
    "InvalidParticipants",
    "NotAuthorized",
    "SessionInactive",
    "SessionNotFound",
    "TimeoutNotReached",
    "TurnTimedOut",
    "BattleAction",
    "BattleEnded",
    "BattleSession",
    "BattleStarted",
    "Side",
    "TurnResult",
    "SessionStore",
]
