"""Data models for the battle subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

INITIAL_HEALTH = 100
TURN_TIMEOUT_SECONDS = 300
HEAL_AMOUNT = 10
DEFENSE_REDUCTION_PERCENT = 50
HEAVY_MISS_CHANCE = 20
BASE_DAMAGE_ROLL = 10  # r0 in [0, 9]
PERCENT_ROLL = 100  # crit/miss/evasion rolls in [0, 99]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BattleAction(Enum):
    """Actions a fighter may choose on its turn."""

    STANDARD = "standard"
    HEAVY = "heavy"
    DEFEND = "defend"

    @classmethod
    def from_str(cls, value: Union[str, "BattleAction"]) -> "BattleAction":
        if isinstance(value, cls):
            return value
        try:
            return cls(value.lower())
        except (ValueError, AttributeError) as exc:
            raise ValueError(f"Unknown battle action: {value}") from exc

    @property
    def is_attack(self) -> bool:
        return self is not BattleAction.DEFEND


class Side(Enum):
    A = "A"
    B = "B"

    @property
    def opponent(self) -> "Side":
        return Side.B if self is Side.A else Side.A


@dataclass
class BattleSession:
    """State of one battle between two characters."""

    session_id: str
    fighter_a: str
    fighter_b: str
    turn_owner: Side
    last_action_time: datetime
    health_a: int = INITIAL_HEALTH
    health_b: int = INITIAL_HEALTH
    active: bool = True
    defending_a: bool = False
    defending_b: bool = False
    winner: Optional[Side] = None
    turn_count: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    ended_at: Optional[datetime] = None

    def fighter_for(self, side: Side) -> str:
        return self.fighter_a if side is Side.A else self.fighter_b

    def health_of(self, side: Side) -> int:
        return self.health_a if side is Side.A else self.health_b

    def set_health(self, side: Side, value: int) -> None:
        if side is Side.A:
            self.health_a = value
        else:
            self.health_b = value

    def is_defending(self, side: Side) -> bool:
        return self.defending_a if side is Side.A else self.defending_b

    def set_defending(self, side: Side, value: bool) -> None:
        if side is Side.A:
            self.defending_a = value
        else:
            self.defending_b = value

    def side_of(self, character_id: str) -> Optional[Side]:
        if character_id == self.fighter_a:
            return Side.A
        if character_id == self.fighter_b:
            return Side.B
        return None

    @property
    def deadline(self) -> datetime:
        return self.last_action_time + timedelta(seconds=TURN_TIMEOUT_SECONDS)


@dataclass(frozen=True)
class AttackOutcome:
    """Result of resolving one attack, before it is applied to a session."""

    damage: int
    critical: bool = False
    missed: bool = False
    evaded: bool = False
    shield_consumed: bool = False


@dataclass(frozen=True)
class BattleStarted:
    session_id: str
    fighter_a: str
    fighter_b: str
    first_turn: Side

    event_name = "battle.started"


@dataclass(frozen=True)
class TurnResult:
    session_id: str
    acting_character: str
    action: BattleAction
    damage_dealt: int
    resulting_health: int
    critical: bool = False
    missed: bool = False
    evaded: bool = False
    shield_consumed: bool = False

    event_name = "battle.turn_result"


@dataclass(frozen=True)
class BattleEnded:
    session_id: str
    winner_identity: str
    winner_character: str
    loser_character: str
    reason: str

    event_name = "battle.ended"


BattleEvent = Union[BattleStarted, TurnResult, BattleEnded]
