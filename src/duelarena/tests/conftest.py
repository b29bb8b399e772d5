"""Shared fixtures for Duel Arena unit tests."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from duelarena.battle.engine import TurnEngine
from duelarena.events import RecordingSink
from duelarena.registry.characters import (
    CharacterRecord,
    CharacterStats,
    InMemoryCharacterRegistry,
)

START_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class ScriptedEntropy:
    """Replays queued rolls and records the bounds requested."""

    def __init__(self) -> None:
        self._values: deque[int] = deque()
        self.bounds: List[int] = []

    def queue(self, *values: int) -> "ScriptedEntropy":
        self._values.extend(values)
        return self

    @property
    def remaining(self) -> int:
        return len(self._values)

    def roll(self, bound: int) -> int:
        if not self._values:
            raise AssertionError(f"Unexpected entropy draw (bound={bound})")
        self.bounds.append(bound)
        return self._values.popleft()


class FakeClock:
    def __init__(self, start: datetime = START_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def make_record(
    character_id: str,
    controller: str,
    *,
    attack: int = 10,
    defense: int = 10,
    speed: int = 10,
    crit_chance: int = 0,
    evasion: int = 0,
    element: str = "",
) -> CharacterRecord:
    return CharacterRecord(
        character_id=character_id,
        name=character_id.title(),
        controller=controller,
        stats=CharacterStats(
            attack=attack,
            defense=defense,
            speed=speed,
            crit_chance=crit_chance,
            evasion=evasion,
            element=element,
        ),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def entropy() -> ScriptedEntropy:
    return ScriptedEntropy()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def registry() -> InMemoryCharacterRegistry:
    """knight (alice) is faster than rogue (bob); duelist (carol) crits and evades."""
    return InMemoryCharacterRegistry(
        [
            make_record("knight", "alice", attack=20, defense=5, speed=10, element="fire"),
            make_record("rogue", "bob", attack=12, defense=15, speed=5, element="water"),
            make_record("duelist", "carol", attack=10, defense=10, speed=10, crit_chance=50, evasion=30),
        ]
    )


@pytest.fixture
def engine(registry, entropy, sink, clock) -> TurnEngine:
    return TurnEngine(registry, entropy=entropy, sink=sink, clock=clock)
