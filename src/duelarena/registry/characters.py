"""Character registry collaborators.

The battle engine only reads from a registry: combat stats and the identity
currently controlling a character. Minting characters and assigning stats
happen elsewhere; the implementations here exist so the engine can be wired
up in-process, from a JSON file, or in tests.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterator, List, Protocol

from loguru import logger
from pydantic import BaseModel, Field


class CharacterNotFound(KeyError):
    """Raised when a registry has no entry for a character id."""


class CharacterStats(BaseModel):
    """Combat stats for a character."""

    attack: int = Field(ge=0)
    defense: int = Field(ge=0)
    speed: int = Field(ge=0)
    crit_chance: int = Field(default=0, ge=0, le=100)
    evasion: int = Field(default=0, ge=0, le=100)
    element: str = ""


class CharacterRecord(BaseModel):
    """Registry entry for one character."""

    character_id: str
    name: str = ""
    controller: str
    stats: CharacterStats


class CharacterRegistry(Protocol):
    """Read-only view of characters consumed by the battle engine."""

    def stats_of(self, character_id: str) -> CharacterStats:
        ...

    def controller_of(self, character_id: str) -> str:
        ...

    def exists(self, character_id: str) -> bool:
        ...


class InMemoryCharacterRegistry:
    """Dictionary-backed registry."""

    def __init__(self, records: List[CharacterRecord] | None = None) -> None:
        self._records: Dict[str, CharacterRecord] = {}
        for record in records or []:
            self.register(record)

    def register(self, record: CharacterRecord) -> CharacterRecord:
        self._records[record.character_id] = record
        return record

    def transfer(self, character_id: str, new_controller: str) -> None:
        """Hand control of a character to a different identity."""
        record = self._require(character_id)
        logger.debug(
            f"Character {character_id} control transferred: {record.controller} -> {new_controller}"
        )
        self._records[character_id] = record.model_copy(update={"controller": new_controller})

    def records(self) -> Iterator[CharacterRecord]:
        return iter(list(self._records.values()))

    def exists(self, character_id: str) -> bool:
        return character_id in self._records

    def stats_of(self, character_id: str) -> CharacterStats:
        return self._require(character_id).stats

    def controller_of(self, character_id: str) -> str:
        return self._require(character_id).controller

    def _require(self, character_id: str) -> CharacterRecord:
        record = self._records.get(character_id)
        if record is None:
            raise CharacterNotFound(character_id)
        return record


class JsonCharacterRegistry(InMemoryCharacterRegistry):
    """Registry persisted as ``{"characters": {id: {...}}}`` in a JSON file."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path

    def load(self) -> "JsonCharacterRegistry":
        """Load characters from disk. A missing file yields an empty registry."""
        self._records.clear()
        if not self.path.exists():
            logger.warning(f"Character registry not found at {self.path}; starting empty")
            return self
        with self.path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        characters = data.get("characters", {}) if isinstance(data, dict) else {}
        for character_id, entry in characters.items():
            self.register(CharacterRecord.model_validate({**entry, "character_id": character_id}))
        logger.info(f"Loaded {len(self._records)} characters from {self.path}")
        return self

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "characters": {
                cid: record.model_dump(exclude={"character_id"})
                for cid, record in self._records.items()
            }
        }
        tmp = self.path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        tmp.replace(self.path)
