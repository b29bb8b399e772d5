"""Collaborator registries consulted by the battle engine."""

from duelarena.registry.characters import (
    CharacterNotFound,
    CharacterRecord,
    CharacterRegistry,
    CharacterStats,
    InMemoryCharacterRegistry,
    JsonCharacterRegistry,
)
from duelarena.registry.delegation import DelegationRegistry

__all__ = [
    "CharacterNotFound",
    "CharacterRecord",
    "CharacterRegistry",
    "CharacterStats",
    "InMemoryCharacterRegistry",
    "JsonCharacterRegistry",
    "DelegationRegistry",
]
