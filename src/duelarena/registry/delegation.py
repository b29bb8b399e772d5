"""Delegated control of characters.

Maps a character id to one identity allowed to act on the controller's
behalf. The battle engine only consults it when one is passed in.
"""

from __future__ import annotations

from typing import Dict, Optional

from loguru import logger


class DelegationRegistry:
    def __init__(self) -> None:
        self._delegates: Dict[str, str] = {}

    def set_delegate(self, character_id: str, delegate: str) -> None:
        if not character_id or not delegate:
            raise ValueError("character_id and delegate are required")
        self._delegates[character_id] = delegate
        logger.debug(f"Delegate set: character={character_id} delegate={delegate}")

    def get_delegate(self, character_id: str) -> Optional[str]:
        return self._delegates.get(character_id)

    def revoke(self, character_id: str) -> bool:
        """Remove a delegation. Returns False when none existed."""
        removed = self._delegates.pop(character_id, None)
        if removed is not None:
            logger.debug(f"Delegate revoked: character={character_id} delegate={removed}")
        return removed is not None

    def delegations(self) -> Dict[str, str]:
        return dict(self._delegates)
