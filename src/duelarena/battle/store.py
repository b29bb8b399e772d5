"""Session storage with per-session locking."""

from __future__ import annotations

import asyncio
import copy
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, List, Optional

from loguru import logger

from duelarena.battle.errors import SessionNotFound
from duelarena.battle.models import BattleSession


def new_session_id() -> str:
    return uuid.uuid4().hex


class SessionStore:
    """Holds every battle session ever created, keyed by session id.

    Sessions are never deleted. Each session gets its own ``asyncio.Lock`` so
    operations on one battle are serialized in FIFO order while independent
    battles proceed in parallel.
    """

    def __init__(self, id_factory: Callable[[], str] = new_session_id) -> None:
        self._sessions: Dict[str, BattleSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._registry_lock = asyncio.Lock()
        self._id_factory = id_factory

    def _get_lock(self, session_id: str) -> asyncio.Lock:
        if session_id not in self._locks:
            self._locks[session_id] = asyncio.Lock()
        return self._locks[session_id]

    @asynccontextmanager
    async def lock(self, session_id: str, caller: Optional[str] = None) -> AsyncIterator[None]:
        """Hold the exclusive lock for one session.

        Usage:
            async with store.lock(session_id, caller):
                session = store.get(session_id)
                ...
                store.update(session)
        """
        lock = self._get_lock(session_id)
        logger.debug(f"Acquiring session lock: session={session_id} caller={caller}")
        async with lock:
            logger.debug(f"Session lock acquired: session={session_id} caller={caller}")
            yield
        logger.debug(f"Session lock released: session={session_id} caller={caller}")

    async def allocate_id(self) -> str:
        """Return an id that no stored session uses."""
        async with self._registry_lock:
            session_id = self._id_factory()
            while session_id in self._sessions:
                session_id = self._id_factory()
            return session_id

    async def create(self, session: BattleSession) -> BattleSession:
        async with self._registry_lock:
            if session.session_id in self._sessions:
                raise ValueError(f"Session ID already exists: {session.session_id}")
            self._sessions[session.session_id] = copy.deepcopy(session)
        return copy.deepcopy(session)

    def get(self, session_id: str) -> BattleSession:
        """Return a working copy; changes only take effect through ``update``."""
        return copy.deepcopy(self._require(session_id))

    def update(self, session: BattleSession) -> None:
        self._require(session.session_id)
        self._sessions[session.session_id] = copy.deepcopy(session)

    def exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def find(self, *, character_id: Optional[str] = None, active_only: bool = False) -> List[BattleSession]:
        """Snapshots in creation order, optionally filtered."""
        results = []
        for session in self._sessions.values():
            if active_only and not session.active:
                continue
            if character_id is not None and session.side_of(character_id) is None:
                continue
            results.append(copy.deepcopy(session))
        return results

    def __len__(self) -> int:
        return len(self._sessions)

    def _require(self, session_id: str) -> BattleSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(f"Unknown battle session: {session_id}", session_id=session_id)
        return session
