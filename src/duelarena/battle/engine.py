"""Turn engine: the battle session state machine."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, List, Optional, Union

from loguru import logger

from duelarena.battle.entropy import EntropySource, SystemEntropy
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
    BattleEvent,
    BattleSession,
    BattleStarted,
    Side,
    TurnResult,
)
from duelarena.battle.resolution import apply_heal, choose_first_side, resolve_attack
from duelarena.battle.store import SessionStore
from duelarena.registry.characters import CharacterNotFound, CharacterRegistry, CharacterStats
from duelarena.registry.delegation import DelegationRegistry

if TYPE_CHECKING:
    from duelarena.events import EventSink

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TurnEngine:
    """Validates and executes battle operations.

    Every mutating call runs start to finish under its session's lock:
    validation, registry queries, entropy draws, the state change and event
    emission. Work happens on a copy of the session that is only committed
    once nothing else can fail, so a rejected call changes nothing.
    """

    def __init__(
        self,
        registry: CharacterRegistry,
        *,
        entropy: Optional[EntropySource] = None,
        sink: Optional[EventSink] = None,
        store: Optional[SessionStore] = None,
        clock: Clock = utc_now,
        delegations: Optional[DelegationRegistry] = None,
    ) -> None:
        self.registry = registry
        self.entropy = entropy if entropy is not None else SystemEntropy()
        self.sink = sink
        self.store = store if store is not None else SessionStore()
        self.clock = clock
        self.delegations = delegations

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def start_battle(self, fighter_a: str, fighter_b: str) -> str:
        """Open a session between two characters and return its id."""

        if not fighter_a or not fighter_b:
            raise self._reject(InvalidParticipants("Both fighters are required"))
        if fighter_a == fighter_b:
            raise self._reject(InvalidParticipants(f"A character cannot fight itself: {fighter_a}"))
        try:
            speed_a = self.registry.stats_of(fighter_a).speed
            speed_b = self.registry.stats_of(fighter_b).speed
        except CharacterNotFound as exc:
            raise self._reject(InvalidParticipants(f"Unknown character: {exc.args[0]}")) from exc

        first = choose_first_side(speed_a, speed_b)
        now = self.clock()
        session_id = await self.store.allocate_id()
        session = BattleSession(
            session_id=session_id,
            fighter_a=fighter_a,
            fighter_b=fighter_b,
            turn_owner=first,
            last_action_time=now,
            created_at=now,
        )
        async with self.store.lock(session_id):
            await self.store.create(session)
            logger.info(
                f"Battle started: session={session_id} a={fighter_a} b={fighter_b} first={first.value}"
            )
            await self._emit(BattleStarted(session_id, fighter_a, fighter_b, first))
        return session_id

    async def perform_turn(
        self,
        session_id: str,
        caller: str,
        action: Union[BattleAction, str],
    ) -> TurnResult:
        """Execute the turn owner's action.

        Returns the emitted :class:`TurnResult`. When the action reduces the
        opponent to zero health the session ends and ``BattleEnded`` follows.
        """

        action = BattleAction.from_str(action)
        self._require_known(session_id)

        async with self.store.lock(session_id, caller):
            session = self.store.get(session_id)
            self._require_active(session)
            now = self.clock()
            if now > session.deadline:
                raise self._reject(
                    TurnTimedOut(
                        f"Turn deadline passed at {session.deadline.isoformat()}",
                        session_id=session_id,
                    )
                )

            side = session.turn_owner
            acting_character = session.fighter_for(side)
            self._authorize(session, caller, acting_character)

            if action is BattleAction.DEFEND:
                result = self._defend(session, side, action)
            else:
                result = self._attack(session, side, action)

            session.turn_count += 1
            ended: Optional[BattleEnded] = None
            if session.health_of(side.opponent) == 0:
                session.active = False
                session.winner = side
                session.ended_at = now
                ended = BattleEnded(
                    session_id=session_id,
                    winner_identity=caller,
                    winner_character=acting_character,
                    loser_character=session.fighter_for(side.opponent),
                    reason="defeat",
                )
            else:
                session.turn_owner = side.opponent
                session.last_action_time = now

            self.store.update(session)
            logger.debug(
                f"Turn {session.turn_count}: session={session_id} actor={acting_character} "
                f"action={action.value} damage={result.damage_dealt} health={result.resulting_health}"
            )
            await self._emit(result)
            if ended:
                logger.info(
                    f"Battle ended: session={session_id} winner={ended.winner_character} reason=defeat"
                )
                await self._emit(ended)
        return result

    async def claim_victory_after_timeout(self, session_id: str, caller: str) -> BattleEnded:
        """End a stalled session in favor of the side that was not due to act.

        Anyone may trigger the claim; the caller is recorded only in logs.
        """

        self._require_known(session_id)
        async with self.store.lock(session_id, caller):
            session = self.store.get(session_id)
            self._require_active(session)
            now = self.clock()
            if now <= session.deadline:
                raise self._reject(
                    TimeoutNotReached(
                        f"Turn deadline not reached until {session.deadline.isoformat()}",
                        session_id=session_id,
                    )
                )

            winner = session.turn_owner.opponent
            winner_character = session.fighter_for(winner)
            ended = BattleEnded(
                session_id=session_id,
                winner_identity=self.registry.controller_of(winner_character),
                winner_character=winner_character,
                loser_character=session.fighter_for(session.turn_owner),
                reason="timeout",
            )
            session.active = False
            session.winner = winner
            session.ended_at = now
            self.store.update(session)
            logger.info(
                f"Battle forfeited: session={session_id} winner={winner_character} claimed_by={caller}"
            )
            await self._emit(ended)
        return ended

    async def get_session(self, session_id: str) -> BattleSession:
        """Snapshot of a session; mutating it has no effect on the engine."""
        return self.store.get(session_id)

    async def sessions_for(self, character_id: str, *, active_only: bool = False) -> List[BattleSession]:
        return self.store.find(character_id=character_id, active_only=active_only)

    async def is_forfeitable(self, session_id: str) -> bool:
        session = self.store.get(session_id)
        return session.active and self.clock() > session.deadline

    def stats_of(self, character_id: str) -> CharacterStats:
        return self.registry.stats_of(character_id)

    # ------------------------------------------------------------------
    # Internal mechanics
    # ------------------------------------------------------------------
    def _defend(self, session: BattleSession, side: Side, action: BattleAction) -> TurnResult:
        health = apply_heal(session.health_of(side))
        session.set_health(side, health)
        session.set_defending(side, True)
        return TurnResult(
            session_id=session.session_id,
            acting_character=session.fighter_for(side),
            action=action,
            damage_dealt=0,
            resulting_health=health,
        )

    def _attack(self, session: BattleSession, side: Side, action: BattleAction) -> TurnResult:
        target = side.opponent
        attacker_stats = self.registry.stats_of(session.fighter_for(side))
        defender_stats = self.registry.stats_of(session.fighter_for(target))
        outcome = resolve_attack(
            attacker_stats,
            defender_stats,
            action,
            defender_shielded=session.is_defending(target),
            entropy=self.entropy,
        )

        current = session.health_of(target)
        applied = min(outcome.damage, current)
        session.set_health(target, current - applied)
        if outcome.shield_consumed:
            session.set_defending(target, False)

        return TurnResult(
            session_id=session.session_id,
            acting_character=session.fighter_for(side),
            action=action,
            damage_dealt=applied,
            resulting_health=current - applied,
            critical=outcome.critical,
            missed=outcome.missed,
            evaded=outcome.evaded,
            shield_consumed=outcome.shield_consumed,
        )

    def _authorize(self, session: BattleSession, caller: str, character_id: str) -> None:
        # Ownership can change between turns, so it is looked up on every call
        controller = self.registry.controller_of(character_id)
        if caller and caller == controller:
            return
        if caller and self.delegations is not None:
            if self.delegations.get_delegate(character_id) == caller:
                logger.debug(f"Delegate {caller} acting for {character_id} in session {session.session_id}")
                return
        raise self._reject(
            NotAuthorized(
                f"{caller or '<anonymous>'} does not control {character_id}",
                session_id=session.session_id,
            )
        )

    def _require_known(self, session_id: str) -> None:
        if not self.store.exists(session_id):
            raise self._reject(
                SessionNotFound(f"Unknown battle session: {session_id}", session_id=session_id)
            )

    def _require_active(self, session: BattleSession) -> None:
        if not session.active:
            raise self._reject(
                SessionInactive("Battle session already ended", session_id=session.session_id)
            )

    async def _emit(self, record: BattleEvent) -> None:
        if self.sink is None:
            return
        # State is already committed; a broken sink must not fail the call
        try:
            await self.sink.emit(record)
        except Exception:
            logger.exception(f"Sink failure: event={record.event_name} session={record.session_id}")

    @staticmethod
    def _reject(error: BattleError) -> BattleError:
        logger.info(f"Rejected: {type(error).__name__} session={error.session_id} reason={error}")
        return error
