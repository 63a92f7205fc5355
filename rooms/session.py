from __future__ import annotations

import asyncio
import logging
from typing import Dict, Mapping, Optional

from duel.errors import DuelError, IllegalPlacement, MatchNotFound, StaleWrite
from duel.game import GameState, apply_move, finish, placement_error, replay
from duel.models import MatchConfig, MatchResult, Phase, TOTAL_MOVES
from duel.scoring import score

from .store import MatchStore

LOGGER = logging.getLogger("duel_session")


class MatchSession:
    """One participant's view of a match, kept in sync by replaying the shared log."""

    def __init__(
        self,
        store: MatchStore,
        code: str,
        player: int,
        seed: int,
        config: Optional[MatchConfig] = None,
    ) -> None:
        self.store = store
        self.code = code
        self.player = player
        self.seed = seed
        self.config = config or store.config
        self.state: GameState = replay(seed, [])
        self.observed_length = 0
        self.connected: Dict[int, bool] = {1: player == 1, 2: player == 2}
        self.result: Optional[MatchResult] = None
        self.last_error: Optional[DuelError] = None
        self.active = True
        self._poll_task: Optional[asyncio.Task] = None

    @classmethod
    async def create(
        cls,
        store: MatchStore,
        seed: Optional[int] = None,
        config: Optional[MatchConfig] = None,
    ) -> "MatchSession":
        code, snapshot = await store.create_match(seed)
        session = cls(store, code, 1, int(snapshot["seed"]), config)
        session._apply_snapshot(snapshot)
        return session

    @classmethod
    async def join(cls, store: MatchStore, code: str, config: Optional[MatchConfig] = None) -> "MatchSession":
        code = store.normalize_code(code)
        snapshot = await store.join_match(code)
        session = cls(store, code, 2, int(snapshot["seed"]), config)
        session._apply_snapshot(snapshot)
        return session

    @property
    def is_my_turn(self) -> bool:
        return self.state.phase == Phase.PLACING and self.state.next_player == self.player

    @property
    def opponent_connected(self) -> bool:
        return bool(self.connected.get(3 - self.player))

    @property
    def finished(self) -> bool:
        return self.state.phase == Phase.FINISHED

    # Sync -------------------------------------------------------------

    async def refresh(self) -> GameState:
        snapshot = await self.store.fetch(self.code)
        self._apply_snapshot(snapshot)
        return self.state

    def _apply_snapshot(self, snapshot: Mapping[str, object]) -> bool:
        # A fetch that lands after abandon() must not touch local state.
        if not self.active:
            LOGGER.debug("Room %s: discarding snapshot for abandoned session", self.code)
            return False

        connected = snapshot.get("participants_connected") or {}
        for key, value in dict(connected).items():
            self.connected[int(key)] = bool(value)

        moves = list(snapshot.get("moves") or [])
        if len(moves) <= self.observed_length:
            return False

        self.state = replay(self.seed, moves)
        self.observed_length = len(moves)
        LOGGER.debug("Room %s: player %s replayed %s moves", self.code, self.player, self.observed_length)
        self._maybe_score()
        return True

    def _maybe_score(self) -> None:
        if self.result is not None or self.state.move_count < TOTAL_MOVES:
            return
        self.result = score(self.state.board)
        self.state = finish(self.state)
        LOGGER.info(
            "Room %s finished: player %s wins %s-%s",
            self.code,
            self.result.overall_winner,
            max(self.result.p1_wins, self.result.p2_wins),
            min(self.result.p1_wins, self.result.p2_wins),
        )

    # Actions ----------------------------------------------------------

    async def place(self, column: int) -> GameState:
        if not self.active:
            raise RuntimeError("Session abandoned")
        if not self.opponent_connected:
            raise IllegalPlacement("Waiting for opponent")
        reason = placement_error(self.state, self.player, column)
        if reason is not None:
            LOGGER.warning("Room %s: rejected placement player=%s column=%s reason=%s", self.code, self.player, column, reason)
            raise IllegalPlacement(reason)

        new_state, move = apply_move(self.state, self.player, column)
        try:
            length = await self.store.append_move(self.code, move.player, move.column, self.observed_length)
        except StaleWrite:
            LOGGER.warning("Room %s: lost append race at move %s; replaying", self.code, self.observed_length)
            if self.active:
                await self.refresh()
            raise

        if not self.active:
            return self.state
        # The poll loop may already have replayed past this move.
        if length > self.observed_length:
            self.state = new_state
            self.observed_length = length
            self._maybe_score()
        return self.state

    async def wait_for_turn(self) -> GameState:
        interval = self.config.poll_interval_ms / 1000
        while self.active:
            if self.finished or (self.is_my_turn and self.opponent_connected):
                return self.state
            await asyncio.sleep(interval)
            await self.refresh()
        raise RuntimeError("Session abandoned")

    # Polling ----------------------------------------------------------

    def start_polling(self) -> asyncio.Task:
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self._poll_loop())
        return self._poll_task

    async def _poll_loop(self) -> None:
        interval = self.config.poll_interval_ms / 1000
        while self.active and not self.finished:
            try:
                await self.refresh()
            except MatchNotFound:
                LOGGER.warning("Room %s disappeared; stopping poll", self.code)
                return
            except DuelError as exc:
                self.last_error = exc
                LOGGER.warning("Room %s: poll failed (%s): %s", self.code, exc.code, exc.msg)
            await asyncio.sleep(interval)

    def abandon(self) -> None:
        self.active = False
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        LOGGER.info("Room %s: player %s left", self.code, self.player)

    async def leave(self) -> None:
        """Abandon the match and clear this player's connected flag in the store."""
        self.abandon()
        try:
            await self.store.set_connected(self.code, self.player, False)
        except MatchNotFound:
            LOGGER.debug("Room %s already gone", self.code)
