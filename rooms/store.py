from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Dict, Optional

from duel.cards import new_seed
from duel.errors import IllegalPlacement, InvalidRoomCode, MatchFull, MatchNotFound, StaleWrite
from duel.game import placement_error, replay
from duel.models import MatchConfig, MatchDescriptor, Move

LOGGER = logging.getLogger("duel_rooms")

# MatchStore stands in for the shared key/value collaborator. It owns the
# descriptors; everything else a participant knows is replayed from them.


class MatchStore:
    def __init__(self, config: Optional[MatchConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or MatchConfig()
        self.rooms: Dict[str, MatchDescriptor] = {}
        self.lock = asyncio.Lock()
        self._rng = rng or random.Random()

    def generate_code(self) -> str:
        alphabet = self.config.room_code_alphabet
        return "".join(self._rng.choice(alphabet) for _ in range(self.config.room_code_length))

    def normalize_code(self, code: str) -> str:
        cleaned = code.strip().upper() if isinstance(code, str) else ""
        if len(cleaned) != self.config.room_code_length:
            raise InvalidRoomCode(f"Room code must be {self.config.room_code_length} characters")
        return cleaned

    async def create_match(self, seed: Optional[int] = None) -> tuple[str, Dict[str, object]]:
        if seed is None:
            seed = new_seed()
        async with self.lock:
            code = self.generate_code()
            while code in self.rooms:
                code = self.generate_code()
            descriptor = MatchDescriptor(seed=seed, created_at=time.time())
            self.rooms[code] = descriptor
            snapshot = descriptor.to_dict()
        LOGGER.info("Room %s created (seed=%s)", code, seed)
        return code, snapshot

    async def join_match(self, code: str) -> Dict[str, object]:
        code = self.normalize_code(code)
        async with self.lock:
            descriptor = self._get_locked(code)
            if descriptor.participants_connected.get(2):
                raise MatchFull(f"Room {code} already has two players")
            descriptor.participants_connected[2] = True
            snapshot = descriptor.to_dict()
        LOGGER.info("Room %s joined by player 2", code)
        return snapshot

    async def fetch(self, code: str) -> Dict[str, object]:
        code = self.normalize_code(code)
        async with self.lock:
            return self._get_locked(code).to_dict()

    async def append_move(self, code: str, player: int, column: int, expected_length: int) -> int:
        """Append only if the log still has ``expected_length`` entries and the move is legal.

        Returns the new log length.
        """
        code = self.normalize_code(code)
        async with self.lock:
            descriptor = self._get_locked(code)
            actual = len(descriptor.moves)
            if actual != expected_length:
                LOGGER.warning(
                    "Room %s rejected append player=%s column=%s expected=%s actual=%s",
                    code,
                    player,
                    column,
                    expected_length,
                    actual,
                )
                raise StaleWrite(expected=expected_length, actual=actual)
            reason = placement_error(replay(descriptor.seed, descriptor.moves), player, column)
            if reason is not None:
                LOGGER.warning("Room %s rejected move player=%s column=%s reason=%s", code, player, column, reason)
                raise IllegalPlacement(reason)
            descriptor.moves.append(Move(player=player, column=column))
            length = len(descriptor.moves)
        LOGGER.debug("Room %s move %s: player=%s column=%s", code, length, player, column)
        return length

    async def set_connected(self, code: str, player: int, connected: bool) -> None:
        code = self.normalize_code(code)
        async with self.lock:
            self._get_locked(code).participants_connected[player] = connected

    def _get_locked(self, code: str) -> MatchDescriptor:
        descriptor = self.rooms.get(code)
        if descriptor is None:
            raise MatchNotFound(f"Room {code} not found")
        return descriptor
