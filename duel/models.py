from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Tuple, Union

from .cards import Card
from .evaluator import Evaluation

PLAYERS = (1, 2)
NUM_COLUMNS = 5
COLUMN_SIZE = 5
BURN_COUNT = 1
STARTER_CARDS = NUM_COLUMNS * len(PLAYERS)
TOTAL_MOVES = (COLUMN_SIZE - 1) * NUM_COLUMNS * len(PLAYERS)

Column = Tuple[Card, ...]


class Phase(str, Enum):
    DEALING = "DEALING"
    PLACING = "PLACING"
    REVEALING = "REVEALING"
    FINISHED = "FINISHED"


@dataclass(frozen=True)
class Move:
    player: int
    column: int

    def to_dict(self) -> Dict[str, int]:
        return {"player": self.player, "column": self.column}

    @classmethod
    def from_raw(cls, raw: Union["Move", Mapping[str, object]]) -> "Move":
        if isinstance(raw, Move):
            return raw
        return cls(player=_whole_number(raw["player"]), column=_whole_number(raw["column"]))


def _whole_number(value: object) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Expected a whole number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"Expected a whole number, got {value!r}")


@dataclass(frozen=True)
class Board:
    player1: Tuple[Column, ...] = ((),) * NUM_COLUMNS
    player2: Tuple[Column, ...] = ((),) * NUM_COLUMNS

    def columns(self, player: int) -> Tuple[Column, ...]:
        if player == 1:
            return self.player1
        if player == 2:
            return self.player2
        raise ValueError(f"Unknown player {player}")

    def with_card(self, player: int, column: int, card: Card) -> "Board":
        # Columns only ever grow at the end.
        columns = list(self.columns(player))
        columns[column] = columns[column] + (card,)
        if player == 1:
            return Board(player1=tuple(columns), player2=self.player2)
        return Board(player1=self.player1, player2=tuple(columns))

    def is_full(self) -> bool:
        return all(len(col) == COLUMN_SIZE for col in self.player1 + self.player2)

    def cards(self) -> List[Card]:
        return [card for col in self.player1 + self.player2 for card in col]


@dataclass
class MatchConfig:
    poll_interval_ms: int = 600
    room_code_length: int = 4
    room_code_alphabet: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


@dataclass(frozen=True)
class ColumnResult:
    column: int
    winner: int
    player1: Evaluation
    player2: Evaluation


@dataclass(frozen=True)
class MatchResult:
    columns: Tuple[ColumnResult, ...]
    p1_wins: int
    p2_wins: int
    overall_winner: int


@dataclass
class MatchDescriptor:
    seed: int
    moves: List[Move] = field(default_factory=list)
    participants_connected: Dict[int, bool] = field(default_factory=lambda: {1: True, 2: False})
    created_at: float = 0.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "seed": self.seed,
            "moves": [move.to_dict() for move in self.moves],
            "participants_connected": dict(self.participants_connected),
            "created_at": self.created_at,
        }
