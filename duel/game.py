from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .cards import Card, build_shuffled_deck, deal
from .errors import IllegalPlacement, InvalidMove, StaleWrite
from .models import (
    BURN_COUNT,
    COLUMN_SIZE,
    NUM_COLUMNS,
    PLAYERS,
    TOTAL_MOVES,
    Board,
    Move,
    Phase,
)

# Everything here is value-in/value-out. Hosts keep one GameState and swap it
# for the state returned by each call; the move log is the only shared thing.

RawMove = Union[Move, Mapping[str, object]]


@dataclass(frozen=True)
class GameState:
    seed: int
    board: Board
    remaining_deck: Tuple[Card, ...]
    burned: Tuple[Card, ...]
    moves: Tuple[Move, ...] = ()
    phase: Phase = Phase.DEALING

    @property
    def move_count(self) -> int:
        return len(self.moves)

    @property
    def next_player(self) -> int:
        return 1 if len(self.moves) % 2 == 0 else 2

    @property
    def drawn_card(self) -> Optional[Card]:
        if self.phase != Phase.PLACING or not self.remaining_deck:
            return None
        return self.remaining_deck[0]

    def columns(self, player: int) -> Tuple[Tuple[Card, ...], ...]:
        return self.board.columns(player)


def _deal(seed: int) -> GameState:
    deck = build_shuffled_deck(seed)
    burned = deal(deck, BURN_COUNT)
    state = GameState(seed=seed, board=Board(), remaining_deck=tuple(deck), burned=tuple(burned))
    return _deal_starters(state)


def _deal_starters(state: GameState) -> GameState:
    # Column by column: player 1's starter, then player 2's.
    deck = list(state.remaining_deck)
    board = state.board
    for column in range(NUM_COLUMNS):
        for player in PLAYERS:
            card = deal(deck, 1)[0]
            board = board.with_card(player, column, card)
    return replace(state, board=board, remaining_deck=tuple(deck), phase=Phase.PLACING)


def placement_error(state: GameState, player: int, column: int) -> Optional[str]:
    """Explain why ``player`` may not place into ``column``; ``None`` when legal."""
    if state.phase != Phase.PLACING:
        return f"Match is {state.phase.value.lower()}"
    if player not in PLAYERS:
        return f"Unknown player {player}"
    if player != state.next_player:
        return "Not your turn"
    if not isinstance(column, int) or not 0 <= column < NUM_COLUMNS:
        return f"Column {column} out of range"
    columns = state.columns(player)
    length = len(columns[column])
    if length >= COLUMN_SIZE:
        return "Column is full"
    if length != min(len(col) for col in columns):
        return "Column is ahead of your shortest column"
    return None


def is_legal_placement(state: GameState, player: int, column: int) -> bool:
    return placement_error(state, player, column) is None


def legal_columns(state: GameState, player: int) -> List[int]:
    return [column for column in range(NUM_COLUMNS) if is_legal_placement(state, player, column)]


def _place(state: GameState, move: Move) -> GameState:
    card = state.remaining_deck[0]
    board = state.board.with_card(move.player, move.column, card)
    moves = state.moves + (move,)
    phase = Phase.REVEALING if len(moves) == TOTAL_MOVES else Phase.PLACING
    return replace(state, board=board, remaining_deck=state.remaining_deck[1:], moves=moves, phase=phase)


def apply_move(state: GameState, player: int, column: int) -> Tuple[GameState, Move]:
    reason = placement_error(state, player, column)
    if reason is not None:
        raise IllegalPlacement(reason)
    move = Move(player=player, column=column)
    return _place(state, move), move


def replay(seed: int, moves: Iterable[RawMove]) -> GameState:
    """Rebuild the full match state from the seed and the move log alone."""
    state = _deal(seed)
    for idx, raw in enumerate(moves):
        try:
            move = Move.from_raw(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidMove(f"Move {idx} is malformed: {raw!r}") from exc
        reason = placement_error(state, move.player, move.column)
        if reason is not None:
            raise InvalidMove(f"Move {idx} ({move.player}, {move.column}) cannot be replayed: {reason}")
        state = _place(state, move)
    return state


def finish(state: GameState) -> GameState:
    if state.phase == Phase.FINISHED:
        return state
    if state.phase != Phase.REVEALING:
        raise RuntimeError("Match is not ready to be revealed")
    return replace(state, phase=Phase.FINISHED)


def append_move(moves: Sequence[RawMove], expected_length: int, move: Move) -> List[Move]:
    # Compare-and-append: the caller must have seen the log at its current length.
    if len(moves) != expected_length:
        raise StaleWrite(expected=expected_length, actual=len(moves))
    return [Move.from_raw(raw) for raw in moves] + [move]


def state_payload(state: GameState, viewer: Optional[int] = None) -> Dict[str, object]:
    """JSON-ready view of the state.

    With a ``viewer`` the opponent's placed cards stay hidden (``None``) until
    the reveal; starter cards are always face up.
    """
    revealed = state.phase in (Phase.REVEALING, Phase.FINISHED)

    def column_labels(player: int) -> List[List[Optional[str]]]:
        hide = viewer is not None and viewer != player and not revealed
        return [
            [card.label if (idx == 0 or not hide) else None for idx, card in enumerate(col)]
            for col in state.columns(player)
        ]

    drawn = state.drawn_card
    payload: Dict[str, object] = {
        "seed": state.seed,
        "phase": state.phase.value,
        "move_count": state.move_count,
        "next_player": state.next_player if state.phase == Phase.PLACING else None,
        "drawn_card": drawn.label if drawn else None,
        "deck_remaining": len(state.remaining_deck),
        "columns": {"1": column_labels(1), "2": column_labels(2)},
    }
    if state.phase == Phase.PLACING:
        payload["legal"] = legal_columns(state, state.next_player)
    return payload
