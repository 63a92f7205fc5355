from __future__ import annotations

import random
from typing import Callable, List, Optional, Sequence

from duel.cards import parse_cards
from duel.game import GameState, apply_move, legal_columns, replay
from duel.models import Board, Move, Phase

Chooser = Callable[[GameState, List[int]], int]


def first_legal(state: GameState, legal: List[int]) -> int:
    return legal[0]


def play_log(seed: int, moves: int = 40, chooser: Optional[Chooser] = None) -> List[Move]:
    """Build a legal move log of the given length by driving the engine."""
    chooser = chooser or first_legal
    state = replay(seed, [])
    log: List[Move] = []
    while len(log) < moves and state.phase == Phase.PLACING:
        legal = legal_columns(state, state.next_player)
        state, move = apply_move(state, state.next_player, chooser(state, legal))
        log.append(move)
    return log


def random_chooser(rng: random.Random) -> Chooser:
    def choose(state: GameState, legal: List[int]) -> int:
        return rng.choice(legal)

    return choose


def build_board(player1: Sequence[Sequence[str]], player2: Sequence[Sequence[str]]) -> Board:
    """Board from card labels, one list of labels per column."""
    return Board(
        player1=tuple(tuple(parse_cards(col)) for col in player1),
        player2=tuple(tuple(parse_cards(col)) for col in player2),
    )
