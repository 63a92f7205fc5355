"""Deterministic duel poker engine: seeded deck, placement rules, replay and scoring."""

from .cards import Card, RANKS, SUITS, build_deck, build_shuffled_deck, new_seed, parse_cards
from .errors import (
    DuelError,
    IllegalPlacement,
    InvalidHandSize,
    InvalidMove,
    InvalidRoomCode,
    MatchFull,
    MatchNotFound,
    StaleWrite,
)
from .evaluator import Evaluation, compare, compare_hands, evaluate
from .game import (
    GameState,
    append_move,
    apply_move,
    finish,
    is_legal_placement,
    legal_columns,
    replay,
    state_payload,
)
from .models import Board, MatchConfig, MatchDescriptor, MatchResult, Move, Phase
from .scoring import result_payload, score

__all__ = [
    "Card",
    "RANKS",
    "SUITS",
    "build_deck",
    "build_shuffled_deck",
    "new_seed",
    "parse_cards",
    "DuelError",
    "IllegalPlacement",
    "InvalidHandSize",
    "InvalidMove",
    "InvalidRoomCode",
    "MatchFull",
    "MatchNotFound",
    "StaleWrite",
    "Evaluation",
    "compare",
    "compare_hands",
    "evaluate",
    "GameState",
    "append_move",
    "apply_move",
    "finish",
    "is_legal_placement",
    "legal_columns",
    "replay",
    "state_payload",
    "Board",
    "MatchConfig",
    "MatchDescriptor",
    "MatchResult",
    "Move",
    "Phase",
    "result_payload",
    "score",
]
