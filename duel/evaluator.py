from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .cards import Card
from .errors import InvalidHandSize

HAND_SIZE = 5

RANK_VALUE = {
    "2": 2,
    "3": 3,
    "4": 4,
    "5": 5,
    "6": 6,
    "7": 7,
    "8": 8,
    "9": 9,
    "10": 10,
    "J": 11,
    "Q": 12,
    "K": 13,
    "A": 14,
}

ROYAL_FLUSH = 10
STRAIGHT_FLUSH = 9
FOUR_OF_A_KIND = 8
FULL_HOUSE = 7
FLUSH = 6
STRAIGHT = 5
THREE_OF_A_KIND = 4
TWO_PAIR = 3
PAIR = 2
HIGH_CARD = 1

HAND_NAMES = {
    ROYAL_FLUSH: "royal_flush",
    STRAIGHT_FLUSH: "straight_flush",
    FOUR_OF_A_KIND: "four_of_a_kind",
    FULL_HOUSE: "full_house",
    FLUSH: "flush",
    STRAIGHT: "straight",
    THREE_OF_A_KIND: "three_of_a_kind",
    TWO_PAIR: "two_pair",
    PAIR: "pair",
    HIGH_CARD: "high_card",
}


@dataclass(frozen=True)
class Evaluation:
    category: int
    tie_break: Tuple[int, ...]

    @property
    def name(self) -> str:
        return HAND_NAMES[self.category]


def evaluate(cards: Sequence[Card]) -> Evaluation:
    """Rank exactly five cards into a category and an ordered tie-break key."""
    if len(cards) != HAND_SIZE or len(set(cards)) != HAND_SIZE:
        raise InvalidHandSize(f"Expected {HAND_SIZE} distinct cards, got {len(cards)}")

    ranks = sorted((RANK_VALUE[card.rank] for card in cards), reverse=True)
    is_flush = len({card.suit for card in cards}) == 1
    straight_high = _straight_high(ranks)

    counts = Counter(ranks)
    # Most copies first, then higher rank first.
    grouped = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    count_values = [count for _, count in grouped]
    kickers = [rank for rank, count in grouped if count == 1]

    if straight_high and is_flush:
        if straight_high == 14:
            return Evaluation(ROYAL_FLUSH, tuple(ranks))
        return Evaluation(STRAIGHT_FLUSH, (straight_high,))
    if count_values[0] == 4:
        return Evaluation(FOUR_OF_A_KIND, (grouped[0][0], grouped[1][0]))
    if count_values[0] == 3 and count_values[1] == 2:
        return Evaluation(FULL_HOUSE, (grouped[0][0], grouped[1][0]))
    if is_flush:
        return Evaluation(FLUSH, tuple(ranks))
    if straight_high:
        return Evaluation(STRAIGHT, (straight_high,))
    if count_values[0] == 3:
        return Evaluation(THREE_OF_A_KIND, (grouped[0][0], *kickers))
    if count_values[0] == 2 and count_values[1] == 2:
        return Evaluation(TWO_PAIR, (grouped[0][0], grouped[1][0], *kickers))
    if count_values[0] == 2:
        return Evaluation(PAIR, (grouped[0][0], *kickers))
    return Evaluation(HIGH_CARD, tuple(ranks))


def _straight_high(ranks: Sequence[int]) -> Optional[int]:
    distinct = sorted(set(ranks), reverse=True)
    if len(distinct) != HAND_SIZE:
        return None
    if distinct[0] - distinct[-1] == 4:
        return distinct[0]
    if distinct == [14, 5, 4, 3, 2]:  # wheel, ace plays low
        return 5
    return None


def compare(first: Evaluation, second: Evaluation) -> int:
    """Return 1 if ``first`` wins, 2 if ``second`` wins. Exact ties go to ``first``."""
    if first.category != second.category:
        return 1 if first.category > second.category else 2
    for idx in range(max(len(first.tie_break), len(second.tie_break))):
        a = first.tie_break[idx] if idx < len(first.tie_break) else 0
        b = second.tie_break[idx] if idx < len(second.tie_break) else 0
        if a != b:
            return 1 if a > b else 2
    return 1


def compare_hands(first: Sequence[Card], second: Sequence[Card]) -> Tuple[int, Evaluation, Evaluation]:
    eval_first = evaluate(first)
    eval_second = evaluate(second)
    return compare(eval_first, eval_second), eval_first, eval_second
