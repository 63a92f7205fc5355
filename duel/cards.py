from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable, List, Sequence

SUITS = ("hearts", "diamonds", "clubs", "spades")
RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
SUIT_LETTERS = {"hearts": "h", "diamonds": "d", "clubs": "c", "spades": "s"}
SUIT_BY_LETTER = {letter: suit for suit, letter in SUIT_LETTERS.items()}

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MODULUS = 2**31


@dataclass(frozen=True)
class Card:
    suit: str
    rank: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def label(self) -> str:
        return f"{self.rank}{SUIT_LETTERS[self.suit]}"


class SeededRandom:
    """Linear-congruential stream; both clients must draw the exact same values."""

    def __init__(self, seed: int) -> None:
        self.state = seed

    def random(self) -> float:
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.state / LCG_MODULUS


def build_deck() -> List[Card]:
    # Canonical order: suit-major, rank-minor.
    return [Card(suit, rank) for suit in SUITS for rank in RANKS]


def build_shuffled_deck(seed: int) -> List[Card]:
    rng = SeededRandom(seed)
    deck = build_deck()
    for i in range(len(deck) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        deck[i], deck[j] = deck[j], deck[i]
    return deck


def new_seed() -> int:
    return int(time.time() * 1000)


def deal(deck: List[Card], count: int) -> List[Card]:
    if len(deck) < count:
        raise ValueError("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def cards_to_labels(cards: Iterable[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    if len(label) not in (2, 3):
        raise ValueError(f"Invalid card label: {label}")
    rank, letter = label[:-1], label[-1]
    if letter not in SUIT_BY_LETTER:
        raise ValueError(f"Invalid suit: {letter}")
    return Card(SUIT_BY_LETTER[letter], rank)


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
