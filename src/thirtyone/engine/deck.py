from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence

from .errors import EmptyDeckError
from .types import RANKS, SUITS, Card

DEAL_SIZE = 3

_RANK_VALUES: dict[str, int] = {
    "2": 2,
    "3": 3,
    "4": 4,
    "5": 5,
    "6": 6,
    "7": 7,
    "8": 8,
    "9": 9,
    "10": 10,
    "J": 10,
    "Q": 10,
    "K": 10,
    "A": 11,
}


@dataclass
class Deal:
    hands: tuple[list[Card], list[Card]]
    discard: list[Card]
    deck: list[Card]


def card_value(card: Card) -> int:
    return _RANK_VALUES[card.rank]


def build_deck() -> list[Card]:
    return [Card(suit=s, rank=r) for s in SUITS for r in RANKS]


def shuffle(deck: list[Card], rng: random.Random) -> None:
    # random.Random.shuffle is Fisher-Yates; callers own the rng for replay
    rng.shuffle(deck)


def draw_top(deck: Sequence[Card]) -> tuple[Card, list[Card]]:
    """Take the top card (end of the sequence). Returns the card and the remaining deck."""
    if not deck:
        raise EmptyDeckError("The deck is empty.")
    remaining = list(deck)
    card = remaining.pop()
    return card, remaining


def deal_initial(deck: Sequence[Card]) -> Deal:
    """Top 3 cards to player 0, next 3 to player 1, then one card starts the discard pile."""
    needed = DEAL_SIZE * 2 + 1
    if len(deck) < needed:
        raise EmptyDeckError(f"Need {needed} cards to deal, deck has {len(deck)}.")

    remaining = list(deck)
    hand0: list[Card] = []
    hand1: list[Card] = []
    for _ in range(DEAL_SIZE):
        card, remaining = draw_top(remaining)
        hand0.append(card)
    for _ in range(DEAL_SIZE):
        card, remaining = draw_top(remaining)
        hand1.append(card)
    first_discard, remaining = draw_top(remaining)
    return Deal(hands=(hand0, hand1), discard=[first_discard], deck=remaining)
