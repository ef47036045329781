from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Suit = Literal["Hearts", "Diamonds", "Clubs", "Spades"]
Rank = Literal["2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A"]

DrawSource = Literal["deck", "discard"]
SortKey = Literal["rank", "suit"]

# Build order of a fresh deck
SUITS: tuple[Suit, ...] = ("Clubs", "Diamonds", "Hearts", "Spades")
RANKS: tuple[Rank, ...] = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")

SUIT_SYMBOLS: dict[Suit, str] = {
    "Hearts": "♥",
    "Diamonds": "♦",
    "Clubs": "♣",
    "Spades": "♠",
}

# Display order used when sorting a hand by suit
SUIT_ORDER: dict[Suit, int] = {"Hearts": 0, "Diamonds": 1, "Clubs": 2, "Spades": 3}

HUMAN = 0
OPPONENT = 1


@dataclass(frozen=True)
class Card:
    suit: Suit
    rank: Rank

    @property
    def id(self) -> str:
        """Compact identity used across the event boundary, e.g. ``10H`` or ``QS``."""
        return f"{self.rank}{self.suit[0]}"

    def __str__(self) -> str:
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"


_SUIT_BY_INITIAL: dict[str, Suit] = {s[0]: s for s in SUITS}


def card_from_id(card_id: str) -> Card:
    if len(card_id) < 2:
        raise ValueError(f"Invalid card id: {card_id!r}")
    rank, initial = card_id[:-1], card_id[-1].upper()
    suit = _SUIT_BY_INITIAL.get(initial)
    if suit is None or rank not in RANKS:
        raise ValueError(f"Invalid card id: {card_id!r}")
    return Card(suit=suit, rank=rank)  # type: ignore[arg-type]
