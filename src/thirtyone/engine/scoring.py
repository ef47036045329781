from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from .deck import card_value
from .types import SUIT_ORDER, SUIT_SYMBOLS, Card, Suit

Winner = Literal["a", "b", "draw"]


@dataclass(frozen=True)
class HandScore:
    by_suit: dict[Suit, int]
    max_suit_total: int
    display: str

    def to_dict(self) -> dict[str, object]:
        return {
            "by_suit": dict(self.by_suit),
            "max_suit_total": self.max_suit_total,
            "display": self.display,
        }


def suit_totals(hand: Sequence[Card]) -> dict[Suit, int]:
    """Summed card value per suit, keyed in the order suits first appear in the hand."""
    totals: dict[Suit, int] = {}
    for card in hand:
        totals[card.suit] = totals.get(card.suit, 0) + card_value(card)
    return totals


def strongest_suit(hand: Sequence[Card]) -> Suit | None:
    totals = suit_totals(hand)
    best: Suit | None = None
    best_total = -1
    for suit, total in totals.items():
        # strict comparison keeps the first-seen suit on ties
        if total > best_total:
            best, best_total = suit, total
    return best


def score_hand(hand: Sequence[Card]) -> HandScore:
    totals = suit_totals(hand)
    display = " ".join(f"{v}{SUIT_SYMBOLS[s]}" for s, v in totals.items())
    return HandScore(
        by_suit=totals,
        max_suit_total=max(totals.values(), default=0),
        display=display,
    )


def compare_hands(a: HandScore, b: HandScore) -> Winner:
    if a.max_suit_total > b.max_suit_total:
        return "a"
    if b.max_suit_total > a.max_suit_total:
        return "b"
    return "draw"


def sort_by_rank(hand: Sequence[Card]) -> list[Card]:
    return sorted(hand, key=card_value)


def sort_by_suit(hand: Sequence[Card]) -> list[Card]:
    return sorted(hand, key=lambda c: (SUIT_ORDER[c.suit], card_value(c)))
