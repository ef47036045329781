"""Shared fixtures: stacked decks and the partition/hand-size invariants."""

from __future__ import annotations

from typing import Callable, Sequence

import pytest

from thirtyone.engine.deck import build_deck
from thirtyone.engine.match import MatchState
from thirtyone.engine.types import Card, card_from_id


def cards(*ids: str) -> list[Card]:
    return [card_from_id(i) for i in ids]


def stacked_deck(top_ids: Sequence[str]) -> list[Card]:
    """Full deck whose first listed card is drawn first."""
    top = cards(*top_ids)
    rest = [c for c in build_deck() if c not in top]
    return rest + top[::-1]


def check_invariants(state: MatchState) -> None:
    every_card = state.deck + state.hand(0) + state.hand(1) + state.discard
    assert len(every_card) == 52
    assert len(set(every_card)) == 52

    f = state.flags
    for p in (0, 1):
        size = len(state.hand(p))
        assert size in (3, 4)
        if size == 4:
            assert state.current_player == p
            assert f.must_discard
    if f.must_discard:
        assert f.has_drawn_card and not f.has_discarded_card
        assert len(state.hand(state.current_player)) == 4


@pytest.fixture
def stack() -> Callable[[Sequence[str]], list[Card]]:
    return stacked_deck


@pytest.fixture
def invariants() -> Callable[[MatchState], None]:
    return check_invariants


@pytest.fixture
def hand() -> Callable[..., list[Card]]:
    return cards
