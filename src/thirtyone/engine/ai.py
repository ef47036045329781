from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Sequence

from .actions import Action, DiscardAction, DrawAction, EndTurnAction, KnockAction
from .deck import DEAL_SIZE, card_value
from .match import MatchState, StepResult, step
from .scoring import score_hand, strongest_suit, suit_totals
from .types import Card, DrawSource


@dataclass(frozen=True)
class AISpec:
    """Tuning for the opponent heuristics.

    The defaults are the "normal" opponent. Other profiles live in
    ``data/ai_profiles.json``.

      ace_pass_chance: an ace nothing else recommends is taken from the
        discard pile only when the rng roll is above this
      sure_knock: knock without looking at the other hand
      threshold_base/threshold_spread: knock threshold is
        base + floor(rng * spread) when ahead of the other hand
      gamble_floor/gamble_pass_chance: at gamble_floor or more (but under
        sure_knock), knock when the rng roll is above gamble_pass_chance
    """

    name: str = "normal"
    ace_pass_chance: float = 0.2
    sure_knock: int = 27
    threshold_base: int = 20
    threshold_spread: int = 5
    gamble_floor: int = 25
    gamble_pass_chance: float = 0.7


PERFECT_HAND = 31


def choose_draw_source(
    hand: Sequence[Card],
    top_discard: Card | None,
    rng: random.Random,
    spec: AISpec | None = None,
) -> DrawSource:
    spec = spec or AISpec()
    if top_discard is None:
        return "deck"

    value = card_value(top_discard)
    held_suits = suit_totals(hand)
    if top_discard.suit == strongest_suit(hand):
        return "discard"
    if value >= 10 and top_discard.suit in held_suits:
        return "discard"
    # rng is only read for an otherwise-unwanted ace
    if value == 11 and rng.random() > spec.ace_pass_chance:
        return "discard"
    return "deck"


def choose_discard(hand: Sequence[Card]) -> Card:
    """Lowest card outside the strongest suit, else the lowest card overall."""
    if len(hand) != DEAL_SIZE + 1:
        raise ValueError(f"choose_discard needs a {DEAL_SIZE + 1}-card hand, got {len(hand)}.")

    best_suit = strongest_suit(hand)
    worst: Card | None = None
    for card in hand:
        if card.suit == best_suit:
            continue
        if worst is None or card_value(card) < card_value(worst):
            worst = card
    if worst is not None:
        return worst

    # Single-suit hand
    for card in hand:
        if card.suit != best_suit:
            continue
        if worst is None or card_value(card) < card_value(worst):
            worst = card
    if worst is not None:
        return worst
    return min(hand, key=card_value)


def should_knock(
    hand: Sequence[Card],
    opponent_estimated_max: int,
    rng: random.Random,
    spec: AISpec | None = None,
) -> bool:
    spec = spec or AISpec()
    mine = score_hand(hand).max_suit_total
    if mine >= PERFECT_HAND or mine >= spec.sure_knock:
        return True

    knock_threshold = spec.threshold_base + int(rng.random() * spec.threshold_spread)
    if mine >= knock_threshold and mine - opponent_estimated_max > 0:
        return True
    if mine >= spec.gamble_floor:
        return rng.random() > spec.gamble_pass_chance
    return False


def estimate_opponent_max(state: MatchState, player: int) -> int:
    # Reads the other hand directly, like the table opponent always has.
    return score_hand(state.hand(state.opponent(player))).max_suit_total


def ai_take_turn(
    state: MatchState,
    player: int,
    spec: AISpec | None = None,
    apply: Callable[[Action], StepResult] | None = None,
) -> list[Action]:
    """Play one full opponent turn: draw, discard, then knock or end the turn.

    Decisions read ``state.rng`` so a seeded match replays the same turn.
    Every action goes through ``apply`` (``step`` on this state by default);
    the actions that were accepted are returned in order.
    """
    spec = spec or AISpec()
    apply = apply or (lambda a: step(state, a))
    taken: list[Action] = []

    def _do(action: Action) -> bool:
        res = apply(action)
        if res.ok:
            taken.append(action)
        return res.ok

    if state.result is not None or state.current_player != player:
        return taken

    hand = state.hand(player)
    if not state.flags.has_drawn_card:
        source = choose_draw_source(hand, state.top_discard, state.rng, spec)
        if not _do(DrawAction(player=player, source=source)):
            return taken

    hand = state.hand(player)
    if len(hand) == DEAL_SIZE + 1:
        if not _do(DiscardAction(player=player, card=choose_discard(hand))):
            return taken

    estimate = estimate_opponent_max(state, player)
    if should_knock(state.hand(player), estimate, state.rng, spec):
        _do(KnockAction(player=player))
    else:
        _do(EndTurnAction(player=player))
    return taken
