from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .actions import Action, DiscardAction, DrawAction, EndTurnAction, KnockAction, SortHandAction
from .deck import DEAL_SIZE, build_deck, deal_initial, draw_top, shuffle
from .errors import EmptyDeckError, EngineError, GuardViolation, InvalidCardReference
from .scoring import HandScore, compare_hands, score_hand, sort_by_rank, sort_by_suit
from .types import HUMAN, OPPONENT, Card

Event = dict[str, object]


@dataclass
class GameFlags:
    is_player_turn: bool = True
    has_drawn_card: bool = False
    has_discarded_card: bool = False
    must_discard: bool = False
    knock_button_pressed: bool = False
    is_animating: bool = False
    cards_interactable: bool = False
    animation_complete: bool = False


@dataclass
class PlayerState:
    hand: list[Card]


@dataclass(frozen=True)
class RoundResult:
    winner: int | None  # None on a draw
    scores: tuple[HandScore, HandScore]
    knocked_by: int | None = None


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None
    violation: EngineError | None = None


@dataclass
class MatchState:
    seed: int
    rng: random.Random
    deck: list[Card]
    players: list[PlayerState]
    discard: list[Card]
    flags: GameFlags = field(default_factory=GameFlags)
    result: RoundResult | None = None
    action_log: list[Action] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    @property
    def current_player(self) -> int:
        return HUMAN if self.flags.is_player_turn else OPPONENT

    @property
    def top_discard(self) -> Card | None:
        return self.discard[-1] if self.discard else None

    def opponent(self, player: int) -> int:
        return 1 - player

    def hand(self, player: int) -> list[Card]:
        return self.players[player].hand


def _refresh_interactable(state: MatchState) -> None:
    f = state.flags
    f.cards_interactable = f.is_player_turn and not f.knock_button_pressed and not f.is_animating


def _require_player(player: int) -> None:
    if player not in (HUMAN, OPPONENT):
        raise GuardViolation(f"Unknown player {player}.")


def _require_turn(state: MatchState, player: int) -> None:
    if player != state.current_player:
        raise GuardViolation("Not your turn.")


def _require_not_knocked(state: MatchState) -> None:
    if state.flags.knock_button_pressed:
        raise GuardViolation("The round is over.")


def _require_not_animating(state: MatchState) -> None:
    if state.flags.is_animating:
        raise GuardViolation("Wait for the animation to finish.")


# Guards raise and never mutate; the appliers below call them first.


def _guard_draw(state: MatchState, action: DrawAction) -> None:
    _require_player(action.player)
    _require_turn(state, action.player)
    _require_not_knocked(state)
    _require_not_animating(state)
    f = state.flags
    if f.must_discard:
        raise GuardViolation("Discard a card first.")
    if f.has_drawn_card:
        raise GuardViolation("Already drew a card this turn.")
    if action.source == "deck":
        if not state.deck:
            raise EmptyDeckError("The deck is empty.")
    elif action.source == "discard":
        if not state.discard:
            raise GuardViolation("The discard pile is empty.")
    else:
        raise GuardViolation(f"Unknown draw source {action.source!r}.")


def _guard_discard(state: MatchState, action: DiscardAction) -> None:
    _require_player(action.player)
    _require_turn(state, action.player)
    _require_not_knocked(state)
    _require_not_animating(state)
    f = state.flags
    if not f.must_discard:
        raise GuardViolation("Draw a card before discarding.")
    if f.has_discarded_card:
        raise GuardViolation("Already discarded this turn.")
    if action.card not in state.hand(action.player):
        raise InvalidCardReference(f"{action.card.id} is not in your hand.")


def _guard_end_turn(state: MatchState, action: EndTurnAction) -> None:
    _require_player(action.player)
    _require_turn(state, action.player)
    _require_not_knocked(state)
    if len(state.hand(action.player)) != DEAL_SIZE:
        raise GuardViolation("Discard down to three cards before ending the turn.")


def _guard_knock(state: MatchState, action: KnockAction) -> None:
    _require_player(action.player)
    _require_not_knocked(state)
    if action.player == HUMAN:
        _require_turn(state, action.player)
    if len(state.hand(action.player)) != DEAL_SIZE:
        raise GuardViolation("You can't knock with four cards in hand.")


def _guard_sort(state: MatchState, action: SortHandAction) -> None:
    _require_player(action.player)
    _require_not_knocked(state)
    _require_not_animating(state)
    if action.key not in ("rank", "suit"):
        raise GuardViolation(f"Unknown sort key {action.key!r}.")


def _draw(state: MatchState, action: DrawAction) -> list[Event]:
    _guard_draw(state, action)
    if action.source == "deck":
        card, state.deck = draw_top(state.deck)
    else:
        card = state.discard.pop()
    state.hand(action.player).append(card)

    f = state.flags
    f.has_drawn_card = True
    f.has_discarded_card = False
    f.must_discard = True
    ev: Event = {"type": "CARD_DRAWN", "player": action.player, "source": action.source, "card": card.id}
    state.event_log.append(ev)
    return [ev]


def _discard(state: MatchState, action: DiscardAction) -> list[Event]:
    _guard_discard(state, action)
    state.hand(action.player).remove(action.card)
    state.discard.append(action.card)

    f = state.flags
    f.must_discard = False
    f.has_discarded_card = True
    ev: Event = {"type": "CARD_DISCARDED", "player": action.player, "card": action.card.id}
    state.event_log.append(ev)
    return [ev]


def _end_turn(state: MatchState, action: EndTurnAction) -> list[Event]:
    _guard_end_turn(state, action)
    f = state.flags
    f.is_player_turn = not f.is_player_turn
    f.has_drawn_card = False
    f.has_discarded_card = False
    f.must_discard = False
    _refresh_interactable(state)
    events: list[Event] = [
        {"type": "TURN_ENDED", "player": action.player},
        {"type": "TURN_STARTED", "player": state.current_player},
    ]
    state.event_log.extend(events)
    return events


def _knock(state: MatchState, action: KnockAction) -> list[Event]:
    _guard_knock(state, action)
    ev: Event = {"type": "KNOCKED", "player": action.player}
    state.event_log.append(ev)
    return [ev, *finish_round(state, knocked_by=action.player)]


def _sort_hand(state: MatchState, action: SortHandAction) -> list[Event]:
    _guard_sort(state, action)
    ps = state.players[action.player]
    ps.hand = sort_by_rank(ps.hand) if action.key == "rank" else sort_by_suit(ps.hand)
    ev: Event = {"type": "HAND_SORTED", "player": action.player, "key": action.key}
    state.event_log.append(ev)
    return [ev]


def finish_round(state: MatchState, knocked_by: int | None = None) -> list[Event]:
    """Score both hands and lock the round. Terminal; a second call is a no-op."""
    if state.result is not None:
        return []
    scores = (score_hand(state.hand(HUMAN)), score_hand(state.hand(OPPONENT)))
    outcome = compare_hands(*scores)
    winner = {"a": HUMAN, "b": OPPONENT, "draw": None}[outcome]

    state.flags.knock_button_pressed = True
    _refresh_interactable(state)
    state.result = RoundResult(winner=winner, scores=scores, knocked_by=knocked_by)
    ev: Event = {
        "type": "ROUND_SCORED",
        "winner": winner,
        "scores": [s.max_suit_total for s in scores],
    }
    state.event_log.append(ev)
    return [ev]


def step(state: MatchState, action: Action) -> StepResult:
    """Apply a single action to the match state.

    Either the whole transition applies or nothing changes; a failed guard comes
    back as ``ok=False`` with the reason, never as an exception. Only accepted
    actions are logged, so ``replay`` of the log reproduces the state.
    """
    try:
        if isinstance(action, DrawAction):
            events = _draw(state, action)
        elif isinstance(action, DiscardAction):
            events = _discard(state, action)
        elif isinstance(action, EndTurnAction):
            events = _end_turn(state, action)
        elif isinstance(action, KnockAction):
            events = _knock(state, action)
        elif isinstance(action, SortHandAction):
            events = _sort_hand(state, action)
        else:
            raise GuardViolation("Unknown action.")
    except EngineError as e:
        return StepResult(ok=False, events=[], error=str(e), violation=e)

    state.action_log.append(action)
    return StepResult(ok=True, events=events)


def legal_actions(state: MatchState, player: int) -> list[Action]:
    """Every draw/discard/end-turn/knock action the player could take right now."""
    candidates: list[Action] = [
        DrawAction(player=player, source="deck"),
        DrawAction(player=player, source="discard"),
    ]
    if 0 <= player < len(state.players):
        candidates.extend(DiscardAction(player=player, card=c) for c in state.hand(player))
    candidates.append(EndTurnAction(player=player))
    candidates.append(KnockAction(player=player))

    guards = {
        DrawAction: _guard_draw,
        DiscardAction: _guard_discard,
        EndTurnAction: _guard_end_turn,
        KnockAction: _guard_knock,
    }
    legal: list[Action] = []
    for a in candidates:
        try:
            guards[type(a)](state, a)  # type: ignore[operator]
        except EngineError:
            continue
        legal.append(a)
    return legal


def set_animating(state: MatchState, animating: bool) -> None:
    """Presentation gate: while set, draws, discards and sorts are rejected."""
    state.flags.is_animating = animating
    _refresh_interactable(state)


def _validate_full_deck(cards: Sequence[Card]) -> None:
    expected = set(build_deck())
    if len(cards) != len(expected) or set(cards) != expected:
        raise ValueError(f"A stacked deck must hold each of the {len(expected)} cards exactly once.")


def new_match(seed: int, deck: Sequence[Card] | None = None) -> MatchState:
    """Shuffle (or take a stacked deck as-is), deal, and hand the first turn to player 0."""
    rng = random.Random(seed)
    if deck is None:
        cards = build_deck()
        shuffle(cards, rng)
    else:
        cards = list(deck)
        _validate_full_deck(cards)

    dealt = deal_initial(cards)
    state = MatchState(
        seed=seed,
        rng=rng,
        deck=dealt.deck,
        players=[PlayerState(hand=dealt.hands[0]), PlayerState(hand=dealt.hands[1])],
        discard=dealt.discard,
    )
    state.flags.animation_complete = True
    _refresh_interactable(state)
    state.event_log.append(
        {
            "type": "CARDS_DEALT",
            "hands": [[c.id for c in p.hand] for p in state.players],
            "discard": state.discard[-1].id,
        }
    )
    state.event_log.append({"type": "TURN_STARTED", "player": HUMAN})
    return state


def replay(seed: int, actions: Iterable[Action], deck: Sequence[Card] | None = None) -> MatchState:
    state = new_match(seed=seed, deck=deck)
    for a in actions:
        step(state, a)
        if state.result is not None:
            break
    return state
