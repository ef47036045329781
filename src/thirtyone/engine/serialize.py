from __future__ import annotations

import random
from dataclasses import asdict, fields
from typing import Mapping

from .actions import Action, DiscardAction, DrawAction, EndTurnAction, KnockAction, SortHandAction
from .deck import DEAL_SIZE
from .match import GameFlags, MatchState, PlayerState, RoundResult
from .scoring import HandScore
from .types import HUMAN, OPPONENT, Card, card_from_id


class SnapshotError(ValueError):
    pass


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, DrawAction):
        return {"type": "draw", "player": a.player, "source": a.source}
    if isinstance(a, DiscardAction):
        return {"type": "discard", "player": a.player, "card": a.card.id}
    if isinstance(a, EndTurnAction):
        return {"type": "end_turn", "player": a.player}
    if isinstance(a, KnockAction):
        return {"type": "knock", "player": a.player}
    if isinstance(a, SortHandAction):
        return {"type": "sort", "player": a.player, "key": a.key}
    # should be unreachable
    return {"type": "unknown"}


def action_from_dict(d: Mapping[str, object]) -> Action:
    t = d.get("type")
    player = d.get("player")
    if not isinstance(player, int):
        raise SnapshotError(f"Action without a player: {dict(d)}")
    if t == "draw":
        return DrawAction(player=player, source=str(d.get("source")))  # type: ignore[arg-type]
    if t == "discard":
        return DiscardAction(player=player, card=_card(d.get("card")))
    if t == "end_turn":
        return EndTurnAction(player=player)
    if t == "knock":
        return KnockAction(player=player)
    if t == "sort":
        return SortHandAction(player=player, key=str(d.get("key")))  # type: ignore[arg-type]
    raise SnapshotError(f"Unknown action type: {t}")


def _card(raw: object) -> Card:
    if not isinstance(raw, str):
        raise SnapshotError(f"Expected a card id, got {raw!r}")
    try:
        return card_from_id(raw)
    except ValueError as e:
        raise SnapshotError(str(e)) from e


def _cards(raw: object) -> list[Card]:
    if not isinstance(raw, list):
        raise SnapshotError("Expected a list of card ids")
    return [_card(c) for c in raw]


def _result_to_dict(r: RoundResult | None) -> dict[str, object] | None:
    if r is None:
        return None
    return {
        "winner": r.winner,
        "knocked_by": r.knocked_by,
        "scores": [s.to_dict() for s in r.scores],
    }


def _score_from_dict(d: object) -> HandScore:
    if not isinstance(d, dict):
        raise SnapshotError("Invalid score entry")
    by_suit = d.get("by_suit")
    total = d.get("max_suit_total")
    display = d.get("display")
    if not isinstance(by_suit, dict) or not isinstance(total, int) or not isinstance(display, str):
        raise SnapshotError("Invalid score entry")
    return HandScore(by_suit=dict(by_suit), max_suit_total=total, display=display)


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state.

    Besides the full card order and the rng position it carries the summary a
    renderer needs: both hands, the discard top and the deck count.
    """
    top = state.top_discard
    return {
        "seed": state.seed,
        "rng_state": _rng_state_to_list(state.rng),
        "current_player": state.current_player,
        "flags": asdict(state.flags),
        "hands": [[c.id for c in p.hand] for p in state.players],
        "discard_top": top.id if top is not None else None,
        "deck_count": len(state.deck),
        "deck": [c.id for c in state.deck],
        "discard": [c.id for c in state.discard],
        "result": _result_to_dict(state.result),
        "action_log": [action_to_dict(a) for a in state.action_log],
    }


def _rng_state_to_list(rng: random.Random) -> list[object]:
    version, internal, gauss_next = rng.getstate()
    return [version, list(internal), gauss_next]


def _rng_from_snapshot(raw: object) -> random.Random:
    if not isinstance(raw, list) or len(raw) != 3 or not isinstance(raw[1], list):
        raise SnapshotError("rng_state must be [version, internal state, gauss_next]")
    rng = random.Random()
    try:
        rng.setstate((raw[0], tuple(raw[1]), raw[2]))
    except (TypeError, ValueError, OverflowError) as e:
        raise SnapshotError(f"Invalid rng_state: {e}") from e
    return rng


def _check_consistency(
    snap: Mapping[str, object],
    flags: GameFlags,
    hands: list[list[Card]],
    deck: list[Card],
    discard: list[Card],
    result: RoundResult | None,
) -> None:
    holder = HUMAN if flags.is_player_turn else OPPONENT
    if snap.get("current_player") != holder:
        raise SnapshotError("current_player does not match is_player_turn")

    for player, hand in enumerate(hands):
        if len(hand) not in (DEAL_SIZE, DEAL_SIZE + 1):
            raise SnapshotError(f"Hand {player} holds {len(hand)} cards")
        if len(hand) == DEAL_SIZE + 1 and player != holder:
            raise SnapshotError(f"Hand {player} holds four cards out of turn")
    if (len(hands[holder]) == DEAL_SIZE + 1) != flags.must_discard:
        raise SnapshotError("must_discard does not match the turn holder's hand size")
    if flags.must_discard and (not flags.has_drawn_card or flags.has_discarded_card):
        raise SnapshotError("must_discard needs a draw and no discard this turn")
    if result is not None and not flags.knock_button_pressed:
        raise SnapshotError("A scored round must have knock_button_pressed set")

    top = discard[-1].id if discard else None
    if snap.get("discard_top") != top:
        raise SnapshotError("discard_top does not match the discard pile")
    if snap.get("deck_count") != len(deck):
        raise SnapshotError("deck_count does not match the deck")


def restore(snap: Mapping[str, object]) -> MatchState:
    """Rebuild a match from ``snapshot`` output.

    The rng continues from the stored generator state, so a resumed match
    makes the same opponent decisions as the uninterrupted one. The summary
    fields (``current_player``, ``discard_top``, ``deck_count``) must agree
    with the flags and card lists.
    """
    seed = snap.get("seed")
    if not isinstance(seed, int):
        raise SnapshotError("Snapshot seed must be an int")
    rng = _rng_from_snapshot(snap.get("rng_state"))

    raw_flags = snap.get("flags")
    if not isinstance(raw_flags, dict):
        raise SnapshotError("Snapshot flags must be an object")
    known = {f.name for f in fields(GameFlags)}
    if set(raw_flags) != known or not all(isinstance(v, bool) for v in raw_flags.values()):
        raise SnapshotError("Snapshot flags do not match the game flags")
    flags = GameFlags(**raw_flags)

    raw_hands = snap.get("hands")
    if not isinstance(raw_hands, list) or len(raw_hands) != 2:
        raise SnapshotError("Snapshot must hold exactly two hands")

    raw_result = snap.get("result")
    result: RoundResult | None = None
    if raw_result is not None:
        if not isinstance(raw_result, dict):
            raise SnapshotError("Invalid round result")
        scores = raw_result.get("scores")
        if not isinstance(scores, list) or len(scores) != 2:
            raise SnapshotError("Round result must hold two scores")
        winner = raw_result.get("winner")
        knocked_by = raw_result.get("knocked_by")
        result = RoundResult(
            winner=winner if isinstance(winner, int) else None,
            scores=(_score_from_dict(scores[0]), _score_from_dict(scores[1])),
            knocked_by=knocked_by if isinstance(knocked_by, int) else None,
        )

    raw_log = snap.get("action_log", [])
    if not isinstance(raw_log, list):
        raise SnapshotError("action_log must be a list")
    action_log: list[Action] = []
    for entry in raw_log:
        if not isinstance(entry, dict):
            raise SnapshotError(f"Invalid action_log entry: {entry!r}")
        action_log.append(action_from_dict(entry))

    deck = _cards(snap.get("deck"))
    hands = [_cards(h) for h in raw_hands]
    discard = _cards(snap.get("discard"))
    every_card = deck + hands[0] + hands[1] + discard
    if len(every_card) != 52 or len(set(every_card)) != 52:
        raise SnapshotError("Snapshot cards do not form a full 52-card deck")
    _check_consistency(snap, flags, hands, deck, discard, result)

    return MatchState(
        seed=seed,
        rng=rng,
        deck=deck,
        players=[PlayerState(hand=h) for h in hands],
        discard=discard,
        flags=flags,
        result=result,
        action_log=action_log,
    )
