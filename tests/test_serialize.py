from __future__ import annotations

import json

import pytest

from thirtyone.engine.actions import DiscardAction, DrawAction, EndTurnAction, KnockAction, SortHandAction
from thirtyone.engine.ai import ai_take_turn
from thirtyone.engine.match import new_match, step
from thirtyone.engine.serialize import SnapshotError, action_from_dict, action_to_dict, restore, snapshot
from thirtyone.engine.types import HUMAN, OPPONENT, card_from_id
from thirtyone.paths import get_paths
from thirtyone.services.content import ContentError, ContentService


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


def _round_trip(snap: dict[str, object]) -> dict[str, object]:
    return snapshot(restore(json.loads(json.dumps(snap))))


def test_snapshot_round_trip_mid_turn(invariants) -> None:
    state = new_match(seed=7)
    step(state, SortHandAction(player=HUMAN, key="suit"))
    step(state, DrawAction(player=HUMAN, source="deck"))

    snap = snapshot(state)
    assert snap["flags"]["must_discard"] is True  # type: ignore[index]
    assert _round_trip(snap) == snap

    restored = restore(snap)
    invariants(restored)
    res = step(restored, DiscardAction(player=HUMAN, card=restored.hand(HUMAN)[0]))
    assert res.ok


def test_snapshot_round_trip_after_knock() -> None:
    state = new_match(seed=7)
    step(state, KnockAction(player=OPPONENT))
    snap = snapshot(state)
    assert snap["result"] is not None
    assert _round_trip(snap) == snap
    assert restore(snap).result == state.result


def test_snapshot_carries_the_renderer_summary() -> None:
    state = new_match(seed=3)
    snap = snapshot(state)
    assert snap["seed"] == 3
    assert snap["deck_count"] == 45 == len(snap["deck"])  # type: ignore[arg-type]
    assert snap["discard_top"] == state.discard[-1].id
    assert snap["hands"] == [[c.id for c in state.hand(p)] for p in (HUMAN, OPPONENT)]


def test_restore_rejects_duplicate_cards() -> None:
    snap = snapshot(new_match(seed=7))
    deck = list(snap["deck"])  # type: ignore[call-overload]
    deck[0] = deck[1]
    snap["deck"] = deck
    with pytest.raises(SnapshotError):
        restore(snap)


def test_restore_rejects_bad_flags() -> None:
    snap = snapshot(new_match(seed=7))
    snap["flags"] = {"is_player_turn": True}
    with pytest.raises(SnapshotError):
        restore(snap)


def test_action_dicts() -> None:
    for action in (
        DrawAction(player=HUMAN, source="discard"),
        DiscardAction(player=OPPONENT, card=card_from_id("10C")),
        KnockAction(player=OPPONENT),
        SortHandAction(player=HUMAN, key="rank"),
    ):
        assert action_from_dict(action_to_dict(action)) == action

    with pytest.raises(SnapshotError):
        action_from_dict({"type": "shuffle", "player": 0})
    with pytest.raises(SnapshotError):
        action_from_dict({"type": "discard", "player": 0, "card": "1Z"})


def test_snapshot_matches_schema() -> None:
    content = _content()
    state = new_match(seed=11)
    content.validate_snapshot(snapshot(state))
    step(state, DrawAction(player=HUMAN, source="deck"))
    content.validate_snapshot(snapshot(state))


def test_schema_rejects_malformed_snapshot() -> None:
    snap = snapshot(new_match(seed=11))
    snap["hands"] = [["2C", "2C", "XX"], []]
    with pytest.raises(ContentError):
        _content().validate_snapshot(snap)


def _mid_turn_snapshot() -> dict[str, object]:
    # human has drawn and owes a discard
    state = new_match(seed=7)
    step(state, DrawAction(player=HUMAN, source="deck"))
    return json.loads(json.dumps(snapshot(state)))


def _unset_must_discard(snap) -> None:
    snap["flags"]["must_discard"] = False


def _wrong_current_player(snap) -> None:
    snap["current_player"] = OPPONENT


def _must_discard_without_draw(snap) -> None:
    snap["flags"]["has_drawn_card"] = False


def _must_discard_after_discard(snap) -> None:
    snap["flags"]["has_discarded_card"] = True


def _stale_discard_top(snap) -> None:
    snap["discard_top"] = snap["deck"][0]


def _stale_deck_count(snap) -> None:
    snap["deck_count"] -= 1


def _four_cards_out_of_turn(snap) -> None:
    # the human still holds the turn
    snap["hands"][OPPONENT].append(snap["hands"][HUMAN].pop())


def _malformed_action_log(snap) -> None:
    snap["action_log"].append("draw")


def _missing_rng_state(snap) -> None:
    del snap["rng_state"]


def _truncated_rng_state(snap) -> None:
    snap["rng_state"][1] = snap["rng_state"][1][:10]


@pytest.mark.parametrize(
    "corrupt",
    [
        _unset_must_discard,
        _wrong_current_player,
        _must_discard_without_draw,
        _must_discard_after_discard,
        _stale_discard_top,
        _stale_deck_count,
        _four_cards_out_of_turn,
        _malformed_action_log,
        _missing_rng_state,
        _truncated_rng_state,
    ],
)
def test_restore_rejects_inconsistent_snapshot(corrupt) -> None:
    snap = _mid_turn_snapshot()
    restore(snap)
    corrupt(snap)
    with pytest.raises(SnapshotError):
        restore(snap)


def test_restore_rejects_scored_round_without_knock() -> None:
    state = new_match(seed=7)
    step(state, KnockAction(player=HUMAN))
    snap = snapshot(state)
    snap["flags"]["knock_button_pressed"] = False  # type: ignore[index]
    with pytest.raises(SnapshotError):
        restore(snap)


def test_restored_match_plays_the_same_opponent_turn() -> None:
    for seed in range(120):
        live = new_match(seed=seed)
        step(live, EndTurnAction(player=HUMAN))
        # move the generator past its seeded start
        live.rng.random()
        resumed = restore(json.loads(json.dumps(snapshot(live))))

        assert ai_take_turn(resumed, OPPONENT) == ai_take_turn(live, OPPONENT), seed
        assert snapshot(resumed) == snapshot(live), seed
