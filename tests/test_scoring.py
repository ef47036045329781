from __future__ import annotations

from thirtyone.engine.scoring import (
    HandScore,
    compare_hands,
    score_hand,
    sort_by_rank,
    sort_by_suit,
    strongest_suit,
)


def test_score_hand_sums_per_suit(hand) -> None:
    score = score_hand(hand("10H", "JH", "5C"))
    assert score.by_suit == {"Hearts": 20, "Clubs": 5}
    assert score.max_suit_total == 20
    assert score.display == "20♥ 5♣"


def test_score_hand_keeps_first_seen_suit_order(hand) -> None:
    score = score_hand(hand("2S", "AD", "3S"))
    assert list(score.by_suit) == ["Spades", "Diamonds"]
    assert score.display == "5♠ 11♦"
    assert score.max_suit_total == 11


def test_empty_hand_scores_zero() -> None:
    score = score_hand([])
    assert score.by_suit == {}
    assert score.max_suit_total == 0
    assert score.display == ""


def test_thirty_one(hand) -> None:
    score = score_hand(hand("AS", "KS", "QS"))
    assert score.by_suit == {"Spades": 31}
    assert score.max_suit_total == 31


def test_compare_hands() -> None:
    a = HandScore(by_suit={"Hearts": 21}, max_suit_total=21, display="21♥")
    b = HandScore(by_suit={"Clubs": 19}, max_suit_total=19, display="19♣")
    assert compare_hands(a, b) == "a"
    assert compare_hands(b, a) == "b"
    assert compare_hands(a, a) == "draw"


def test_strongest_suit_ties_go_to_first_seen(hand) -> None:
    assert strongest_suit(hand("5S", "5H")) == "Spades"
    assert strongest_suit(hand("2S", "9S", "7H", "AH")) == "Hearts"
    assert strongest_suit([]) is None


def test_sorting(hand) -> None:
    cards = hand("AS", "2H", "KD", "10C", "5H")
    assert [c.id for c in sort_by_rank(cards)] == ["2H", "5H", "KD", "10C", "AS"]
    assert [c.id for c in sort_by_suit(cards)] == ["2H", "5H", "KD", "10C", "AS"]

    mixed = hand("3C", "AH", "9S", "4D")
    assert [c.id for c in sort_by_suit(mixed)] == ["AH", "4D", "3C", "9S"]
    assert [c.id for c in sort_by_rank(mixed)] == ["3C", "4D", "9S", "AH"]
