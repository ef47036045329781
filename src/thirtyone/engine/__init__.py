"""Deterministic, headless rules engine for Thirty-One.

IMPORTANT: This package must never import a rendering or UI library.
"""

from .actions import DiscardAction, DrawAction, EndTurnAction, KnockAction, SortHandAction
from .errors import EmptyDeckError, EngineError, GuardViolation, InvalidCardReference
from .match import GameFlags, MatchState, StepResult, new_match, step
from .types import HUMAN, OPPONENT, Card, Rank, Suit

__all__ = [
    "Card",
    "DiscardAction",
    "DrawAction",
    "EmptyDeckError",
    "EndTurnAction",
    "EngineError",
    "GameFlags",
    "GuardViolation",
    "HUMAN",
    "InvalidCardReference",
    "KnockAction",
    "MatchState",
    "OPPONENT",
    "Rank",
    "SortHandAction",
    "StepResult",
    "Suit",
    "new_match",
    "step",
]
