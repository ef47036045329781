from __future__ import annotations

from dataclasses import dataclass

from .types import Card, DrawSource, SortKey


@dataclass(frozen=True)
class DrawAction:
    player: int
    source: DrawSource


@dataclass(frozen=True)
class DiscardAction:
    player: int
    card: Card


@dataclass(frozen=True)
class EndTurnAction:
    player: int


@dataclass(frozen=True)
class KnockAction:
    player: int


@dataclass(frozen=True)
class SortHandAction:
    player: int
    key: SortKey


Action = DrawAction | DiscardAction | EndTurnAction | KnockAction | SortHandAction
