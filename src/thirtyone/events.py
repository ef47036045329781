"""
Session event definitions and the publish/subscribe channel.

The session publishes one event after every accepted or rejected request;
renderers subscribe and own all pacing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, ClassVar

from thirtyone.engine.actions import Action
from thirtyone.engine.scoring import HandScore
from thirtyone.engine.serialize import action_to_dict

logger = logging.getLogger(__name__)


class GameEvent(Enum):
    """Events a session can emit."""

    STATE_CHANGED = auto()
    ACTION_REJECTED = auto()
    ROUND_OVER = auto()


@dataclass(frozen=True)
class StateChanged:
    kind: ClassVar[GameEvent] = GameEvent.STATE_CHANGED
    snapshot: dict[str, object]


@dataclass(frozen=True)
class ActionRejected:
    kind: ClassVar[GameEvent] = GameEvent.ACTION_REJECTED
    action: Action | None
    reason: str
    request: str = ""


@dataclass(frozen=True)
class RoundOver:
    kind: ClassVar[GameEvent] = GameEvent.ROUND_OVER
    winner: int | None
    final_scores: tuple[HandScore, HandScore]
    knocked_by: int | None = None


SessionEvent = StateChanged | ActionRejected | RoundOver
Handler = Callable[[SessionEvent], None]


def event_payload(event: SessionEvent) -> dict[str, object]:
    """JSON-friendly view of an event, used by telemetry."""
    if isinstance(event, StateChanged):
        # the generator state is 625 words and only matters for resuming
        return {"snapshot": {k: v for k, v in event.snapshot.items() if k != "rng_state"}}
    if isinstance(event, ActionRejected):
        return {
            "action": action_to_dict(event.action) if event.action is not None else None,
            "request": event.request,
            "reason": event.reason,
        }
    return {
        "winner": event.winner,
        "knocked_by": event.knocked_by,
        "scores": [s.to_dict() for s in event.final_scores],
    }


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[GameEvent | None, list[Handler]] = {}

    def subscribe(self, kind: GameEvent | None, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for one event kind, or for every event when ``kind`` is None.

        Returns a callable that removes the subscription.
        """
        self._handlers.setdefault(kind, []).append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: SessionEvent) -> None:
        handlers = [*self._handlers.get(event.kind, []), *self._handlers.get(None, [])]
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # subscriber errors never reach the engine
                logger.exception("Error in %s handler %r", event.kind.name, handler)
