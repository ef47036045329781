from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from thirtyone.engine.actions import (
    Action,
    DiscardAction,
    DrawAction,
    EndTurnAction,
    KnockAction,
    SortHandAction,
)
from thirtyone.engine.ai import AISpec, ai_take_turn
from thirtyone.engine.match import MatchState, StepResult, finish_round, new_match, set_animating, step
from thirtyone.engine.serialize import restore, snapshot
from thirtyone.engine.types import HUMAN, OPPONENT, Card, DrawSource, SortKey, card_from_id
from thirtyone.events import (
    ActionRejected,
    EventBus,
    GameEvent,
    Handler,
    RoundOver,
    StateChanged,
    event_payload,
)
from thirtyone.services.content import ContentService
from thirtyone.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionConfig:
    ai_profile: str = "normal"
    telemetry_path: Path | None = None


class GameSession:
    """Owns one round of Thirty-One and publishes every change on an event bus.

    All requests are applied synchronously under a re-entrant lock, so a
    subscriber may call back into the session from its handler.
    """

    def __init__(self, ai_spec: AISpec | None = None, bus: EventBus | None = None) -> None:
        self.ai_spec = ai_spec or AISpec()
        self.bus = bus or EventBus()
        self._state: MatchState | None = None
        self._round_over_sent = False
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: SessionConfig, content: ContentService) -> "GameSession":
        session = cls(ai_spec=content.load_ai_profile(config.ai_profile))
        if config.telemetry_path is not None:
            session.attach_telemetry(TelemetryService(config.telemetry_path))
        return session

    @property
    def state(self) -> MatchState:
        if self._state is None:
            raise RuntimeError("No session in progress; call start_session() first.")
        return self._state

    @property
    def started(self) -> bool:
        return self._state is not None

    def subscribe(self, kind: GameEvent | None, handler: Handler) -> Callable[[], None]:
        return self.bus.subscribe(kind, handler)

    def attach_telemetry(self, telemetry: TelemetryService) -> Callable[[], None]:
        return self.bus.subscribe(None, lambda ev: telemetry.log(ev.kind.name, event_payload(ev)))

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            return snapshot(self.state)

    # -- lifecycle ---------------------------------------------------------

    def start_session(self, seed: int | None = None, deck: Sequence[Card] | None = None) -> dict[str, object]:
        """Shuffle (seeded if given), deal, and give player 0 the first turn."""
        if seed is None:
            seed = secrets.randbelow(2**31)
        with self._lock:
            self._state = new_match(seed=seed, deck=deck)
            self._round_over_sent = False
            logger.info("Session started (seed=%d)", seed)
            snap = snapshot(self._state)
            self.bus.publish(StateChanged(snapshot=snap))
            return snap

    def load_snapshot(self, snap: dict[str, object], content: ContentService | None = None) -> dict[str, object]:
        """Resume from a stored snapshot, validating it against the snapshot schema first."""
        if content is not None:
            content.validate_snapshot(snap)
        with self._lock:
            self._state = restore(snap)
            self._round_over_sent = self._state.result is not None
            out = snapshot(self._state)
            self.bus.publish(StateChanged(snapshot=out))
            return out

    def end_session(self) -> RoundOver:
        """Score both hands and finish the round. ``RoundOver`` is emitted only once."""
        with self._lock:
            state = self.state
            if finish_round(state):
                self.bus.publish(StateChanged(snapshot=snapshot(state)))
            return self._emit_round_over()

    # -- actions -----------------------------------------------------------

    def _reject(self, action: Action | None, reason: str, request: str) -> None:
        logger.info("Rejected %s: %s", request or action, reason)
        self.bus.publish(ActionRejected(action=action, reason=reason, request=request))

    def _apply_step(self, action: Action, request: str = "", on: MatchState | None = None) -> StepResult:
        state = self.state
        if on is not None and on is not state:
            # a subscriber restarted or reloaded the round mid-turn
            logger.debug("Dropped %s: the round it was chosen for has ended", action)
            return StepResult(ok=False, events=[], error="The round was replaced.")
        res = step(state, action)
        if not res.ok:
            self._reject(action, res.error or "Rejected.", request)
            return res

        logger.debug("Applied %s", action)
        self.bus.publish(StateChanged(snapshot=snapshot(state)))
        if state.result is not None and self._state is state:
            self._emit_round_over()
        return res

    def apply_player_action(self, action: Action, request: str = "") -> dict[str, object] | None:
        """Route an action through the rules engine.

        Returns a fresh snapshot when the action was accepted. A rejected
        action changes nothing, emits ``ActionRejected`` and returns None.
        """
        with self._lock:
            if self._state is None:
                self._reject(action, "No session in progress.", request)
                return None
            res = self._apply_step(action, request)
            return snapshot(self._state) if res.ok else None

    def run_opponent_turn(self) -> list[Action]:
        """Play the opponent's whole turn at once; pacing is the renderer's business."""
        return self.run_ai_turn(OPPONENT)

    def run_ai_turn(self, player: int) -> list[Action]:
        """Let the heuristics play ``player``'s turn. Returns the accepted actions."""
        with self._lock:
            state = self.state
            if state.result is not None or state.current_player != player:
                self._reject(None, f"It is not player {player}'s turn.", "run_ai_turn")
                return []
            taken = ai_take_turn(
                state,
                player,
                spec=self.ai_spec,
                apply=lambda a: self._apply_step(a, "run_ai_turn", on=state),
            )
            logger.debug("AI turn for player %d: %s", player, taken)
            return taken

    def set_animating(self, animating: bool) -> None:
        with self._lock:
            set_animating(self.state, animating)
            self.bus.publish(StateChanged(snapshot=snapshot(self.state)))

    def _emit_round_over(self) -> RoundOver:
        result = self.state.result
        assert result is not None
        event = RoundOver(winner=result.winner, final_scores=result.scores, knocked_by=result.knocked_by)
        if not self._round_over_sent:
            self._round_over_sent = True
            logger.info(
                "Round over: winner=%s scores=%d-%d",
                result.winner,
                result.scores[HUMAN].max_suit_total,
                result.scores[OPPONENT].max_suit_total,
            )
            self.bus.publish(event)
        return event

    # -- inbound requests from the presentation layer ------------------------

    def draw_requested(self, source: DrawSource) -> dict[str, object] | None:
        return self.apply_player_action(DrawAction(player=HUMAN, source=source), request="draw")

    def discard_requested(self, card_id: str) -> dict[str, object] | None:
        try:
            card = card_from_id(card_id)
        except ValueError:
            with self._lock:
                self._reject(None, f"Unknown card {card_id!r}.", "discard")
            return None
        return self.apply_player_action(DiscardAction(player=HUMAN, card=card), request="discard")

    def knock_requested(self) -> dict[str, object] | None:
        return self.apply_player_action(KnockAction(player=HUMAN), request="knock")

    def end_turn_requested(self) -> dict[str, object] | None:
        return self.apply_player_action(EndTurnAction(player=HUMAN), request="end_turn")

    def sort_requested(self, key: SortKey) -> dict[str, object] | None:
        return self.apply_player_action(SortHandAction(player=HUMAN, key=key), request="sort")

    def restart_requested(self, seed: int | None = None) -> dict[str, object]:
        return self.start_session(seed=seed)
