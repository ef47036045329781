from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from thirtyone.engine.serialize import action_to_dict
from thirtyone.engine.types import HUMAN
from thirtyone.logging_utils import LOG_LEVEL, setup_logging
from thirtyone.paths import get_paths
from thirtyone.services.content import ContentError, ContentService
from thirtyone.session import GameSession, SessionConfig

logger = logging.getLogger(__name__)

# Safety cap; a round normally ends by knock long before this
MAX_TURNS = 200

_SEAT_NAMES = {0: "player", 1: "opponent", None: "draw"}


def simulate_round(session: GameSession, seed: int, max_turns: int = MAX_TURNS) -> dict[str, object]:
    """Play one round with both seats driven by the heuristics."""
    session.start_session(seed=seed)
    turns: list[dict[str, object]] = []
    exhausted = False
    while session.state.result is None and len(turns) < max_turns:
        player = session.state.current_player
        taken = session.run_ai_turn(player)
        turns.append({"player": player, "actions": [action_to_dict(a) for a in taken]})
        if not taken:
            # No legal draw left (deck exhausted); score the hands as they are.
            exhausted = True
            break

    over = session.end_session()
    return {
        "seed": seed,
        "winner": _SEAT_NAMES[over.winner],
        "knocked_by": _SEAT_NAMES[over.knocked_by] if over.knocked_by is not None else None,
        "scores": [s.max_suit_total for s in over.final_scores],
        "hands": [s.display for s in over.final_scores],
        "turns": turns,
        "deck_exhausted": exhausted,
    }


def _cmd_simulate(args: argparse.Namespace, content: ContentService) -> int:
    telemetry: Path | None = None
    if args.telemetry is not None:
        telemetry = Path(args.telemetry) if args.telemetry else get_paths().telemetry_path
    session = GameSession.from_config(SessionConfig(ai_profile=args.profile, telemetry_path=telemetry), content)

    results = [simulate_round(session, seed=args.seed + i) for i in range(args.rounds)]
    if args.json:
        print(json.dumps(results, indent=2, ensure_ascii=False))
        return 0

    wins = {"player": 0, "opponent": 0, "draw": 0}
    for i, r in enumerate(results, start=1):
        wins[str(r["winner"])] += 1
        scores = r["scores"]
        assert isinstance(scores, list)
        print(
            f"round {i} seed={r['seed']} winner={r['winner']} "
            f"score={scores[HUMAN]}-{scores[1 - HUMAN]} knocked_by={r['knocked_by']}"
        )
        if args.trace:
            turns = r["turns"]
            assert isinstance(turns, list)
            for t in turns:
                acts = ", ".join(_describe(a) for a in t["actions"])
                print(f"  {_SEAT_NAMES[t['player']]}: {acts or '(no legal move)'}")
    print(f"totals: player={wins['player']} opponent={wins['opponent']} draw={wins['draw']}")
    return 0


def _describe(a: dict[str, object]) -> str:
    if a["type"] == "draw":
        return f"draw {a['source']}"
    if a["type"] == "discard":
        return f"discard {a['card']}"
    return str(a["type"]).replace("_", " ")


def _cmd_rules(args: argparse.Namespace, content: ContentService) -> int:
    print(content.load_rules().render(), end="")
    return 0


def _cmd_validate(args: argparse.Namespace, content: ContentService) -> int:
    content.validate_all()
    print("content OK")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="thirtyone")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="DEBUG, INFO, WARNING or ERROR")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="play seeded rounds with both seats on autopilot")
    sim.add_argument("--seed", type=int, default=42)
    sim.add_argument("--rounds", type=int, default=1)
    sim.add_argument("--profile", default="normal", help="AI profile from ai_profiles.json")
    sim.add_argument("--trace", action="store_true", help="print every turn")
    sim.add_argument("--json", action="store_true", help="print results as JSON")
    sim.add_argument(
        "--telemetry",
        nargs="?",
        const="",
        default=None,
        help="append session events to this JSONL file (no value: the userdata telemetry.jsonl)",
    )
    sim.set_defaults(func=_cmd_simulate)

    rules = sub.add_parser("rules", help="print the rules")
    rules.set_defaults(func=_cmd_rules)

    validate = sub.add_parser("validate", help="validate the bundled content files")
    validate.set_defaults(func=_cmd_validate)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    paths = get_paths()
    content = ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir)
    try:
        return int(args.func(args, content))
    except ContentError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
