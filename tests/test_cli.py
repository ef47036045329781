from __future__ import annotations

import json

from thirtyone.cli import main, simulate_round
from thirtyone.session import GameSession


def test_simulate_round_is_reproducible() -> None:
    a = simulate_round(GameSession(), seed=42)
    b = simulate_round(GameSession(), seed=42)
    assert a == b
    assert a["winner"] in ("player", "opponent", "draw")
    assert len(a["scores"]) == 2  # type: ignore[arg-type]
    assert a["turns"]


def test_simulate_prints_a_summary(capsys) -> None:
    assert main(["simulate", "--seed", "42", "--rounds", "2", "--trace"]) == 0
    out = capsys.readouterr().out
    assert "round 1 seed=42" in out
    assert "round 2 seed=43" in out
    assert "  player: draw " in out
    assert out.strip().splitlines()[-1].startswith("totals: ")


def test_simulate_json(capsys, tmp_path) -> None:
    telemetry = tmp_path / "t.jsonl"
    code = main(["simulate", "--seed", "7", "--json", "--profile", "reckless", "--telemetry", str(telemetry)])
    assert code == 0
    [result] = json.loads(capsys.readouterr().out)
    assert result["seed"] == 7
    assert set(result) == {"seed", "winner", "knocked_by", "scores", "hands", "turns", "deck_exhausted"}
    assert telemetry.exists()


def test_rules_command(capsys) -> None:
    assert main(["rules"]) == 0
    assert capsys.readouterr().out.startswith("Thirty-One\n")


def test_validate_command(capsys) -> None:
    assert main(["validate"]) == 0
    assert capsys.readouterr().out == "content OK\n"


def test_unknown_profile_exits_2() -> None:
    assert main(["simulate", "--profile", "psychic"]) == 2


def test_simulate_telemetry_default_location(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("THIRTYONE_USERDATA", str(tmp_path))
    assert main(["simulate", "--seed", "1", "--telemetry"]) == 0
    assert (tmp_path / "telemetry.jsonl").exists()
