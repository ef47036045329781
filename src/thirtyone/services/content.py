from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from thirtyone.engine.ai import AISpec

logger = logging.getLogger(__name__)


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def _load_schema(path: Path) -> object:
    return _load_json(path)


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _require_float(obj: Mapping[str, object], key: str) -> float:
    v = obj.get(key)
    if not isinstance(v, (int, float)):
        raise ContentError(f"Expected number for {key}")
    return float(v)


def _require_str_list(obj: Mapping[str, object], key: str) -> tuple[str, ...]:
    v = obj.get(key)
    if not isinstance(v, list) or not all(isinstance(x, str) for x in v):
        raise ContentError(f"Expected list of strings for {key}")
    return tuple(v)


@dataclass(frozen=True)
class RulesSection:
    title: str
    lines: tuple[str, ...]


@dataclass(frozen=True)
class RulesText:
    title: str
    sections: tuple[RulesSection, ...]

    def render(self) -> str:
        out = [self.title, ""]
        for s in self.sections:
            out.append(s.title)
            out.extend(f"  {line}" for line in s.lines)
            out.append("")
        return "\n".join(out).rstrip() + "\n"


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def _load_validated(self, name: str) -> dict[str, object]:
        path = self._data_dir / f"{name}.json"
        schema = _load_schema(self._schema_dir / f"{name}.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError(f"{name}.json must be an object")
        return raw

    def load_ai_profiles(self) -> dict[str, AISpec]:
        raw = self._load_validated("ai_profiles")
        raw_profiles = raw.get("profiles")
        if not isinstance(raw_profiles, dict):
            raise ContentError("ai_profiles.json.profiles must be an object")

        profiles: dict[str, AISpec] = {}
        for name, p in raw_profiles.items():
            if not isinstance(p, dict):
                continue
            profiles[name] = AISpec(
                name=name,
                ace_pass_chance=_require_float(p, "ace_pass_chance"),
                sure_knock=_require_int(p, "sure_knock"),
                threshold_base=_require_int(p, "threshold_base"),
                threshold_spread=_require_int(p, "threshold_spread"),
                gamble_floor=_require_int(p, "gamble_floor"),
                gamble_pass_chance=_require_float(p, "gamble_pass_chance"),
            )
        logger.debug("Loaded %d AI profiles", len(profiles))
        return profiles

    def load_ai_profile(self, name: str) -> AISpec:
        profiles = self.load_ai_profiles()
        if name not in profiles:
            known = ", ".join(sorted(profiles))
            raise ContentError(f"Unknown AI profile {name!r} (known: {known})")
        return profiles[name]

    def load_rules(self) -> RulesText:
        raw = self._load_validated("rules")
        raw_sections = raw.get("sections")
        if not isinstance(raw_sections, list):
            raise ContentError("rules.json.sections must be a list")
        sections: list[RulesSection] = []
        for s in raw_sections:
            if not isinstance(s, dict):
                continue
            sections.append(RulesSection(title=_require_str(s, "title"), lines=_require_str_list(s, "lines")))
        return RulesText(title=_require_str(raw, "title"), sections=tuple(sections))

    def validate_snapshot(self, snap: Mapping[str, object]) -> None:
        schema = _load_schema(self._schema_dir / "snapshot.schema.json")
        validate_json(dict(snap), schema, context="snapshot")

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_ai_profiles()
        _ = self.load_rules()
        _ = _load_schema(self._schema_dir / "snapshot.schema.json")
