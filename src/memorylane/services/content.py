from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from memorylane.engine.types import GameConfig


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.absolute_path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_schema(self, name: str) -> object:
        return _load_json(self._schema_dir / f"{name}.schema.json")

    def load_config(self, path: Path | None = None) -> GameConfig:
        rules_path = path or self._data_dir / "rules.json"
        raw = _load_json(rules_path)
        validate_json(raw, self.load_schema("rules"), context=str(rules_path))
        if not isinstance(raw, dict):
            raise ContentError("rules.json must be an object")

        goal_range = raw.get("goal_range")
        if not isinstance(goal_range, dict):
            raise ContentError("rules.json.goal_range must be an object")
        goal_min = _require_int(goal_range, "min")
        goal_max = _require_int(goal_range, "max")
        if goal_min > goal_max:
            raise ContentError(f"goal_range.min ({goal_min}) exceeds goal_range.max ({goal_max})")

        return GameConfig(
            narrative_slots=_require_int(raw, "narrative_slots"),
            row_width=_require_int(raw, "row_width"),
            joker_count=_require_int(raw, "joker_count"),
            goal_min=goal_min,
            goal_max=goal_max,
        )

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_config()
        _ = self.load_schema("game_state")
