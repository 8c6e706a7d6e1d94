from __future__ import annotations

import json
from pathlib import Path

from memorylane.engine.serialize import SnapshotError, snapshot, state_from_snapshot
from memorylane.engine.types import GameState
from memorylane.services.content import ContentError, ContentService, validate_json


class SaveError(RuntimeError):
    pass


class SaveService:
    """Stores one game snapshot as JSON, validated against the game_state schema."""

    def __init__(self, path: Path, content: ContentService) -> None:
        self._path = path
        self._content = content

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def save(self, state: GameState) -> None:
        raw = snapshot(state)
        try:
            validate_json(raw, self._content.load_schema("game_state"), context="game snapshot")
        except ContentError as e:
            raise SaveError(str(e)) from e
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(raw, indent=2), encoding="utf-8")

    def load(self) -> GameState:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise SaveError(f"No saved game at {self._path}") from e
        except json.JSONDecodeError as e:
            raise SaveError(f"Invalid JSON in {self._path}: {e}") from e
        try:
            validate_json(raw, self._content.load_schema("game_state"), context=str(self._path))
            return state_from_snapshot(raw)
        except (ContentError, SnapshotError) as e:
            raise SaveError(str(e)) from e

    def delete(self) -> None:
        if self._path.exists():
            self._path.unlink()
