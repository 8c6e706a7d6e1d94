from __future__ import annotations

import time
import uuid
from typing import Callable

from memorylane.engine.actions import Action, CancelPending, Destination, PlayCardAction, PowerChoice
from memorylane.engine.game import StepResult, apply_move, resolve_power, setup_game, step
from memorylane.engine.serialize import action_to_dict
from memorylane.engine.types import GameConfig, GameState, PlaySlot
from memorylane.engine.views import elapsed_seconds, format_elapsed
from memorylane.services.saves import SaveService
from memorylane.services.telemetry import TelemetryService


class GameSession:
    """In-process facade a presentation layer drives.

    Holds the current immutable GameState, forwards player input to the
    engine and records what happened to telemetry. When a SaveService is
    given the state is written after every accepted transition.
    """

    def __init__(
        self,
        state: GameState,
        telemetry: TelemetryService | None = None,
        saves: SaveService | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.state = state
        self._telemetry = telemetry
        self._saves = saves
        self._clock = clock

    @staticmethod
    def new(
        seed: int | None = None,
        config: GameConfig | None = None,
        telemetry: TelemetryService | None = None,
        saves: SaveService | None = None,
        clock: Callable[[], float] = time.time,
    ) -> "GameSession":
        state = setup_game(seed=seed, config=config, now=clock())
        if telemetry is not None and not telemetry.session_id:
            telemetry.session_id = uuid.uuid4().hex
        session = GameSession(state, telemetry=telemetry, saves=saves, clock=clock)
        session._log("GAME_STARTED", {"seed": state.seed, "goals": {g.suit: g.count for g in state.goals}})
        session._autosave()
        return session

    @staticmethod
    def resume(
        saves: SaveService,
        telemetry: TelemetryService | None = None,
        clock: Callable[[], float] = time.time,
    ) -> "GameSession":
        session = GameSession(saves.load(), telemetry=telemetry, saves=saves, clock=clock)
        session._log("GAME_RESUMED", {"seed": session.state.seed, "moves": len(session.state.history)})
        return session

    def _log(self, event_type: str, payload: dict[str, object]) -> None:
        if self._telemetry is not None:
            self._telemetry.log(event_type, payload)

    def _autosave(self) -> None:
        if self._saves is not None:
            self._saves.save(self.state)

    def _record(self, action: Action, result: StepResult) -> StepResult:
        action_dict = action_to_dict(action)
        if not result.ok:
            assert result.error is not None
            self._log(
                "MOVE_REJECTED",
                {"action": action_dict, "code": result.error.code, "message": result.error.message},
            )
            return result
        self.state = result.state
        self._log("MOVE_ACCEPTED", {"action": action_dict})
        if self._telemetry is not None:
            self._telemetry.log_events(result.events)
        self._autosave()
        return result

    def play(self, card_id: str, source: PlaySlot, destination: Destination) -> StepResult:
        action = PlayCardAction(card_id=card_id, source=source, destination=destination)
        return self._record(action, apply_move(self.state, action, now=self._clock()))

    def choose(self, choice: PowerChoice) -> StepResult:
        return self._record(choice, resolve_power(self.state, choice, now=self._clock()))

    def cancel(self) -> StepResult:
        """Drop the pending power decision. A no-op when nothing is pending."""
        if self.state.pending is None:
            return StepResult(ok=True, state=self.state)
        return self._record(CancelPending(), step(self.state, CancelPending(), now=self._clock()))

    def save(self) -> None:
        if self._saves is None:
            raise RuntimeError("This session has no save file configured.")
        self._saves.save(self.state)

    def elapsed(self) -> str:
        return format_elapsed(elapsed_seconds(self.state, now=self._clock()))
