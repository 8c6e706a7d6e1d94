from __future__ import annotations

import time
from dataclasses import dataclass

from .types import Card, GameState, Suit


@dataclass(frozen=True)
class GoalProgress:
    suit: Suit
    completed: int
    required: int

    @property
    def complete(self) -> bool:
        return self.completed >= self.required

    @property
    def percent(self) -> float:
        if self.required <= 0:
            return 100.0 if self.completed > 0 else 0.0
        return min(100.0, self.completed / self.required * 100.0)


def goal_progress(state: GameState) -> list[GoalProgress]:
    return [
        GoalProgress(suit=g.suit, completed=state.memory[g.suit].completed_sets, required=g.count)
        for g in state.goals
    ]


def forgotten_cards(state: GameState) -> list[Card]:
    # Browsable in a stable order for the pile viewer.
    return sorted(state.forgotten, key=lambda c: c.id)


def elapsed_seconds(state: GameState, now: float | None = None) -> int:
    """Advisory display value; never used by the rules.

    The clock stops once the game is decided: a finished game reports the
    time of the move that ended it.
    """
    if state.status != "playing" and state.history:
        current = state.history[-1].timestamp
    else:
        current = time.time() if now is None else now
    return max(0, int(current - state.start_time))


def format_elapsed(seconds: int) -> str:
    mins, secs = divmod(max(0, seconds), 60)
    return f"{mins:02d}:{secs:02d}"
