"""Deterministic, headless rules engine for Memory Lane.

IMPORTANT: This package must never import a UI toolkit.
"""

from .actions import (
    ArmKingDiscard,
    CancelPending,
    CompleteWithQueen,
    DeclinePower,
    DiscardSequence,
    ForgottenPileRef,
    PlayCardAction,
    ResurrectCard,
    SequenceRef,
)
from .game import StepResult, apply_move, cancel_pending, replay, resolve_power, setup_game, step
from .types import GameConfig, GameState, MoveError, PlaySlot, StandardCard, WildCard

__all__ = [
    "ArmKingDiscard",
    "CancelPending",
    "CompleteWithQueen",
    "DeclinePower",
    "DiscardSequence",
    "ForgottenPileRef",
    "GameConfig",
    "GameState",
    "MoveError",
    "PlayCardAction",
    "PlaySlot",
    "ResurrectCard",
    "SequenceRef",
    "StandardCard",
    "StepResult",
    "WildCard",
    "apply_move",
    "cancel_pending",
    "replay",
    "resolve_power",
    "setup_game",
    "step",
]
