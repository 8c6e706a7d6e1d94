from __future__ import annotations

import random

from .actions import (
    Action,
    ArmKingDiscard,
    CompleteWithQueen,
    DeclinePower,
    DiscardSequence,
    PlayCardAction,
    ResurrectCard,
    SequenceRef,
)
from .rules import legal_moves, resurrection_targets
from .types import CARDS_PER_SET, GameState, StandardCard


def _would_overrun(state: GameState, move: PlayCardAction) -> bool:
    if not isinstance(move.destination, SequenceRef):
        return False
    seq = state.sequences[move.destination.index]
    if len(seq) != CARDS_PER_SET - 1:
        return False
    suit = seq.suit
    if suit is None:
        card = state.card_at(move.source)
        if not isinstance(card, StandardCard):
            return False
        suit = card.suit
    return state.memory[suit].completed_sets + 1 > state.goal_for(suit).count


def _choose_power(state: GameState, rng: random.Random) -> Action:
    pending = state.pending
    assert pending is not None
    if pending.kind == "queen":
        suit = pending.card.suit
        if state.memory[suit].completed_sets < state.goal_for(suit).count:
            return CompleteWithQueen()
        return DeclinePower()
    if pending.kind == "jack":
        targets = resurrection_targets(state)
        if targets:
            return ResurrectCard(card_id=rng.choice(targets).id)
        return DeclinePower()
    if pending.kind == "king":
        return ArmKingDiscard() if rng.random() < 0.5 else DeclinePower()
    # king_discard: clear the longest sequence
    nonempty = [i for i, s in enumerate(state.sequences) if s.cards]
    if not nonempty:
        return DeclinePower()
    return DiscardSequence(index=max(nonempty, key=lambda i: len(state.sequences[i])))


def choose_action(state: GameState, rng: random.Random) -> Action | None:
    """Pick a reasonable next action, or None once the game is over.

    Prefers growing sequences that cannot overrun a goal, then discards.
    """
    if state.status != "playing":
        return None
    if state.pending is not None:
        return _choose_power(state, rng)

    moves = legal_moves(state)
    if not moves:
        return None
    builds = [m for m in moves if isinstance(m.destination, SequenceRef) and not _would_overrun(state, m)]
    if builds and rng.random() < 0.8:
        return rng.choice(builds)
    discards = [m for m in moves if not isinstance(m.destination, SequenceRef)]
    return rng.choice(discards or moves)
