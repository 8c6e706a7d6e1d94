from __future__ import annotations

from collections import Counter
from typing import Sequence

from .actions import ForgottenPileRef, PlayCardAction, SequenceRef
from .types import (
    BACK,
    CARDS_PER_SET,
    FRONT,
    SUITS,
    Card,
    ErrorCode,
    GameState,
    InvariantError,
    MoveError,
    NarrativeSequence,
    PlaySlot,
    StandardCard,
    Suit,
    WildCard,
)


def _error(code: ErrorCode, message: str) -> MoveError:
    return MoveError(code=code, message=message)


def in_bounds(state: GameState, slot: PlaySlot) -> bool:
    if slot.row not in (FRONT, BACK):
        return False
    return 0 <= slot.col < len(state.play_rows[slot.row])


def is_actionable(state: GameState, slot: PlaySlot) -> bool:
    """Front cards are always playable; a back card only once its front slot is empty."""
    if state.status != "playing" or not in_bounds(state, slot):
        return False
    if state.card_at(slot) is None:
        return False
    if slot.row == FRONT:
        return True
    return state.play_rows[FRONT][slot.col] is None


def check_source(state: GameState, card_id: str, slot: PlaySlot) -> MoveError | None:
    if not in_bounds(state, slot):
        return _error("SourceMismatch", f"No play slot at row {slot.row}, column {slot.col}.")
    card = state.card_at(slot)
    if card is None or card.id != card_id:
        return _error("SourceMismatch", f"{card_id} is not in row {slot.row}, column {slot.col}.")
    if slot.row == BACK and state.play_rows[FRONT][slot.col] is not None:
        return _error("CardBlocked", "That card is covered by the card in front of it.")
    return None


def check_sequence_fit(sequence: NarrativeSequence, card: Card) -> MoveError | None:
    """Can a non-royal `card` join `sequence` without ruling out a finished run?

    Only ranked cards constrain the window; Jokers fill a single gap.
    """
    if len(sequence) >= CARDS_PER_SET:
        return _error("SequenceMismatch", "This sequence is already full.")
    if not sequence.cards or isinstance(card, WildCard):
        return None

    suit = sequence.suit
    if suit is not None and card.suit != suit:
        return _error("SuitMismatch", f"This sequence is for {suit}.")

    ranked = sorted(c.value for c in sequence.cards if isinstance(c, StandardCard))
    if card.value in ranked:
        return _error("DuplicateRank", f"A {card.rank} is already in this sequence.")

    if not ranked:
        return None
    if len(ranked) == 1:
        if abs(card.value - ranked[0]) <= 2:
            return None
        return _error("SequenceMismatch", "Cards in a sequence must be within two ranks of each other.")

    lo, hi = ranked[0], ranked[-1]
    if hi - lo == 1 and card.value in (lo - 1, hi + 1):
        return None
    if hi - lo == 2 and card.value == lo + 1:
        return None
    return _error("SequenceMismatch", "That card does not continue the sequence.")


def validate_move(state: GameState, action: PlayCardAction) -> MoveError | None:
    if state.status != "playing":
        return _error("GameOver", f"The game is already {state.status}.")

    err = check_source(state, action.card_id, action.source)
    if err is not None:
        return err
    card = state.card_at(action.source)
    assert card is not None

    dest = action.destination
    if isinstance(dest, ForgottenPileRef):
        return None
    if not isinstance(dest, SequenceRef) or not 0 <= dest.index < len(state.sequences):
        return _error("InvalidDestination", "This is not a valid placement for the card.")
    if state.pending is not None:
        return _error("PendingDecisionExists", f"Finish the {state.pending.card.label()} first.")
    if card.is_royal:
        # Royals never join a sequence; landing spends them.
        return None
    return check_sequence_fit(state.sequences[dest.index], card)


def is_complete_run(cards: Sequence[Card]) -> bool:
    """Three same-suit cards of contiguous rank, each Joker covering one gap."""
    if len(cards) != CARDS_PER_SET:
        return False
    ranked = [c for c in cards if isinstance(c, StandardCard)]
    if not ranked:
        return False
    if len({c.suit for c in ranked}) != 1:
        return False
    values = sorted(c.value for c in ranked)
    if len(set(values)) != len(values):
        return False
    return values[-1] - values[0] <= CARDS_PER_SET - 1


def run_suit(cards: Sequence[Card]) -> Suit:
    for c in cards:
        if isinstance(c, StandardCard):
            return c.suit
    raise InvariantError("A run without ranked cards has no suit.")


def completed_sets(state: GameState, suit: Suit) -> int:
    return state.memory[suit].completed_sets


def overrun_suit(state: GameState) -> Suit | None:
    for suit in SUITS:
        if completed_sets(state, suit) > state.goal_for(suit).count:
            return suit
    return None


def is_won(state: GameState) -> bool:
    return all(completed_sets(state, g.suit) >= g.count for g in state.goals)


def is_exhausted(state: GameState) -> bool:
    if state.reserve:
        return False
    return all(c is None for row in state.play_rows for c in row)


def resurrection_targets(state: GameState) -> list[Card]:
    """Forgotten cards a pending Jack could bring back (never the Jack itself)."""
    pending = state.pending
    spent_id = pending.card.id if pending is not None else None
    return [c for c in state.forgotten if c.id != spent_id]


def legal_moves(state: GameState) -> list[PlayCardAction]:
    moves: list[PlayCardAction] = []
    if state.status != "playing":
        return moves
    for row in (FRONT, BACK):
        for col in range(len(state.play_rows[row])):
            slot = PlaySlot(row, col)
            if not is_actionable(state, slot):
                continue
            card = state.card_at(slot)
            assert card is not None
            moves.append(PlayCardAction(card_id=card.id, source=slot, destination=ForgottenPileRef()))
            for i in range(len(state.sequences)):
                cand = PlayCardAction(card_id=card.id, source=slot, destination=SequenceRef(i))
                if validate_move(state, cand) is None:
                    moves.append(cand)
    return moves


def check_integrity(state: GameState, expected: int | None = None) -> None:
    """Every card must sit in exactly one container."""
    cards = state.all_cards()
    counts = Counter(c.id for c in cards)
    dupes = sorted(cid for cid, n in counts.items() if n > 1)
    if dupes:
        raise InvariantError(f"Cards in more than one container: {', '.join(dupes)}")
    if expected is not None and len(cards) != expected:
        raise InvariantError(f"Expected {expected} cards in play, found {len(cards)}")
