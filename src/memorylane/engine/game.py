from __future__ import annotations

import random
import time
from dataclasses import dataclass, field, replace
from typing import Iterable

from .actions import (
    Action,
    ArmKingDiscard,
    CancelPending,
    CompleteWithQueen,
    DeclinePower,
    DiscardSequence,
    ForgottenPileRef,
    PlayCardAction,
    PowerChoice,
    ResurrectCard,
)
from .deck import deal
from .rules import (
    check_integrity,
    is_complete_run,
    is_exhausted,
    is_won,
    overrun_suit,
    resurrection_targets,
    run_suit,
    validate_move,
)
from .types import (
    BACK,
    CARDS_PER_SET,
    FRONT,
    SUITS,
    Card,
    ErrorCode,
    GameConfig,
    GameState,
    GameStatus,
    HistoryEntry,
    MemoryPile,
    MoveError,
    NarrativeSequence,
    PendingDecision,
    PendingKind,
    PlaySlot,
    StandardCard,
    Suit,
)

Event = dict[str, object]

_POWER_KINDS: dict[str, PendingKind] = {"K": "king", "Q": "queen", "J": "jack"}


@dataclass(frozen=True)
class StepResult:
    ok: bool
    state: GameState
    events: list[Event] = field(default_factory=list)
    error: MoveError | None = None


def _reject(state: GameState, code: ErrorCode, message: str) -> StepResult:
    return StepResult(ok=False, state=state, events=[], error=MoveError(code=code, message=message))


# --- container updates (each returns a new state, touching one container) ---


def _set_slot(state: GameState, slot: PlaySlot, card: Card | None) -> GameState:
    row = list(state.play_rows[slot.row])
    row[slot.col] = card
    rows = list(state.play_rows)
    rows[slot.row] = tuple(row)
    return replace(state, play_rows=(rows[FRONT], rows[BACK]))


def _set_sequence(state: GameState, index: int, seq: NarrativeSequence) -> GameState:
    seqs = list(state.sequences)
    seqs[index] = seq
    return replace(state, sequences=tuple(seqs))


def _forget(state: GameState, *cards: Card) -> GameState:
    return replace(state, forgotten=state.forgotten + tuple(cards))


def _add_memory(state: GameState, suit: Suit, cards: tuple[Card, ...] = (), queens: int = 0) -> GameState:
    pile = state.memory[suit]
    memory = dict(state.memory)
    memory[suit] = MemoryPile(
        cards=pile.cards + cards,
        completed_with_queens=pile.completed_with_queens + queens,
    )
    return replace(state, memory=memory)


def _draw(state: GameState) -> tuple[Card | None, GameState]:
    if not state.reserve:
        return None, state
    return state.reserve[-1], replace(state, reserve=state.reserve[:-1])


def _cascade(state: GameState, slot: PlaySlot, events: list[Event]) -> GameState:
    """Refill a play slot a card just left.

    A vacated front slot takes the back card of its column and the back slot
    draws from the reserve. A vacated back slot draws directly.
    """
    if slot.row == FRONT:
        promoted = state.play_rows[BACK][slot.col]
        state = _set_slot(state, slot, promoted)
        if promoted is not None:
            events.append({"type": "CARD_PROMOTED", "col": slot.col, "card_id": promoted.id})
        slot = PlaySlot(BACK, slot.col)
    drawn, state = _draw(state)
    state = _set_slot(state, slot, drawn)
    if drawn is not None:
        events.append({"type": "CARD_DRAWN", "row": slot.row, "col": slot.col, "card_id": drawn.id})
    return state


def _refill_sequence(state: GameState, index: int, events: list[Event]) -> GameState:
    drawn, state = _draw(state)
    if drawn is None:
        return state
    events.append({"type": "SEQUENCE_REFILLED", "sequence": index, "card_id": drawn.id})
    return _set_sequence(state, index, NarrativeSequence(cards=(drawn,)))


# --- evaluation ---


def _end(state: GameState, status: GameStatus, reason: str, events: list[Event], **extra: object) -> GameState:
    events.append({"type": "GAME_ENDED", "status": status, "reason": reason, **extra})
    return replace(state, status=status, pending=None)


def _check_overrun(state: GameState, events: list[Event]) -> GameState:
    if state.status != "playing":
        return state
    suit = overrun_suit(state)
    if suit is None:
        return state
    return _end(state, "lost", "overrun", events, suit=suit)


def _evaluate(state: GameState, events: list[Event]) -> GameState:
    state = _check_overrun(state, events)
    if state.status != "playing":
        return state
    if is_won(state):
        return _end(state, "won", "goals_met", events)
    # A pending power may still put a card back on the board or finish a goal.
    if state.pending is None and is_exhausted(state):
        return _end(state, "lost", "exhausted", events)
    return state


def _commit(before: GameState, after: GameState, action: Action, events: list[Event], now: float | None) -> StepResult:
    after = _evaluate(after, events)
    stamp = time.time() if now is None else now
    after = replace(after, history=after.history + (HistoryEntry(action=action, timestamp=stamp),))
    check_integrity(after, expected=len(before.all_cards()))
    return StepResult(ok=True, state=after, events=events)


# --- sequence resolution ---


def _resolve_sequence(state: GameState, index: int, events: list[Event]) -> GameState:
    cards = state.sequences[index].cards
    if not is_complete_run(cards):
        return state
    suit = run_suit(cards)
    state = _set_sequence(state, index, NarrativeSequence())
    state = _add_memory(state, suit, cards=cards)
    events.append(
        {
            "type": "SET_COMPLETED",
            "suit": suit,
            "sequence": index,
            "card_ids": [c.id for c in cards],
            "completed": state.memory[suit].completed_sets,
        }
    )
    state = _check_overrun(state, events)
    if state.status != "playing":
        return state
    return _refill_sequence(state, index, events)


# --- public transitions ---


def apply_move(state: GameState, action: PlayCardAction, now: float | None = None) -> StepResult:
    """Move one play card to the forgotten pile or onto a narrative sequence.

    Never mutates `state`; on rejection the returned result carries the
    input state unchanged.
    """
    err = validate_move(state, action)
    if err is not None:
        return StepResult(ok=False, state=state, events=[], error=err)

    card = state.card_at(action.source)
    assert card is not None
    events: list[Event] = []
    new = _set_slot(state, action.source, None)

    if isinstance(action.destination, ForgottenPileRef):
        new = _forget(new, card)
        events.append({"type": "CARD_DISCARDED", "card_id": card.id})
        new = _cascade(new, action.source, events)
        return _commit(state, new, action, events, now)

    index = action.destination.index
    if isinstance(card, StandardCard) and card.is_royal:
        kind = _POWER_KINDS[card.rank]
        new = _forget(new, card)
        vacated = action.source if kind == "jack" else None
        if vacated is None:
            new = _cascade(new, action.source, events)
        new = replace(new, pending=PendingDecision(kind=kind, card=card, sequence=index, vacated=vacated))
        events.append({"type": "POWER_TRIGGERED", "power": kind, "card_id": card.id, "sequence": index})
        return _commit(state, new, action, events, now)

    seq = NarrativeSequence(cards=new.sequences[index].cards + (card,))
    new = _set_sequence(new, index, seq)
    events.append({"type": "CARD_PLACED", "card_id": card.id, "sequence": index})
    new = _cascade(new, action.source, events)
    if len(seq) == CARDS_PER_SET:
        new = _resolve_sequence(new, index, events)
    return _commit(state, new, action, events, now)


def resolve_power(state: GameState, choice: PowerChoice, now: float | None = None) -> StepResult:
    """Commit the follow-up for the pending King, Queen or Jack."""
    if state.status != "playing":
        return _reject(state, "GameOver", f"The game is already {state.status}.")
    pending = state.pending
    if pending is None:
        return _reject(state, "NoPendingDecision", "There is no power card waiting for a decision.")

    events: list[Event] = []
    new = replace(state, pending=None)

    if isinstance(choice, DeclinePower):
        if pending.vacated is not None:
            new = _cascade(new, pending.vacated, events)
        events.append({"type": "POWER_DECLINED", "power": pending.kind, "card_id": pending.card.id})
        return _commit(state, new, choice, events, now)

    if isinstance(choice, ArmKingDiscard) and pending.kind == "king":
        new = replace(state, pending=replace(pending, kind="king_discard"))
        events.append({"type": "KING_DISCARD_ARMED", "card_id": pending.card.id})
        return _commit(state, new, choice, events, now)

    if isinstance(choice, DiscardSequence) and pending.kind == "king_discard":
        if not 0 <= choice.index < len(state.sequences):
            return _reject(state, "InvalidDestination", f"There is no narrative sequence {choice.index}.")
        cleared = state.sequences[choice.index].cards
        if not cleared:
            return _reject(state, "InvalidChoice", "That narrative sequence is already empty.")
        new = _set_sequence(new, choice.index, NarrativeSequence())
        new = _forget(new, *cleared)
        events.append(
            {"type": "SEQUENCE_DISCARDED", "sequence": choice.index, "card_ids": [c.id for c in cleared]}
        )
        new = _refill_sequence(new, choice.index, events)
        return _commit(state, new, choice, events, now)

    if isinstance(choice, CompleteWithQueen) and pending.kind == "queen":
        suit = pending.card.suit
        new = _add_memory(new, suit, queens=1)
        events.append(
            {"type": "QUEEN_COMPLETED", "suit": suit, "completed": new.memory[suit].completed_sets}
        )
        return _commit(state, new, choice, events, now)

    if isinstance(choice, ResurrectCard) and pending.kind == "jack":
        targets = resurrection_targets(state)
        if not targets:
            return _reject(state, "NoResurrectionTargets", "The forgotten pile has nothing to bring back.")
        picked = next((c for c in targets if c.id == choice.card_id), None)
        if picked is None:
            return _reject(state, "InvalidChoice", f"{choice.card_id} is not in the forgotten pile.")
        assert pending.vacated is not None
        new = replace(new, forgotten=tuple(c for c in new.forgotten if c.id != picked.id))
        new = _set_slot(new, pending.vacated, picked)
        events.append(
            {
                "type": "CARD_RESURRECTED",
                "card_id": picked.id,
                "row": pending.vacated.row,
                "col": pending.vacated.col,
            }
        )
        return _commit(state, new, choice, events, now)

    return _reject(state, "InvalidChoice", f"That choice does not apply to a pending {pending.kind}.")


def cancel_pending(state: GameState, now: float | None = None) -> GameState:
    """Drop an outstanding power decision. The royal stays spent."""
    return _cancel(state, now).state


def _cancel(state: GameState, now: float | None) -> StepResult:
    pending = state.pending
    if state.status != "playing" or pending is None:
        return StepResult(ok=True, state=state)
    events: list[Event] = []
    new = replace(state, pending=None)
    if pending.vacated is not None:
        new = _cascade(new, pending.vacated, events)
    events.append({"type": "POWER_CANCELLED", "power": pending.kind, "card_id": pending.card.id})
    return _commit(state, new, CancelPending(), events, now)


def step(state: GameState, action: Action, now: float | None = None) -> StepResult:
    if isinstance(action, PlayCardAction):
        return apply_move(state, action, now=now)
    if isinstance(action, CancelPending):
        return _cancel(state, now)
    return resolve_power(state, action, now=now)


def setup_game(seed: int | None = None, config: GameConfig | None = None, now: float | None = None) -> GameState:
    cfg = config or GameConfig()
    if seed is None:
        seed = random.randrange(2**32)
    rng = random.Random(seed)
    dealt = deal(rng, cfg)
    state = GameState(
        config=cfg,
        seed=seed,
        goals=dealt.goals,
        play_rows=dealt.play_rows,
        sequences=dealt.sequences,
        forgotten=(),
        memory={suit: MemoryPile() for suit in SUITS},
        reserve=dealt.reserve,
        start_time=time.time() if now is None else now,
    )
    check_integrity(state, expected=52 + cfg.joker_count)
    return state


def replay(
    seed: int,
    actions: Iterable[Action],
    config: GameConfig | None = None,
    now: float = 0.0,
) -> GameState:
    state = setup_game(seed=seed, config=config, now=now)
    for a in actions:
        state = step(state, a, now=now).state
        if state.status != "playing":
            break
    return state
