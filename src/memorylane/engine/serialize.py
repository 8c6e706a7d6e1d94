from __future__ import annotations

from typing import Any, Mapping

from .actions import (
    Action,
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
from .types import (
    SUITS,
    Card,
    GameConfig,
    GameState,
    Goal,
    HistoryEntry,
    MemoryPile,
    NarrativeSequence,
    PendingDecision,
    PlaySlot,
    StandardCard,
    WildCard,
)


class SnapshotError(ValueError):
    pass


def card_to_dict(c: Card) -> dict[str, object]:
    if isinstance(c, WildCard):
        return {"kind": "wild", "id": c.id}
    return {"kind": "standard", "id": c.id, "suit": c.suit, "rank": c.rank}


def card_from_dict(d: Mapping[str, object]) -> Card:
    kind = d.get("kind")
    cid = d.get("id")
    if not isinstance(cid, str):
        raise SnapshotError("Card is missing an id")
    if kind == "wild":
        return WildCard(id=cid)
    if kind == "standard":
        return StandardCard(id=cid, suit=d["suit"], rank=d["rank"])  # type: ignore[arg-type]
    raise SnapshotError(f"Unknown card kind: {kind}")


def _slot_to_dict(s: PlaySlot | None) -> dict[str, object] | None:
    if s is None:
        return None
    return {"row": s.row, "col": s.col}


def _slot_from_dict(d: object) -> PlaySlot | None:
    if not isinstance(d, dict):
        return None
    return PlaySlot(row=int(d["row"]), col=int(d["col"]))


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, PlayCardAction):
        dest: dict[str, object]
        if isinstance(a.destination, SequenceRef):
            dest = {"kind": "sequence", "index": a.destination.index}
        else:
            dest = {"kind": "forgotten"}
        return {"type": "play", "card_id": a.card_id, "source": _slot_to_dict(a.source), "destination": dest}
    if isinstance(a, DeclinePower):
        return {"type": "decline"}
    if isinstance(a, ArmKingDiscard):
        return {"type": "arm_king_discard"}
    if isinstance(a, DiscardSequence):
        return {"type": "discard_sequence", "index": a.index}
    if isinstance(a, CompleteWithQueen):
        return {"type": "queen_complete"}
    if isinstance(a, ResurrectCard):
        return {"type": "resurrect", "card_id": a.card_id}
    if isinstance(a, CancelPending):
        return {"type": "cancel"}
    # should be unreachable
    return {"type": "unknown"}


def action_from_dict(d: Mapping[str, object]) -> Action:
    t = d.get("type")
    if t == "play":
        source = _slot_from_dict(d.get("source"))
        raw_dest = d.get("destination")
        if source is None or not isinstance(raw_dest, dict):
            raise SnapshotError("Play action needs a source and destination")
        destination = (
            SequenceRef(index=int(raw_dest["index"])) if raw_dest.get("kind") == "sequence" else ForgottenPileRef()
        )
        return PlayCardAction(card_id=str(d["card_id"]), source=source, destination=destination)
    if t == "decline":
        return DeclinePower()
    if t == "arm_king_discard":
        return ArmKingDiscard()
    if t == "discard_sequence":
        return DiscardSequence(index=int(d["index"]))  # type: ignore[call-overload]
    if t == "queen_complete":
        return CompleteWithQueen()
    if t == "resurrect":
        return ResurrectCard(card_id=str(d["card_id"]))
    if t == "cancel":
        return CancelPending()
    raise SnapshotError(f"Unknown action type: {t}")


def _cards(raw: object) -> tuple[Card, ...]:
    if not isinstance(raw, list):
        raise SnapshotError("Expected a list of cards")
    return tuple(card_from_dict(c) for c in raw)


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the game state."""
    pending = state.pending
    return {
        "seed": state.seed,
        "status": state.status,
        "start_time": state.start_time,
        "config": {
            "narrative_slots": state.config.narrative_slots,
            "row_width": state.config.row_width,
            "joker_count": state.config.joker_count,
            "goal_min": state.config.goal_min,
            "goal_max": state.config.goal_max,
        },
        "goals": [{"suit": g.suit, "count": g.count} for g in state.goals],
        "play_rows": [[card_to_dict(c) if c is not None else None for c in row] for row in state.play_rows],
        "sequences": [
            {"suit": s.suit, "cards": [card_to_dict(c) for c in s.cards]} for s in state.sequences
        ],
        "forgotten": [card_to_dict(c) for c in state.forgotten],
        "memory": {
            suit: {
                "cards": [card_to_dict(c) for c in state.memory[suit].cards],
                "completed_with_queens": state.memory[suit].completed_with_queens,
            }
            for suit in SUITS
        },
        "reserve": [card_to_dict(c) for c in state.reserve],
        "pending": None
        if pending is None
        else {
            "kind": pending.kind,
            "card": card_to_dict(pending.card),
            "sequence": pending.sequence,
            "vacated": _slot_to_dict(pending.vacated),
        },
        "history": [{"action": action_to_dict(h.action), "timestamp": h.timestamp} for h in state.history],  # type: ignore[arg-type]
    }


def _require_list(d: Mapping[str, object], key: str) -> list[Any]:
    v = d.get(key)
    if not isinstance(v, list):
        raise SnapshotError(f"Expected list for {key}")
    return v


def _require_dict(d: Mapping[str, object], key: str) -> dict[str, Any]:
    v = d.get(key)
    if not isinstance(v, dict):
        raise SnapshotError(f"Expected object for {key}")
    return v


def state_from_snapshot(d: Mapping[str, object]) -> GameState:
    """Rebuild a GameState from `snapshot` output.

    Shape checks belong to schema validation upstream; this only fails on
    data it cannot interpret.
    """
    try:
        config = GameConfig(**{k: int(v) for k, v in _require_dict(d, "config").items()})

        rows_raw = _require_list(d, "play_rows")
        if len(rows_raw) != 2:
            raise SnapshotError("Expected exactly two play rows")
        rows = [tuple(card_from_dict(c) if c is not None else None for c in row) for row in rows_raw]

        memory_raw = _require_dict(d, "memory")
        memory = {
            suit: MemoryPile(
                cards=_cards(memory_raw[suit]["cards"]),
                completed_with_queens=int(memory_raw[suit]["completed_with_queens"]),
            )
            for suit in SUITS
        }

        pending = None
        raw_pending = d.get("pending")
        if isinstance(raw_pending, dict):
            card = card_from_dict(raw_pending["card"])
            if not isinstance(card, StandardCard):
                raise SnapshotError("Pending power card must be a royal")
            pending = PendingDecision(
                kind=raw_pending["kind"],
                card=card,
                sequence=int(raw_pending["sequence"]),
                vacated=_slot_from_dict(raw_pending.get("vacated")),
            )

        history = tuple(
            HistoryEntry(action=action_from_dict(h["action"]), timestamp=float(h["timestamp"]))
            for h in _require_list(d, "history")
        )

        return GameState(
            config=config,
            seed=int(d["seed"]),  # type: ignore[call-overload]
            goals=tuple(Goal(suit=g["suit"], count=int(g["count"])) for g in _require_list(d, "goals")),
            play_rows=(rows[0], rows[1]),
            sequences=tuple(NarrativeSequence(cards=_cards(s["cards"])) for s in _require_list(d, "sequences")),
            forgotten=_cards(d.get("forgotten")),
            memory=memory,
            reserve=_cards(d.get("reserve")),
            start_time=float(d["start_time"]),  # type: ignore[arg-type]
            status=d["status"],  # type: ignore[arg-type]
            pending=pending,
            history=history,
        )
    except (KeyError, TypeError, ValueError) as e:
        if isinstance(e, SnapshotError):
            raise
        raise SnapshotError(f"Malformed game snapshot: {e!r}") from e
