"""Hand-built boards for rule tests."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from memorylane.engine.types import (
    SUITS,
    Card,
    GameConfig,
    GameState,
    Goal,
    MemoryPile,
    NarrativeSequence,
    PendingDecision,
    StandardCard,
    WildCard,
)

_SUIT_CODES = {"s": "spades", "h": "hearts", "c": "clubs", "d": "diamonds"}


def card(code: str) -> Card:
    """'7c' -> 7 of clubs, '10h' -> 10 of hearts, 'W1' -> Joker-1."""
    if code.startswith("W"):
        return WildCard(id=f"Joker-{code[1:] or '1'}")
    rank, suit = code[:-1], _SUIT_CODES[code[-1]]
    return StandardCard(id=f"{rank}-{suit}", suit=suit, rank=rank)  # type: ignore[arg-type]


def cards(codes: Iterable[str]) -> tuple[Card, ...]:
    return tuple(card(c) for c in codes)


def _row(codes: Sequence[str | None], width: int) -> tuple[Card | None, ...]:
    out = [card(c) if c is not None else None for c in codes]
    out.extend([None] * (width - len(out)))
    return tuple(out)


def make_state(
    front: Sequence[str | None] = (),
    back: Sequence[str | None] = (),
    sequences: Sequence[Sequence[str]] = ((), (), (), ()),
    reserve: Sequence[str] = (),
    forgotten: Sequence[str] = (),
    goals: Mapping[str, int] | None = None,
    memory: Mapping[str, Sequence[str]] | None = None,
    queens: Mapping[str, int] | None = None,
    pending: PendingDecision | None = None,
    status: str = "playing",
) -> GameState:
    """The reserve is listed bottom first; its last entry is drawn first."""
    config = GameConfig()
    goals = goals or {}
    memory = memory or {}
    queens = queens or {}
    return GameState(
        config=config,
        seed=0,
        goals=tuple(Goal(suit=s, count=goals.get(s, 1)) for s in SUITS),
        play_rows=(_row(front, config.row_width), _row(back, config.row_width)),
        sequences=tuple(NarrativeSequence(cards=cards(s)) for s in sequences),
        forgotten=cards(forgotten),
        memory={
            s: MemoryPile(cards=cards(memory.get(s, ())), completed_with_queens=queens.get(s, 0)) for s in SUITS
        },
        reserve=cards(reserve),
        start_time=0.0,
        status=status,  # type: ignore[arg-type]
        pending=pending,
    )


def ids(items: Iterable[Card | None]) -> list[str | None]:
    return [c.id if c is not None else None for c in items]
