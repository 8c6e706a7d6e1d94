from __future__ import annotations

import random
from dataclasses import dataclass

from .types import RANKS, SUITS, Card, GameConfig, Goal, NarrativeSequence, StandardCard, WildCard


@dataclass(frozen=True)
class Deal:
    goals: tuple[Goal, ...]
    sequences: tuple[NarrativeSequence, ...]
    play_rows: tuple[tuple[Card | None, ...], tuple[Card | None, ...]]
    reserve: tuple[Card, ...]


def build_deck(config: GameConfig) -> list[Card]:
    cards: list[Card] = [StandardCard(id=f"{rank}-{suit}", suit=suit, rank=rank) for suit in SUITS for rank in RANKS]
    for n in range(1, config.joker_count + 1):
        cards.append(WildCard(id=f"Joker-{n}"))
    return cards


def generate_goals(rng: random.Random, config: GameConfig) -> tuple[Goal, ...]:
    return tuple(Goal(suit=suit, count=rng.randint(config.goal_min, config.goal_max)) for suit in SUITS)


def _opens_sequence(card: Card) -> bool:
    return isinstance(card, StandardCard) and not card.is_royal


def deal(rng: random.Random, config: GameConfig) -> Deal:
    """Shuffle a fresh deck and split it into narrative, play rows and reserve.

    Narrative openers must be plain ranked cards: royals and Jokers drawn
    while filling them are held back, returned to the pool and the pool is
    reshuffled before the play rows are dealt. The end of a list is its top.
    """
    if config.goal_min < 1 or config.goal_min > config.goal_max:
        raise ValueError(f"Invalid goal range {config.goal_min}..{config.goal_max}")

    goals = generate_goals(rng, config)
    pool = build_deck(config)
    rng.shuffle(pool)

    openers: list[Card] = []
    held: list[Card] = []
    while len(openers) < config.narrative_slots and pool:
        card = pool.pop()
        if _opens_sequence(card):
            openers.append(card)
        else:
            held.append(card)
    pool.extend(held)
    rng.shuffle(pool)

    rows: list[tuple[Card | None, ...]] = []
    for _ in range(2):
        rows.append(tuple(pool.pop() if pool else None for _ in range(config.row_width)))

    return Deal(
        goals=goals,
        sequences=tuple(NarrativeSequence(cards=(c,)) for c in openers)
        + tuple(NarrativeSequence() for _ in range(config.narrative_slots - len(openers))),
        play_rows=(rows[0], rows[1]),
        reserve=tuple(pool),
    )
