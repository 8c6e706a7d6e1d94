from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, Mapping

Suit = Literal["spades", "hearts", "clubs", "diamonds"]
Rank = Literal["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]
GameStatus = Literal["playing", "won", "lost"]
PendingKind = Literal["king", "king_discard", "queen", "jack"]

ErrorCode = Literal[
    "SourceMismatch",
    "SuitMismatch",
    "DuplicateRank",
    "SequenceMismatch",
    "InvalidDestination",
    "NoResurrectionTargets",
    "PendingDecisionExists",
    "CardBlocked",
    "GameOver",
    "NoPendingDecision",
    "InvalidChoice",
]

SUITS: tuple[Suit, ...] = ("spades", "hearts", "clubs", "diamonds")
RANKS: tuple[Rank, ...] = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")
ROYAL_RANKS: tuple[Rank, ...] = ("J", "Q", "K")

CARDS_PER_SET = 3
FRONT = 0
BACK = 1


def rank_value(rank: Rank) -> int:
    """Ace is low: A=1 ... K=13."""
    return RANKS.index(rank) + 1


@dataclass(frozen=True)
class StandardCard:
    id: str
    suit: Suit
    rank: Rank

    @property
    def value(self) -> int:
        return rank_value(self.rank)

    @property
    def is_royal(self) -> bool:
        return self.rank in ROYAL_RANKS

    def label(self) -> str:
        return f"{self.rank} of {self.suit}"


@dataclass(frozen=True)
class WildCard:
    """Joker: no suit and no rank."""

    id: str

    @property
    def is_royal(self) -> bool:
        return False

    def label(self) -> str:
        return "Joker"


Card = StandardCard | WildCard


@dataclass(frozen=True)
class GameConfig:
    narrative_slots: int = 4
    row_width: int = 4
    joker_count: int = 2
    goal_min: int = 1
    goal_max: int = 3


@dataclass(frozen=True)
class Goal:
    suit: Suit
    count: int


@dataclass(frozen=True)
class NarrativeSequence:
    cards: tuple[Card, ...] = ()

    @property
    def suit(self) -> Suit | None:
        # Wilds never fix the suit; the first standard card does.
        for c in self.cards:
            if isinstance(c, StandardCard):
                return c.suit
        return None

    def __len__(self) -> int:
        return len(self.cards)


@dataclass(frozen=True)
class MemoryPile:
    cards: tuple[Card, ...] = ()
    completed_with_queens: int = 0

    @property
    def completed_sets(self) -> int:
        return len(self.cards) // CARDS_PER_SET + self.completed_with_queens


@dataclass(frozen=True)
class PlaySlot:
    row: int
    col: int


@dataclass(frozen=True)
class PendingDecision:
    """A royal card has been spent and the player owes a follow-up choice.

    `sequence` is the narrative slot the royal landed on. `vacated` is the
    play slot a Jack left behind; its cascade waits for the decision.
    """

    kind: PendingKind
    card: StandardCard
    sequence: int
    vacated: PlaySlot | None = None


@dataclass(frozen=True)
class HistoryEntry:
    action: object
    timestamp: float


@dataclass(frozen=True)
class GameState:
    config: GameConfig
    seed: int
    goals: tuple[Goal, ...]
    play_rows: tuple[tuple[Card | None, ...], tuple[Card | None, ...]]
    sequences: tuple[NarrativeSequence, ...]
    forgotten: tuple[Card, ...]
    memory: Mapping[Suit, MemoryPile]
    reserve: tuple[Card, ...]
    start_time: float
    status: GameStatus = "playing"
    pending: PendingDecision | None = None
    history: tuple[HistoryEntry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Shared between successive states, so it must not be mutable.
        if not isinstance(self.memory, MappingProxyType):
            object.__setattr__(self, "memory", MappingProxyType(dict(self.memory)))

    def goal_for(self, suit: Suit) -> Goal:
        for g in self.goals:
            if g.suit == suit:
                return g
        raise KeyError(suit)

    def card_at(self, slot: PlaySlot) -> Card | None:
        return self.play_rows[slot.row][slot.col]

    def all_cards(self) -> list[Card]:
        """Every card in every container, in a fixed container order."""
        out: list[Card] = []
        for row in self.play_rows:
            out.extend(c for c in row if c is not None)
        for seq in self.sequences:
            out.extend(seq.cards)
        out.extend(self.forgotten)
        for suit in SUITS:
            out.extend(self.memory[suit].cards)
        out.extend(self.reserve)
        return out


@dataclass(frozen=True)
class MoveError:
    code: ErrorCode
    message: str


class InvariantError(AssertionError):
    """Raised when engine bookkeeping is broken (a bug, never a game outcome)."""
