from __future__ import annotations

from dataclasses import dataclass

from .types import PlaySlot


@dataclass(frozen=True)
class ForgottenPileRef:
    pass


@dataclass(frozen=True)
class SequenceRef:
    index: int


Destination = ForgottenPileRef | SequenceRef


@dataclass(frozen=True)
class PlayCardAction:
    card_id: str
    source: PlaySlot
    destination: Destination

    @staticmethod
    def discard(card_id: str, row: int, col: int) -> "PlayCardAction":
        return PlayCardAction(card_id=card_id, source=PlaySlot(row, col), destination=ForgottenPileRef())

    @staticmethod
    def to_sequence(card_id: str, row: int, col: int, index: int) -> "PlayCardAction":
        return PlayCardAction(card_id=card_id, source=PlaySlot(row, col), destination=SequenceRef(index))


# Power follow-ups. DeclinePower is option (a) for every royal.
@dataclass(frozen=True)
class DeclinePower:
    pass


@dataclass(frozen=True)
class ArmKingDiscard:
    pass


@dataclass(frozen=True)
class DiscardSequence:
    index: int


@dataclass(frozen=True)
class CompleteWithQueen:
    pass


@dataclass(frozen=True)
class ResurrectCard:
    card_id: str


PowerChoice = DeclinePower | ArmKingDiscard | DiscardSequence | CompleteWithQueen | ResurrectCard


@dataclass(frozen=True)
class CancelPending:
    pass


Action = PlayCardAction | PowerChoice | CancelPending
