from __future__ import annotations

from boards import card, ids, make_state

from memorylane.engine.actions import (
    ArmKingDiscard,
    CompleteWithQueen,
    DeclinePower,
    DiscardSequence,
    PlayCardAction,
    ResurrectCard,
)
from memorylane.engine.game import apply_move, cancel_pending, resolve_power
from memorylane.engine.types import GameState, PlaySlot


def _land_king() -> GameState:
    state = make_state(
        front=["Kh", "3c"],
        back=["4c"],
        sequences=[["5s"], ["8d", "9d"], [], []],
    )
    res = apply_move(state, PlayCardAction.to_sequence("K-hearts", 0, 0, 1))
    assert res.ok, res.error
    return res.state


def test_king_is_spent_on_landing() -> None:
    state = _land_king()
    assert ids(state.forgotten) == ["K-hearts"]
    assert state.pending is not None and state.pending.kind == "king"
    assert state.pending.sequence == 1
    # King's column cascades right away.
    assert ids(state.play_rows[0])[:2] == ["4-clubs", "3-clubs"]
    assert ids(state.sequences[1].cards) == ["8-diamonds", "9-diamonds"]


def test_king_discards_a_whole_sequence() -> None:
    state = _land_king()
    armed = resolve_power(state, ArmKingDiscard())
    assert armed.ok
    assert armed.state.pending is not None and armed.state.pending.kind == "king_discard"

    res = resolve_power(armed.state, DiscardSequence(index=1))
    assert res.ok, res.error
    new = res.state
    assert new.sequences[1].cards == ()
    assert ids(new.forgotten) == ["K-hearts", "8-diamonds", "9-diamonds"]
    assert new.pending is None
    assert new.status == "playing"


def test_king_discard_refills_from_reserve() -> None:
    state = make_state(front=["Kh", "3c"], sequences=[["5s"], ["8d", "9d"], [], []], reserve=["Ah", "6s"])
    state = apply_move(state, PlayCardAction.to_sequence("K-hearts", 0, 0, 1)).state
    # The King's empty column drew 6s into its back slot.
    assert ids(state.play_rows[1])[0] == "6-spades"
    state = resolve_power(state, ArmKingDiscard()).state
    res = resolve_power(state, DiscardSequence(index=1))
    assert ids(res.state.sequences[1].cards) == ["A-hearts"]
    assert res.state.reserve == ()


def test_king_decline_has_no_effect() -> None:
    state = _land_king()
    res = resolve_power(state, DeclinePower())
    assert res.ok
    assert res.state.pending is None
    assert res.state.sequences == state.sequences
    assert ids(res.state.forgotten) == ["K-hearts"]


def test_king_choices_must_follow_protocol() -> None:
    state = _land_king()
    res = resolve_power(state, DiscardSequence(index=1))
    assert not res.ok
    assert res.error is not None and res.error.code == "InvalidChoice"
    assert res.state is state

    armed = resolve_power(state, ArmKingDiscard()).state
    empty = resolve_power(armed, DiscardSequence(index=2))
    assert empty.error is not None and empty.error.code == "InvalidChoice"
    missing = resolve_power(armed, DiscardSequence(index=9))
    assert missing.error is not None and missing.error.code == "InvalidDestination"

    blocked = apply_move(armed, PlayCardAction.to_sequence("3-clubs", 0, 1, 2))
    assert blocked.error is not None and blocked.error.code == "PendingDecisionExists"


def test_queen_completes_a_set_of_her_suit() -> None:
    state = make_state(front=["Qd", "3c"], sequences=[["5s"], [], [], []], goals={"diamonds": 2})
    state = apply_move(state, PlayCardAction.to_sequence("Q-diamonds", 0, 0, 0)).state
    assert state.pending is not None and state.pending.kind == "queen"
    assert ids(state.forgotten) == ["Q-diamonds"]

    res = resolve_power(state, CompleteWithQueen())
    assert res.ok
    pile = res.state.memory["diamonds"]
    assert pile.completed_with_queens == 1
    assert pile.cards == ()
    assert pile.completed_sets == 1
    assert res.state.status == "playing"
    # Queen never joins the sequence it landed on.
    assert ids(res.state.sequences[0].cards) == ["5-spades"]


def test_queen_can_win_the_game() -> None:
    state = make_state(
        front=["Qd", "3c"],
        memory={"spades": ["As", "2s", "3s"], "clubs": ["Ac", "2c", "4c"], "hearts": ["Ah", "2h", "3h"]},
    )
    state = apply_move(state, PlayCardAction.to_sequence("Q-diamonds", 0, 0, 0)).state
    res = resolve_power(state, CompleteWithQueen())
    assert res.state.status == "won"


def test_queen_at_cap_overruns() -> None:
    state = make_state(front=["Qd", "3c"], queens={"diamonds": 1}, goals={"diamonds": 1})
    state = apply_move(state, PlayCardAction.to_sequence("Q-diamonds", 0, 0, 0)).state
    res = resolve_power(state, CompleteWithQueen())
    assert res.ok
    assert res.state.status == "lost"
    assert res.state.pending is None


def test_queen_decline_still_discards() -> None:
    state = make_state(front=["Qd", "3c"])
    state = apply_move(state, PlayCardAction.to_sequence("Q-diamonds", 0, 0, 0)).state
    res = resolve_power(state, DeclinePower())
    assert res.ok
    assert res.state.memory["diamonds"].completed_sets == 0
    assert ids(res.state.forgotten) == ["Q-diamonds"]


def _land_jack(forgotten: list[str], reserve: list[str] | None = None) -> GameState:
    state = make_state(
        front=["Js", "2h"],
        back=["3h"],
        sequences=[["5s"], [], [], []],
        forgotten=forgotten,
        reserve=reserve or [],
    )
    res = apply_move(state, PlayCardAction.to_sequence("J-spades", 0, 0, 0))
    assert res.ok, res.error
    return res.state


def test_jack_resurrects_into_its_vacated_slot() -> None:
    state = _land_jack(["7c", "Qd"])
    assert state.pending is not None and state.pending.kind == "jack"
    assert state.pending.vacated == PlaySlot(0, 0)
    assert state.play_rows[0][0] is None

    res = resolve_power(state, ResurrectCard(card_id="7-clubs"))
    assert res.ok, res.error
    new = res.state
    assert new.card_at(PlaySlot(0, 0)) == card("7c")
    assert ids(new.forgotten) == ["Q-diamonds", "J-spades"]
    assert ids(new.play_rows[1])[0] == "3-hearts"
    assert new.pending is None


def test_jack_cannot_resurrect_itself() -> None:
    lonely = _land_jack([])
    res = resolve_power(lonely, ResurrectCard(card_id="J-spades"))
    assert not res.ok
    assert res.error is not None and res.error.code == "NoResurrectionTargets"
    assert res.state is lonely

    state = _land_jack(["7c"])
    res = resolve_power(state, ResurrectCard(card_id="J-spades"))
    assert res.error is not None and res.error.code == "InvalidChoice"


def test_jack_decline_runs_the_deferred_cascade() -> None:
    state = _land_jack(["7c"], reserve=["9d"])
    res = resolve_power(state, DeclinePower())
    assert res.ok
    assert ids(res.state.play_rows[0])[0] == "3-hearts"
    assert ids(res.state.play_rows[1])[0] == "9-diamonds"
    assert ids(res.state.forgotten) == ["7-clubs", "J-spades"]


def test_cancel_drops_the_decision_but_not_the_spend() -> None:
    state = _land_jack(["7c"])
    cancelled = cancel_pending(state)
    assert cancelled.pending is None
    assert "J-spades" in ids(cancelled.forgotten)
    assert ids(cancelled.play_rows[0])[0] == "3-hearts"

    king = _land_king()
    armed = resolve_power(king, ArmKingDiscard()).state
    after = cancel_pending(armed)
    assert after.pending is None
    assert after.sequences == armed.sequences


def test_cancel_without_pending_is_a_no_op() -> None:
    state = make_state(front=["5h"])
    assert cancel_pending(state) is state


def test_choice_without_pending_is_rejected() -> None:
    state = make_state(front=["5h"])
    res = resolve_power(state, DeclinePower())
    assert res.error is not None and res.error.code == "NoPendingDecision"


def test_wrong_choice_for_power_is_rejected() -> None:
    state = make_state(front=["Qd", "3c"])
    state = apply_move(state, PlayCardAction.to_sequence("Q-diamonds", 0, 0, 0)).state
    res = resolve_power(state, ResurrectCard(card_id="3-clubs"))
    assert res.error is not None and res.error.code == "InvalidChoice"
    assert res.state.pending is not None
