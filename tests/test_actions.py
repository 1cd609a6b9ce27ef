from __future__ import annotations

import random

import pytest

from remik import actions
from remik.cards import parse_cards
from remik.melds import MeldKind
from remik.state import PlayerState, RoundState, TableMeld, TurnPhase


def _make_state_for_meld() -> RoundState:
    hand = parse_cards("8H 4H 9C JOKER", start_id=1)
    table = parse_cards("5H 6H 7H", start_id=10)
    players = [PlayerState(name="P0", hand=hand, has_opened=True), PlayerState(name="P1", hand=parse_cards("2C", 20))]
    return RoundState(
        players=players,
        stock=parse_cards("KD", 30),
        discard_pile=parse_cards("QD", 40),
        table_melds=[TableMeld(cards=table, owner=1, kind=MeldKind.SEQUENCE)],
        phase=TurnPhase.MELD,
        rng=random.Random(0),
    )


def test_apply_action_dispatches_to_rules() -> None:
    state = _make_state_for_meld()

    result = actions.apply_action(state, actions.ExtendMeld(0, (1,), "end"))

    assert result.success
    assert len(state.table_melds[0].cards) == 4

    assert actions.apply_action(state, actions.SkipMeld()).success
    assert actions.apply_action(state, actions.Discard(3)).success
    assert state.current_player_index == 1


def test_apply_action_reports_failures() -> None:
    state = _make_state_for_meld()

    result = actions.apply_action(state, actions.DrawStock())

    assert not result.success
    assert result.error == "phase"


def test_apply_action_rejects_unknown_variants() -> None:
    with pytest.raises(TypeError):
        actions.apply_action(_make_state_for_meld(), object())  # type: ignore[arg-type]


def test_legal_draw_actions() -> None:
    state = _make_state_for_meld()
    assert actions.legal_draw_actions(state) == []

    state.phase = TurnPhase.DRAW
    assert actions.legal_draw_actions(state) == [actions.DrawStock()]

    state.discard_pile = parse_cards("QD 4H", 40)
    assert actions.legal_draw_actions(state) == [actions.DrawStock(), actions.DrawDiscard()]

    state.discard_pile = []
    assert actions.legal_draw_actions(state) == [actions.DrawStock()]


def test_legal_extend_actions_find_both_ends() -> None:
    state = _make_state_for_meld()

    legal = actions.legal_extend_actions(state)

    assert actions.ExtendMeld(0, (1,), "end") in legal
    assert actions.ExtendMeld(0, (2,), "start") in legal
    assert all(action.card_ids != (3,) for action in legal)
    assert all(action.card_ids != (4,) for action in legal)


def test_rank_discard_candidates_prefers_isolated_high_cards() -> None:
    hand = parse_cards("KS 5H 6H JOKER 2C")

    ranked = actions.rank_discard_candidates(hand)

    assert ranked[0].label() == "K♠"
    assert ranked[-1].is_joker


def test_apply_action_reorders_hand() -> None:
    state = _make_state_for_meld()

    result = actions.apply_action(state, actions.ReorderHand(0, (4, 3, 2, 1)))

    assert result.success
    assert [card.id for card in state.players[0].hand] == [4, 3, 2, 1]
    assert state.phase is TurnPhase.MELD
