from __future__ import annotations

import pytest

from remik import actions, benchmark, events, rules
from remik.bot import GreedyBot
from remik.cards import parse_cards
from remik.state import RemikConfig, TurnPhase


def test_bot_plays_a_full_round_conserving_cards() -> None:
    state = rules.create_round(["A", "B", "C"], seed=21)
    counts: list[int] = []
    events.subscribe(state, lambda event: counts.append(state.card_count()))
    bots = [GreedyBot() for _ in state.players]

    summary = benchmark.play_round(state, bots)

    assert state.phase in (TurnPhase.ROUND_OVER, TurnPhase.GAME_OVER)
    assert counts and set(counts) == {state.deck_size}
    assert len(summary.changes) == 3
    if summary.winner_index is not None:
        assert summary.changes[summary.winner_index] in (-10, -20)


def test_bot_opens_when_it_can() -> None:
    state = rules.create_round(["A", "B"], seed=0)
    state.players[0].hand = parse_cards("10S JS QS 8D 8C 8H 2C", start_id=500)
    state.phase = TurnPhase.MELD

    action = GreedyBot().choose_action(state)

    assert isinstance(action, actions.PlayMelds)
    assert sorted(len(group) for group in action.groups) == [3, 3]


def test_bot_skips_when_opening_is_out_of_reach() -> None:
    state = rules.create_round(["A", "B"], seed=0)
    state.players[0].hand = parse_cards("2S 3S 4S 9C", start_id=500)
    state.phase = TurnPhase.MELD

    assert isinstance(GreedyBot().choose_action(state), actions.SkipMeld)


def test_bot_has_no_move_after_round_end() -> None:
    state = rules.create_round(["A", "B"], seed=0)
    state.phase = TurnPhase.ROUND_OVER

    assert GreedyBot().choose_action(state) is None
    assert GreedyBot().play_turn(state) == []


@pytest.mark.parametrize("players", [2, 4])
def test_run_match_records_rounds(players: int) -> None:
    report = benchmark.run_match(players, rounds=2, seed=13)

    assert 1 <= len(report.history.rounds) <= 2
    assert report.final_state.card_count() == report.final_state.deck_size
    for summary in report.history.rounds:
        assert len(summary.changes) == players
    totals = report.history.totals()
    assert [total.score for total in totals] == [player.score for player in report.final_state.players]


def test_run_match_without_opening_requirement() -> None:
    report = benchmark.run_match(3, rounds=1, seed=2, config=RemikConfig(require_opening=False))

    assert len(report.history.rounds) == 1


def test_run_match_stops_on_game_over() -> None:
    report = benchmark.run_match(2, rounds=50, seed=5, config=RemikConfig(points_to_eliminate=50))

    assert report.game_over
    assert report.final_state.phase is TurnPhase.GAME_OVER
    assert len(report.history.rounds) < 50


def test_run_match_rejects_zero_rounds() -> None:
    with pytest.raises(ValueError):
        benchmark.run_match(2, rounds=0)


def test_play_round_enforces_turn_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(benchmark, "TURN_LIMIT", 1)
    state = rules.create_round(["A", "B"], seed=3)

    with pytest.raises(RuntimeError):
        benchmark.play_round(state, [GreedyBot(), GreedyBot()])
