from __future__ import annotations

import pytest

from remik import rules, scoreboard


def _summary(round_number: int, winner: int | None, changes: list[int], totals: list[int], *, remik: bool = False):
    return scoreboard.RoundSummary(
        round_number=round_number,
        winner_index=winner,
        is_remik=remik,
        changes=changes,
        totals=totals,
        eliminated=[False for _ in changes],
    )


def test_match_history_accumulates_totals() -> None:
    history = scoreboard.MatchHistory(num_players=2)
    history.record(_summary(1, 0, [-20, 84], [-20, 84], remik=True))
    history.record(_summary(2, 1, [35, -10], [15, 74]))
    history.record(_summary(3, None, [4, 9], [19, 83]))

    totals = history.totals()
    assert len(history.rounds) == 3
    assert [total.wins for total in totals] == [1, 1]
    assert [total.remiks for total in totals] == [1, 0]
    assert [total.penalty_points for total in totals] == [39, 93]
    assert [total.score for total in totals] == [19, 83]


def test_match_history_validates_player_count() -> None:
    history = scoreboard.MatchHistory(num_players=2)

    with pytest.raises(ValueError):
        history.record(_summary(1, 0, [-10, 5, 5], [-10, 5, 5]))
    with pytest.raises(ValueError):
        history.record(_summary(1, 4, [-10, 5], [-10, 5]))
    with pytest.raises(ValueError):
        scoreboard.MatchHistory(num_players=0)


def test_empty_history_totals_are_zero() -> None:
    totals = scoreboard.MatchHistory(num_players=3).totals()

    assert [total.score for total in totals] == [0, 0, 0]
    assert not any(total.eliminated for total in totals)


def test_summarize_round_requires_finished_round() -> None:
    state = rules.create_round(["A", "B"], seed=2)

    with pytest.raises(ValueError):
        scoreboard.summarize_round(state)

    state.stock = []
    rules.discard(state, state.players[0].hand[0].id)
    rules.draw_from_stock(state)
    summary = scoreboard.summarize_round(state)

    assert summary.round_number == 1
    assert summary.winner_index is None
    assert list(summary.changes) == state.round_changes
    assert list(summary.totals) == [player.score for player in state.players]
