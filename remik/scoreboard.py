"""Helpers for tracking multi-round Remik match results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .state import RoundState, TurnPhase

__all__ = ["RoundSummary", "PlayerMatchTotal", "MatchHistory", "summarize_round"]


@dataclass(frozen=True, slots=True)
class RoundSummary:
    """Summary statistics captured after a single round."""

    round_number: int
    winner_index: int | None
    is_remik: bool
    changes: Sequence[int]
    totals: Sequence[int]
    eliminated: Sequence[bool]


@dataclass(frozen=True, slots=True)
class PlayerMatchTotal:
    """Aggregate match totals accumulated across all recorded rounds."""

    player_index: int
    wins: int
    remiks: int
    penalty_points: int
    score: int
    eliminated: bool


def summarize_round(state: RoundState) -> RoundSummary:
    """Build a :class:`RoundSummary` from a finished round."""

    if state.phase not in (TurnPhase.ROUND_OVER, TurnPhase.GAME_OVER):
        raise ValueError("round is still in progress")
    return RoundSummary(
        round_number=state.round_number,
        winner_index=state.round_winner,
        is_remik=state.is_remik,
        changes=tuple(state.round_changes),
        totals=tuple(player.score for player in state.players),
        eliminated=tuple(player.eliminated for player in state.players),
    )


@dataclass(slots=True)
class MatchHistory:
    """Mutable tracker that accumulates round summaries for a match."""

    num_players: int
    rounds: list[RoundSummary] = field(default_factory=list)
    _wins: list[int] = field(init=False, repr=False)
    _remiks: list[int] = field(init=False, repr=False)
    _penalties: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.num_players <= 0:
            raise ValueError("num_players must be positive")
        self._wins = [0 for _ in range(self.num_players)]
        self._remiks = [0 for _ in range(self.num_players)]
        self._penalties = [0 for _ in range(self.num_players)]

    def record(self, summary: RoundSummary) -> None:
        """Record ``summary`` and update cumulative totals."""

        if len(summary.changes) != self.num_players or len(summary.totals) != self.num_players:
            raise ValueError("score count does not match number of players")
        winner = summary.winner_index
        if winner is not None and (winner < 0 or winner >= self.num_players):
            raise ValueError("player index out of range")
        self.rounds.append(summary)
        for idx, change in enumerate(summary.changes):
            if change > 0:
                self._penalties[idx] += change
        if winner is not None:
            self._wins[winner] += 1
            if summary.is_remik:
                self._remiks[winner] += 1

    def totals(self) -> list[PlayerMatchTotal]:
        """Return the cumulative totals for each player in seating order."""

        last = self.rounds[-1] if self.rounds else None
        return [
            PlayerMatchTotal(
                player_index=idx,
                wins=self._wins[idx],
                remiks=self._remiks[idx],
                penalty_points=self._penalties[idx],
                score=last.totals[idx] if last else 0,
                eliminated=last.eliminated[idx] if last else False,
            )
            for idx in range(self.num_players)
        ]
