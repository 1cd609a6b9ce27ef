"""Simulation harness for bot-only Remik matches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog

from . import rules, scoreboard
from .bot import GreedyBot
from .state import RemikConfig, RoundState, TurnPhase

__all__ = ["MatchReport", "play_round", "run_match"]

logger = structlog.get_logger()

TURN_LIMIT = 2000


@dataclass(frozen=True, slots=True)
class MatchReport:
    """Outcome of a simulated match."""

    history: scoreboard.MatchHistory
    final_state: RoundState
    game_over: bool


def play_round(state: RoundState, bots: Sequence[GreedyBot]) -> scoreboard.RoundSummary:
    """Let ``bots`` play the current round to completion and summarize it."""

    for _ in range(TURN_LIMIT):
        if state.phase in (TurnPhase.ROUND_OVER, TurnPhase.GAME_OVER):
            break
        bots[state.current_player_index].play_turn(state)
    else:
        raise RuntimeError("round did not finish within the turn limit")
    return scoreboard.summarize_round(state)


def run_match(
    num_players: int = 4,
    rounds: int = 1,
    *,
    seed: int | None = None,
    config: RemikConfig | None = None,
    names: Sequence[str] | None = None,
) -> MatchReport:
    """Play up to ``rounds`` rounds between greedy bots, stopping early on game over."""

    if rounds <= 0:
        raise ValueError("rounds must be positive")
    players = list(names) if names is not None else [f"Bot {idx + 1}" for idx in range(num_players)]
    state = rules.create_round(players, config, seed=seed)
    bots = [GreedyBot() for _ in players]
    history = scoreboard.MatchHistory(len(players))

    for round_index in range(rounds):
        if round_index:
            result = rules.advance_round(state)
            if not result.success:
                raise RuntimeError(result.reason)
        history.record(play_round(state, bots))
        logger.info(
            "simulated round",
            round_number=state.round_number,
            winner=state.round_winner,
            remik=state.is_remik,
        )
        if state.phase is TurnPhase.GAME_OVER:
            break

    return MatchReport(
        history=history,
        final_state=state,
        game_over=state.phase is TurnPhase.GAME_OVER,
    )
