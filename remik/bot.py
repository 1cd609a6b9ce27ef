"""Greedy heuristic player driven entirely through public actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog

from . import actions
from .actions import Action
from .cards import Card
from .melds import can_extend, classify, find_candidate_melds
from .rules import is_valid_opening, melds_points
from .state import RoundState, TurnPhase

__all__ = ["GreedyBot"]

logger = structlog.get_logger()


def _pick_disjoint(candidates: Sequence[list[Card]]) -> list[list[Card]]:
    """Greedily select non-overlapping melds, highest value first."""

    ranked = sorted(candidates, key=lambda meld: (melds_points([meld]), len(meld)), reverse=True)
    used: set[int] = set()
    chosen: list[list[Card]] = []
    for meld in ranked:
        if any(card.id in used for card in meld):
            continue
        chosen.append(meld)
        used.update(card.id for card in meld)
    return chosen


def _as_action(melds: Sequence[Sequence[Card]]) -> actions.PlayMelds:
    return actions.PlayMelds(tuple(tuple(card.id for card in meld) for meld in melds))


@dataclass(slots=True)
class GreedyBot:
    """Plays melds as soon as it can and discards its least connected card.

    The bot never touches state directly: every decision is an :data:`Action`
    submitted through :func:`actions.apply_action`.
    """

    max_steps: int = 64

    def choose_action(self, state: RoundState) -> Action | None:
        """Return the next action for the current player, or ``None`` if the round is over."""

        if state.phase is TurnPhase.DRAW:
            return self._choose_draw(state)
        if state.phase is TurnPhase.MELD:
            return self._choose_meld(state)
        if state.phase is TurnPhase.DISCARD:
            return self._choose_discard(state)
        return None

    def play_turn(self, state: RoundState) -> list[Action]:
        """Act for the current player until the turn passes or the round ends."""

        player_index = state.current_player_index
        round_number = state.round_number
        taken: list[Action] = []
        for _ in range(self.max_steps):
            if (
                state.current_player_index != player_index
                or state.round_number != round_number
                or state.phase in (TurnPhase.ROUND_OVER, TurnPhase.GAME_OVER)
            ):
                break
            action = self.choose_action(state)
            if action is None:
                break
            result = actions.apply_action(state, action)
            if not result.success:
                raise RuntimeError(f"bot chose an illegal action {action!r}: {result.reason}")
            taken.append(action)
        else:
            raise RuntimeError("bot exceeded its step budget")
        logger.debug("bot turn", player=player_index, actions=len(taken))
        return taken

    def _choose_draw(self, state: RoundState) -> Action:
        player = state.current_player
        if player.has_opened and state.discard_pile:
            top = state.discard_pile[-1]
            if not top.is_joker and any(
                can_extend(meld.cards, [top], position)
                for meld in state.table_melds
                for position in ("start", "end")
            ):
                return actions.DrawDiscard()
        return actions.DrawStock()

    def _choose_meld(self, state: RoundState) -> Action:
        player = state.current_player
        melds = _pick_disjoint(find_candidate_melds(player.hand))

        if not player.has_opened and state.config.require_opening:
            if melds and is_valid_opening(melds, state.config.open_requirement).valid:
                return _as_action(melds)
            return actions.SkipMeld()

        if melds:
            return _as_action(melds)

        drawn = state.drawn_card_id if state.drawn_from_discard else None
        extensions = actions.legal_extend_actions(state)
        extensions.sort(key=lambda action: action.card_ids != (drawn,))
        if extensions:
            return extensions[0]

        swap = self._find_joker_swap(state)
        if swap is not None:
            return swap
        return actions.SkipMeld()

    def _find_joker_swap(self, state: RoundState) -> Action | None:
        if not state.config.allow_joker_swap or not state.current_player.has_opened:
            return None
        hand = [card for card in state.current_player.hand if not card.is_joker]
        for meld_index, meld in enumerate(state.table_melds):
            for slot, card in enumerate(meld.cards):
                if not card.is_joker:
                    continue
                for natural in hand:
                    replaced = [*meld.cards[:slot], natural, *meld.cards[slot + 1 :]]
                    if classify(replaced) is not None:
                        return actions.SwapJoker(meld_index, slot, natural.id)
        return None

    def _choose_discard(self, state: RoundState) -> Action:
        hand = list(state.current_player.hand)
        for card in actions.rank_discard_candidates(hand):
            candidate = actions.Discard(card.id)
            if actions.apply_action(state.clone(), candidate).success:
                return candidate
        raise RuntimeError("no legal discard available")
