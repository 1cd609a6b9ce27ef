"""Action variants and legal action generation for Remik gameplay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

from . import rules
from .cards import Card
from .melds import Position, can_extend
from .rules import ActionResult
from .state import RoundState, TurnPhase

__all__ = [
    "DrawStock",
    "DrawDiscard",
    "PlayMelds",
    "ExtendMeld",
    "SwapJoker",
    "RepositionJoker",
    "SkipMeld",
    "ReorderHand",
    "Discard",
    "AdvanceRound",
    "Action",
    "apply_action",
    "legal_draw_actions",
    "legal_extend_actions",
    "rank_discard_candidates",
]


@dataclass(frozen=True)
class DrawStock:
    """Take the top card of the stock."""


@dataclass(frozen=True)
class DrawDiscard:
    """Take the top card of the discard pile."""


@dataclass(frozen=True)
class PlayMelds:
    """Lay one or more new melds, each given as card ids."""

    groups: tuple[tuple[int, ...], ...]


@dataclass(frozen=True)
class ExtendMeld:
    meld_index: int
    card_ids: tuple[int, ...]
    position: Position = "end"


@dataclass(frozen=True)
class SwapJoker:
    meld_index: int
    joker_slot: int
    card_id: int


@dataclass(frozen=True)
class RepositionJoker:
    meld_index: int
    joker_slot: int


@dataclass(frozen=True)
class SkipMeld:
    """Stop melding and move to the discard phase."""


@dataclass(frozen=True)
class ReorderHand:
    """Put a player's hand in the given card order."""

    player_index: int
    card_ids: tuple[int, ...]


@dataclass(frozen=True)
class Discard:
    card_id: int


@dataclass(frozen=True)
class AdvanceRound:
    """Deal the next round once the current one is over."""


Action = Union[
    DrawStock,
    DrawDiscard,
    PlayMelds,
    ExtendMeld,
    SwapJoker,
    RepositionJoker,
    SkipMeld,
    ReorderHand,
    Discard,
    AdvanceRound,
]


def apply_action(state: RoundState, action: Action) -> ActionResult:
    """Dispatch ``action`` to the matching rules entry point."""

    if isinstance(action, DrawStock):
        return rules.draw_from_stock(state)
    if isinstance(action, DrawDiscard):
        return rules.draw_from_discard(state)
    if isinstance(action, PlayMelds):
        return rules.play_melds(state, [list(group) for group in action.groups])
    if isinstance(action, ExtendMeld):
        return rules.extend_meld(state, action.meld_index, list(action.card_ids), action.position)
    if isinstance(action, SwapJoker):
        return rules.swap_joker(state, action.meld_index, action.joker_slot, action.card_id)
    if isinstance(action, RepositionJoker):
        return rules.reposition_joker(state, action.meld_index, action.joker_slot)
    if isinstance(action, SkipMeld):
        return rules.skip_meld(state)
    if isinstance(action, ReorderHand):
        return rules.reorder_hand(state, action.player_index, list(action.card_ids))
    if isinstance(action, Discard):
        return rules.discard(state, action.card_id)
    if isinstance(action, AdvanceRound):
        return rules.advance_round(state)
    raise TypeError(f"Unknown action {action!r}")


def legal_draw_actions(state: RoundState) -> list[Action]:
    """Return draw actions available to the current player."""

    if state.phase != TurnPhase.DRAW:
        return []
    actions: list[Action] = [DrawStock()]
    if rules.can_take_discard(state):
        actions.append(DrawDiscard())
    return actions


def legal_extend_actions(state: RoundState) -> list[ExtendMeld]:
    """Return single-card extensions the current player may make."""

    if state.phase != TurnPhase.MELD:
        return []
    player = state.current_player
    if not player.has_opened or not state.table_melds:
        return []

    actions: list[ExtendMeld] = []
    for meld_index, meld in enumerate(state.table_melds):
        for card in player.hand:
            if card.is_joker:
                continue
            for position in ("start", "end"):
                if can_extend(meld.cards, [card], position):
                    actions.append(ExtendMeld(meld_index, (card.id,), position))
                    break
    return actions


def rank_discard_candidates(cards: List[Card]) -> list[Card]:
    """Return discard candidates sorted by a heuristic preference."""

    def score(card: Card) -> tuple[float, int]:
        if card.is_joker:
            return (-100.0, card.id)
        same_rank = sum(1 for other in cards if other.id != card.id and other.rank == card.rank)
        same_suit_neighbors = 0
        for other in cards:
            if other.id == card.id or other.is_joker or other.suit != card.suit:
                continue
            if abs(other.low_index - card.low_index) in (1, 2) or abs(
                other.high_index - card.high_index
            ) in (1, 2):
                same_suit_neighbors += 1
        heuristic = float(card.point_value())
        heuristic -= same_rank * 1.5
        heuristic -= same_suit_neighbors * 3.0
        return heuristic, card.id

    return sorted(cards, key=score, reverse=True)
