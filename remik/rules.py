"""Rule utilities and turn transitions for Remik."""

from __future__ import annotations

import functools
import random
from dataclasses import dataclass
from typing import Callable, Final, Sequence

import structlog

from . import events
from .cards import Card, Rank, deal, shuffled_deck
from .events import GameEvent
from .melds import (
    MeldKind,
    Position,
    can_extend,
    classify,
    find_candidate_melds,
    fits_ace_high,
    fits_ace_low,
)
from .state import PlayerState, RemikConfig, RoundState, TableMeld, TurnPhase

__all__ = [
    "DEFAULT_OPEN_REQUIREMENT",
    "WIN_BONUS",
    "REMIK_BONUS",
    "MAX_RESHUFFLES",
    "IllegalAction",
    "PhaseViolation",
    "OwnershipViolation",
    "RuleViolation",
    "IndexViolation",
    "ActionResult",
    "OpeningCheck",
    "melds_points",
    "has_pure_sub_run",
    "is_valid_opening",
    "round_penalty",
    "can_use_drawn_card",
    "can_take_discard",
    "create_round",
    "draw_from_stock",
    "draw_from_discard",
    "play_melds",
    "extend_meld",
    "swap_joker",
    "reposition_joker",
    "skip_meld",
    "reorder_hand",
    "discard",
    "advance_round",
]

logger = structlog.get_logger()

DEFAULT_OPEN_REQUIREMENT: Final[int] = 51
WIN_BONUS: Final[int] = -10
REMIK_BONUS: Final[int] = -20
MAX_RESHUFFLES: Final[int] = 2

_MUST_USE_DRAWN = "You must use the card drawn from the discard pile in a meld before ending your turn."


class IllegalAction(RuntimeError):
    """Raised by rule checks when an action may not be applied."""

    kind = "rule"


class PhaseViolation(IllegalAction):
    """Raised when an action is attempted outside its legal phase."""

    kind = "phase"


class OwnershipViolation(IllegalAction):
    """Raised when referenced cards are not in the acting player's hand."""

    kind = "ownership"


class RuleViolation(IllegalAction):
    """Raised when a meld, opening or discard breaks the rules."""

    kind = "rule"


class IndexViolation(IllegalAction):
    """Raised for meld, slot or player indices that do not exist."""

    kind = "index"


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of a mutating entry point."""

    success: bool
    reason: str | None = None
    error: str | None = None
    card: Card | None = None


@dataclass(frozen=True, slots=True)
class OpeningCheck:
    """Result of validating an opening play."""

    valid: bool
    reason: str | None = None
    points: int = 0


# -- opening and scoring ------------------------------------------------------


def _is_low_ace_meld(meld: Sequence[Card]) -> bool:
    if not any(card.rank is Rank.ACE for card in meld):
        return False
    return fits_ace_low(meld) and not fits_ace_high(meld)


def melds_points(melds: Sequence[Sequence[Card]]) -> int:
    """Return the opening value of ``melds``.

    An ace counts 1 inside a sequence that only fits with the ace low, and 11
    everywhere else.
    """

    total = 0
    for meld in melds:
        low_ace = _is_low_ace_meld(meld)
        total += sum(card.point_value(low_ace=low_ace) for card in meld)
    return total


def _has_run_of_three(indices: Sequence[int]) -> bool:
    ordered = sorted(set(indices))
    run = 1
    for prev, curr in zip(ordered, ordered[1:]):
        run = run + 1 if curr == prev + 1 else 1
        if run >= 3:
            return True
    return False


def has_pure_sub_run(naturals: Sequence[Card]) -> bool:
    """Return ``True`` if ``naturals`` hold 3+ consecutive ranks under either ace reading."""

    cards = [card for card in naturals if not card.is_joker]
    if len(cards) < 3:
        return False
    if _has_run_of_three([card.low_index for card in cards]):
        return True
    return _has_run_of_three([card.high_index for card in cards])


def is_valid_opening(
    melds: Sequence[Sequence[Card]], requirement: int = DEFAULT_OPEN_REQUIREMENT
) -> OpeningCheck:
    """Check the opening gate: valid melds, a pure sequence and enough points."""

    if not melds:
        return OpeningCheck(False, "You must play at least one meld to open.")

    for index, meld in enumerate(melds, start=1):
        if classify(meld) is None:
            return OpeningCheck(False, f"Meld {index} is not a valid sequence or group.")

    if not any(
        classify(meld) is MeldKind.SEQUENCE and has_pure_sub_run(meld) for meld in melds
    ):
        return OpeningCheck(
            False, "Opening requires at least one sequence with 3+ consecutive natural cards."
        )

    points = melds_points(melds)
    if points < requirement:
        return OpeningCheck(
            False,
            f"Opening requires at least {requirement} points (you have {points}).",
            points,
        )
    return OpeningCheck(True, None, points)


def round_penalty(hand: Sequence[Card]) -> int:
    """Return the end-of-round penalty for ``hand``; aces always count 11."""

    return sum(card.point_value() for card in hand)


def _melds_containing(card: Card, hand: Sequence[Card]) -> list[list[Card]]:
    candidates = find_candidate_melds(hand)
    if card.is_joker:
        return [[*meld, card] for meld in candidates if classify([*meld, card]) is not None]
    return [meld for meld in candidates if any(other.id == card.id for other in meld)]


def _opens_with(card: Card, hand: Sequence[Card], requirement: int) -> bool:
    ranked = sorted(find_candidate_melds(hand), key=lambda meld: melds_points([meld]), reverse=True)
    for meld in _melds_containing(card, hand):
        chosen = [meld]
        used = {other.id for other in meld}
        for extra in ranked:
            if used.isdisjoint(other.id for other in extra):
                chosen.append(extra)
                used.update(other.id for other in extra)
        if is_valid_opening(chosen, requirement).valid:
            return True
    return False


def can_use_drawn_card(
    card: Card,
    hand: Sequence[Card],
    table: Sequence[Sequence[Card]],
    *,
    opened: bool,
    config: RemikConfig,
) -> bool:
    """Return ``True`` if ``card`` (held in ``hand``) can be laid this turn.

    The card counts as usable when it extends an end of a table meld, or when
    it completes a meld found in ``hand``. A player who has not opened must be
    able to open with a set of melds that includes the card.
    """

    if opened and any(
        can_extend(meld, [card], position) for meld in table for position in ("start", "end")
    ):
        return True
    if opened or not config.require_opening:
        return bool(_melds_containing(card, hand))
    return _opens_with(card, hand, config.open_requirement)


def can_take_discard(state: RoundState) -> bool:
    """Return ``True`` if the current player may take the top discard."""

    if not state.discard_pile:
        return False
    player = state.current_player
    top = state.discard_pile[-1]
    return can_use_drawn_card(
        top,
        [*player.hand, top],
        [meld.cards for meld in state.table_melds],
        opened=player.has_opened,
        config=state.config,
    )


# -- state machine helpers ----------------------------------------------------


def _entry_point(func: Callable[..., ActionResult]) -> Callable[..., ActionResult]:
    """Turn :class:`IllegalAction` into a failed :class:`ActionResult`."""

    @functools.wraps(func)
    def wrapper(state: RoundState, *args, **kwargs) -> ActionResult:
        try:
            return func(state, *args, **kwargs)
        except IllegalAction as exc:
            logger.debug(
                "action rejected",
                action=func.__name__,
                player=state.current_player_index,
                error=exc.kind,
                reason=str(exc),
            )
            return ActionResult(success=False, reason=str(exc), error=exc.kind)

    return wrapper


def _require_phase(state: RoundState, *phases: TurnPhase) -> None:
    if state.phase in phases:
        return
    if state.phase in (TurnPhase.ROUND_OVER, TurnPhase.GAME_OVER):
        raise PhaseViolation("The round is over.")
    names = " or ".join(phase.value.lower() for phase in phases)
    raise PhaseViolation(f"Not in {names} phase.")


def _require_opened(player: PlayerState, action: str) -> None:
    if not player.has_opened:
        raise RuleViolation(f"You must open before {action}.")


def _require_meld(state: RoundState, meld_index: int) -> TableMeld:
    if meld_index < 0 or meld_index >= len(state.table_melds):
        raise IndexViolation("Invalid meld index.")
    return state.table_melds[meld_index]


def _resolve_cards(player: PlayerState, card_ids: Sequence[int]) -> list[Card]:
    if len(set(card_ids)) != len(card_ids):
        raise RuleViolation("A card may only be used once.")
    cards: list[Card] = []
    for card_id in card_ids:
        card = player.find_card(card_id)
        if card is None:
            raise OwnershipViolation(f"Card {card_id} is not in your hand.")
        cards.append(card)
    return cards


def _emit(state: RoundState, kind: events.EventKind, **payload) -> None:
    events.emit(state, GameEvent(kind=kind, player_index=state.current_player_index, payload=payload))


def _pending_drawn_card(state: RoundState) -> Card | None:
    """Return the discard-pile card still waiting to be melded this turn."""

    if not state.drawn_from_discard or state.drawn_card_id is None:
        return None
    return state.current_player.find_card(state.drawn_card_id)


def _keep_drawn_card_usable(
    state: RoundState, hand: Sequence[Card], table: Sequence[Sequence[Card]]
) -> None:
    card = _pending_drawn_card(state)
    if card is None or all(other.id != card.id for other in hand):
        return
    if not can_use_drawn_card(card, hand, table, opened=True, config=state.config):
        raise RuleViolation("That would leave no way to meld the card drawn from the discard pile.")


def _begin_turn(state: RoundState, player_index: int, phase: TurnPhase) -> None:
    state.current_player_index = player_index
    state.phase = phase
    state.drawn_card_id = None
    state.drawn_from_discard = False
    state.opened_before_turn = state.players[player_index].has_opened


def _next_active(state: RoundState, index: int) -> int:
    count = len(state.players)
    candidate = (index + 1) % count
    for _ in range(count):
        if not state.players[candidate].eliminated:
            return candidate
        candidate = (candidate + 1) % count
    return index


def _start_round(state: RoundState) -> None:
    config = state.config
    deck = shuffled_deck(config.joker_count, state.rng)
    counts = [
        0
        if player.eliminated
        else config.hand_size_first
        if idx == state.starting_player_index
        else config.hand_size_other
        for idx, player in enumerate(state.players)
    ]
    hands, stock = deal(deck, counts)
    for player, hand in zip(state.players, hands):
        player.hand = hand
        player.has_opened = False

    state.stock = stock
    state.discard_pile = []
    state.table_melds = []
    state.reshuffle_count = 0
    state.round_winner = None
    state.is_remik = False
    state.round_changes = []
    # The starting player holds the extra card and begins by discarding.
    _begin_turn(state, state.starting_player_index, TurnPhase.DISCARD)

    logger.info(
        "round started",
        round_number=state.round_number,
        starting_player=state.starting_player_index,
        stock=len(state.stock),
    )
    _emit(state, "round_start", round_number=state.round_number)


def _end_round(state: RoundState, winner_index: int | None) -> None:
    is_remik = winner_index is not None and not state.opened_before_turn

    changes: list[int] = []
    for idx, player in enumerate(state.players):
        if player.eliminated:
            changes.append(0)
            continue
        if idx == winner_index:
            change = REMIK_BONUS if is_remik else WIN_BONUS
        else:
            change = round_penalty(player.hand)
            if is_remik:
                change *= 2
        player.score += change
        changes.append(change)

    for player in state.players:
        if player.score >= state.config.points_to_eliminate:
            player.eliminated = True

    state.round_winner = winner_index
    state.is_remik = is_remik
    state.round_changes = changes
    state.drawn_card_id = None
    state.drawn_from_discard = False
    state.phase = TurnPhase.GAME_OVER if len(state.active_players()) <= 1 else TurnPhase.ROUND_OVER

    logger.info(
        "round ended",
        round_number=state.round_number,
        winner=winner_index,
        remik=is_remik,
        changes=changes,
        phase=state.phase.value,
    )
    _emit(
        state,
        "round_end",
        winner_index=winner_index,
        is_remik=is_remik,
        changes=list(changes),
        scores=[player.score for player in state.players],
        game_over=state.phase is TurnPhase.GAME_OVER,
    )


def _reshuffle_if_needed(state: RoundState) -> bool:
    """Rebuild the stock from the discard pile; return ``False`` once the round is exhausted."""

    if state.stock:
        return True
    if len(state.discard_pile) < 2:
        return False
    state.reshuffle_count += 1
    if state.reshuffle_count >= MAX_RESHUFFLES:
        return False

    top = state.discard_pile.pop()
    pool = list(state.discard_pile)
    state.rng.shuffle(pool)
    state.stock = pool
    state.discard_pile = [top]
    logger.info("stock reshuffled", stock=len(state.stock), reshuffle_count=state.reshuffle_count)
    _emit(state, "reshuffle", stock_count=len(state.stock))
    return True


def _finish_if_empty(state: RoundState, player: PlayerState) -> None:
    if not player.hand:
        _end_round(state, state.current_player_index)


# -- entry points -------------------------------------------------------------


def create_round(
    players: Sequence[str],
    config: RemikConfig | None = None,
    *,
    seed: int | None = None,
    rng: random.Random | None = None,
) -> RoundState:
    """Create a game with ``players`` and deal its first round."""

    if len(players) < 2:
        raise ValueError("Remik needs at least two players")
    state = RoundState(
        players=[PlayerState(name=name) for name in players],
        config=config or RemikConfig(),
        rng=rng or random.Random(seed),
    )
    required = state.config.hand_size_first + state.config.hand_size_other * (len(players) - 1)
    if required > state.deck_size:
        raise ValueError("insufficient cards in deck for requested hand sizes")
    _start_round(state)
    return state


@_entry_point
def draw_from_stock(state: RoundState) -> ActionResult:
    """Draw the top stock card, reshuffling the discard pile first when needed."""

    _require_phase(state, TurnPhase.DRAW)

    if not _reshuffle_if_needed(state):
        _end_round(state, None)
        return ActionResult(success=True, reason="Stock exhausted, round over.")

    card = state.stock.pop()
    player = state.current_player
    player.hand.append(card)
    state.drawn_card_id = card.id
    state.drawn_from_discard = False
    state.phase = TurnPhase.MELD

    logger.debug("card drawn", player=state.current_player_index, source="stock", card_id=card.id)
    _emit(state, "draw", source="stock", card_id=card.id)
    return ActionResult(success=True, card=card)


@_entry_point
def draw_from_discard(state: RoundState) -> ActionResult:
    """Take the top discard; it must be melded before the turn can end."""

    _require_phase(state, TurnPhase.DRAW)
    if not state.discard_pile:
        raise RuleViolation("Discard pile is empty.")
    if not can_take_discard(state):
        raise RuleViolation("You cannot meld the top discard with your hand or the table.")

    card = state.discard_pile.pop()
    state.current_player.hand.append(card)
    state.drawn_card_id = card.id
    state.drawn_from_discard = True
    state.phase = TurnPhase.MELD

    logger.debug("card drawn", player=state.current_player_index, source="discard", card_id=card.id)
    _emit(state, "draw", source="discard", card_id=card.id, card=card.to_dict())
    return ActionResult(success=True, card=card)


@_entry_point
def play_melds(state: RoundState, groups: Sequence[Sequence[int]]) -> ActionResult:
    """Lay new melds from hand, applying the opening gate for unopened players."""

    _require_phase(state, TurnPhase.MELD)
    if not groups or any(not ids for ids in groups):
        raise RuleViolation("Select at least one meld to play.")

    player = state.current_player
    flat_ids = [card_id for ids in groups for card_id in ids]
    _resolve_cards(player, flat_ids)
    melds = [_resolve_cards(player, ids) for ids in groups]

    kinds: list[MeldKind] = []
    for index, meld in enumerate(melds, start=1):
        kind = classify(meld)
        if kind is None:
            raise RuleViolation(f"Meld {index} is not a valid sequence or group.")
        kinds.append(kind)

    if not player.has_opened and state.config.require_opening:
        check = is_valid_opening(melds, state.config.open_requirement)
        if not check.valid:
            raise RuleViolation(check.reason or "Opening requirement not met.")

    used = set(flat_ids)
    _keep_drawn_card_usable(
        state,
        [card for card in player.hand if card.id not in used],
        [*(table_meld.cards for table_meld in state.table_melds), *melds],
    )

    player.remove_cards(flat_ids)
    for meld, kind in zip(melds, kinds):
        state.table_melds.append(TableMeld(cards=list(meld), owner=state.current_player_index, kind=kind))
    player.has_opened = True

    logger.debug("melds played", player=state.current_player_index, melds=len(melds))
    _emit(state, "meld", melds=[[card.id for card in meld] for meld in melds])
    _finish_if_empty(state, player)
    return ActionResult(success=True)


@_entry_point
def extend_meld(
    state: RoundState,
    meld_index: int,
    card_ids: Sequence[int],
    position: Position = "end",
) -> ActionResult:
    """Add hand cards to either end of a table meld."""

    _require_phase(state, TurnPhase.MELD)
    player = state.current_player
    _require_opened(player, "adding to existing melds")
    meld = _require_meld(state, meld_index)
    if position not in ("start", "end"):
        raise RuleViolation("Position must be 'start' or 'end'.")
    if not card_ids:
        raise RuleViolation("Select at least one card to add.")
    cards = _resolve_cards(player, card_ids)
    if not can_extend(meld.cards, cards, position):
        raise RuleViolation("Adding these cards would make the meld invalid.")

    combined = [*cards, *meld.cards] if position == "start" else [*meld.cards, *cards]
    kind = classify(combined)
    if kind is None:
        raise RuleViolation("Adding these cards would make the meld invalid.")
    moved = set(card_ids)
    _keep_drawn_card_usable(
        state,
        [card for card in player.hand if card.id not in moved],
        [combined if index == meld_index else other.cards for index, other in enumerate(state.table_melds)],
    )
    player.remove_cards(card_ids)
    meld.cards = combined
    meld.kind = kind

    logger.debug(
        "meld extended",
        player=state.current_player_index,
        meld_index=meld_index,
        position=position,
        cards=list(card_ids),
    )
    _emit(state, "extend", meld_index=meld_index, card_ids=list(card_ids), position=position)
    _finish_if_empty(state, player)
    return ActionResult(success=True)


@_entry_point
def swap_joker(state: RoundState, meld_index: int, joker_slot: int, card_id: int) -> ActionResult:
    """Replace the joker at ``joker_slot`` with a natural hand card; the joker goes to hand."""

    _require_phase(state, TurnPhase.MELD)
    if not state.config.allow_joker_swap:
        raise RuleViolation("Joker swapping is disabled.")
    player = state.current_player
    _require_opened(player, "swapping jokers")
    meld = _require_meld(state, meld_index)
    if joker_slot < 0 or joker_slot >= len(meld.cards) or not meld.cards[joker_slot].is_joker:
        raise IndexViolation("No joker at that position.")
    (hand_card,) = _resolve_cards(player, [card_id])
    if hand_card.is_joker:
        raise RuleViolation("Cannot swap a joker with a joker.")

    candidate = list(meld.cards)
    joker = candidate[joker_slot]
    candidate[joker_slot] = hand_card
    kind = classify(candidate)
    if kind is None:
        raise RuleViolation("That card does not match what the joker represents in this meld.")
    _keep_drawn_card_usable(
        state,
        [*(card for card in player.hand if card.id != card_id), joker],
        [candidate if index == meld_index else other.cards for index, other in enumerate(state.table_melds)],
    )

    player.remove_cards([card_id])
    player.hand.append(joker)
    meld.cards = candidate
    meld.kind = kind

    logger.debug(
        "joker swapped",
        player=state.current_player_index,
        meld_index=meld_index,
        slot=joker_slot,
        card_id=card_id,
    )
    _emit(state, "joker_swap", meld_index=meld_index, joker_slot=joker_slot, card_id=card_id)
    return ActionResult(success=True, card=joker)


@_entry_point
def reposition_joker(state: RoundState, meld_index: int, joker_slot: int) -> ActionResult:
    """Move a joker from one end of a table meld to the other."""

    _require_phase(state, TurnPhase.MELD)
    player = state.current_player
    _require_opened(player, "moving jokers")
    meld = _require_meld(state, meld_index)
    last = len(meld.cards) - 1
    if joker_slot not in (0, last):
        raise IndexViolation("Can only reposition jokers at the start or end of a meld.")
    if not meld.cards[joker_slot].is_joker:
        raise IndexViolation("No joker at that position.")

    joker = meld.cards[joker_slot]
    candidate = [*meld.cards[1:], joker] if joker_slot == 0 else [joker, *meld.cards[:-1]]
    kind = classify(candidate)
    if kind is None:
        raise RuleViolation("Moving the joker would invalidate the meld.")
    _keep_drawn_card_usable(
        state,
        player.hand,
        [candidate if index == meld_index else other.cards for index, other in enumerate(state.table_melds)],
    )
    meld.cards = candidate
    meld.kind = kind

    logger.debug("joker repositioned", player=state.current_player_index, meld_index=meld_index)
    _emit(
        state,
        "joker_reposition",
        meld_index=meld_index,
        source="start" if joker_slot == 0 else "end",
    )
    return ActionResult(success=True)


@_entry_point
def skip_meld(state: RoundState) -> ActionResult:
    """Finish melding and move to the discard phase."""

    _require_phase(state, TurnPhase.MELD)
    if _pending_drawn_card(state) is not None:
        raise RuleViolation(_MUST_USE_DRAWN)
    state.phase = TurnPhase.DISCARD
    _emit(state, "skip_meld")
    return ActionResult(success=True)


@_entry_point
def reorder_hand(state: RoundState, player_index: int, card_ids: Sequence[int]) -> ActionResult:
    """Rearrange a player's hand; ``card_ids`` must name exactly the cards held."""

    if player_index < 0 or player_index >= len(state.players):
        raise IndexViolation("Invalid player index.")
    player = state.players[player_index]
    if len(card_ids) != len(player.hand):
        raise OwnershipViolation("Card count mismatch.")
    if sorted(card_ids) != sorted(card.id for card in player.hand):
        raise OwnershipViolation("Those cards do not match your hand.")

    by_id = {card.id: card for card in player.hand}
    player.hand = [by_id[card_id] for card_id in card_ids]
    logger.debug("hand reordered", player=player_index, cards=len(card_ids))
    return ActionResult(success=True)


@_entry_point
def discard(state: RoundState, card_id: int) -> ActionResult:
    """Discard one card to end the turn; an emptied hand wins the round."""

    _require_phase(state, TurnPhase.MELD, TurnPhase.DISCARD)
    player = state.current_player
    (card,) = _resolve_cards(player, [card_id])
    if state.drawn_from_discard and state.drawn_card_id is not None:
        if card_id == state.drawn_card_id:
            raise RuleViolation("Cannot discard the card you just drew from the discard pile.")
        if player.find_card(state.drawn_card_id) is not None:
            raise RuleViolation(_MUST_USE_DRAWN)

    player.remove_cards([card_id])
    state.discard_pile.append(card)
    discarder = state.current_player_index

    logger.debug("card discarded", player=discarder, card_id=card_id, hand=len(player.hand))
    _emit(state, "discard", card_id=card_id, card=card.to_dict())

    if not player.hand:
        _end_round(state, discarder)
    else:
        _begin_turn(state, _next_active(state, discarder), TurnPhase.DRAW)
    return ActionResult(success=True, card=card)


@_entry_point
def advance_round(state: RoundState) -> ActionResult:
    """Rotate the starting player past eliminated seats and deal the next round."""

    if state.phase is TurnPhase.GAME_OVER:
        raise PhaseViolation("The game is over.")
    if state.phase is not TurnPhase.ROUND_OVER:
        raise PhaseViolation("The round is still in progress.")

    state.round_number += 1
    state.starting_player_index = _next_active(state, state.starting_player_index)
    _start_round(state)
    return ActionResult(success=True)
