"""Meld classification, extension and auto-split for Remik."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, Literal, Sequence

from .cards import ACE_HIGH_RANGE, ACE_LOW_RANGE, Card, Rank, Suit

__all__ = [
    "MeldKind",
    "Position",
    "classify",
    "is_valid_sequence",
    "is_valid_group",
    "fits_ace_low",
    "fits_ace_high",
    "can_extend",
    "auto_split",
    "find_candidate_melds",
]

Position = Literal["start", "end"]


class MeldKind(str, Enum):
    """Shape of a validated meld."""

    SEQUENCE = "sequence"
    GROUP = "group"


def _naturals(cards: Iterable[Card]) -> list[Card]:
    return [card for card in cards if not card.is_joker]


def _can_fit_in_range(ranks: Sequence[int], joker_count: int, low: int, high: int) -> bool:
    """Return whether sorted ``ranks`` plus jokers fill a contiguous run inside ``[low, high]``."""

    total = len(ranks) + joker_count
    if ranks[-1] - ranks[0] >= total:
        return False
    if any(ranks[idx] == ranks[idx - 1] for idx in range(1, len(ranks))):
        return False

    first = ranks[0]
    for start in range(first - joker_count, first + 1):
        end = start + total - 1
        if start < low or end > high:
            continue
        if all(start <= rank <= end for rank in ranks):
            return True
    return False


def _sequence_shape(cards: Sequence[Card]) -> tuple[list[Card], int] | None:
    """Return ``(naturals, joker_count)`` when the structural sequence checks pass."""

    if len(cards) < 3:
        return None
    naturals = _naturals(cards)
    if not naturals:
        return None
    joker_count = len(cards) - len(naturals)
    suit = naturals[0].suit
    if any(card.suit != suit for card in naturals):
        return None
    # With N naturals, J jokers can only avoid touching each other when J <= N + 1.
    if joker_count > len(naturals) + 1:
        return None
    return naturals, joker_count


def fits_ace_low(cards: Sequence[Card]) -> bool:
    """Return ``True`` when ``cards`` form a sequence with the ace as rank 0."""

    shape = _sequence_shape(cards)
    if shape is None:
        return False
    naturals, joker_count = shape
    ranks = sorted(card.low_index for card in naturals)
    return _can_fit_in_range(ranks, joker_count, *ACE_LOW_RANGE)


def fits_ace_high(cards: Sequence[Card]) -> bool:
    """Return ``True`` when ``cards`` form a sequence with the ace after the king."""

    shape = _sequence_shape(cards)
    if shape is None:
        return False
    naturals, joker_count = shape
    ranks = sorted(card.high_index for card in naturals)
    return _can_fit_in_range(ranks, joker_count, *ACE_HIGH_RANGE)


def is_valid_sequence(cards: Sequence[Card]) -> bool:
    """Check whether ``cards`` (in any order) form a run of one suit.

    Jokers fill gaps but never sit side by side. The ace plays low (A-2-3) or
    high (Q-K-A); K-A-2 never wraps.
    """

    return fits_ace_low(cards) or fits_ace_high(cards)


def is_valid_group(cards: Sequence[Card]) -> bool:
    """Check whether ``cards`` form 3-4 cards of one rank in distinct suits."""

    if len(cards) < 3 or len(cards) > 4:
        return False
    naturals = _naturals(cards)
    if not naturals:
        return False
    if len(naturals) < len(cards) - len(naturals):
        return False
    rank = naturals[0].rank
    if any(card.rank != rank for card in naturals):
        return False
    suits = [card.suit for card in naturals]
    return len(set(suits)) == len(suits)


def classify(cards: Sequence[Card]) -> MeldKind | None:
    """Return the meld kind for ``cards``, preferring sequence, or ``None`` when invalid."""

    if is_valid_sequence(cards):
        return MeldKind.SEQUENCE
    if is_valid_group(cards):
        return MeldKind.GROUP
    return None


def can_extend(existing: Sequence[Card], new_cards: Sequence[Card], position: Position = "end") -> bool:
    """Return ``True`` if placing ``new_cards`` at ``position`` keeps the meld valid.

    For sequences the new naturals must lie strictly beyond the existing ones
    in the requested direction, so cards cannot be slipped into the middle of
    a run by mislabelling the end.
    """

    if position not in ("start", "end"):
        raise ValueError(f"unknown meld position '{position}'")
    if not new_cards:
        return False

    combined = [*new_cards, *existing] if position == "start" else [*existing, *new_cards]
    kind = classify(combined)
    if kind is None:
        return False
    if kind is not MeldKind.SEQUENCE:
        return True

    existing_naturals = _naturals(existing)
    new_naturals = _naturals(new_cards)
    if not existing_naturals or not new_naturals:
        return True

    for index_of in (_low_index, _high_index):
        existing_ranks = [index_of(card) for card in existing_naturals]
        new_ranks = [index_of(card) for card in new_naturals]
        if position == "end" and min(new_ranks) > max(existing_ranks):
            return True
        if position == "start" and max(new_ranks) < min(existing_ranks):
            return True
    return False


def _low_index(card: Card) -> int:
    return card.low_index


def _high_index(card: Card) -> int:
    return card.high_index


# -- auto-split ---------------------------------------------------------------


def _consecutive_runs(cards: Sequence[Card], index_of: Callable[[Card], int]) -> list[list[Card]]:
    ordered = sorted(cards, key=index_of)
    runs: list[list[Card]] = []
    if not ordered:
        return runs

    current = [ordered[0]]
    for card in ordered[1:]:
        if index_of(card) == index_of(current[-1]) + 1:
            current.append(card)
            continue
        if len(current) >= 3:
            runs.append(current)
        current = [card]
    if len(current) >= 3:
        runs.append(current)
    return runs


def _by_suit(cards: Iterable[Card]) -> dict[Suit, list[Card]]:
    grouped: dict[Suit, list[Card]] = {}
    for card in cards:
        if card.suit is not None:
            grouped.setdefault(card.suit, []).append(card)
    return grouped


def _extract_sequences(cards: Sequence[Card], used: set[int]) -> list[list[Card]]:
    melds: list[list[Card]] = []
    for suit_cards in _by_suit(card for card in cards if card.id not in used).values():
        for run in _consecutive_runs(suit_cards, _low_index):
            if not any(card.id in used for card in run) and is_valid_sequence(run):
                melds.append(run)
                used.update(card.id for card in run)

        remaining = [card for card in suit_cards if card.id not in used]
        high_runs = [
            run
            for run in _consecutive_runs(remaining, _high_index)
            if any(card.rank is Rank.ACE for card in run)
        ]
        for run in high_runs:
            if not any(card.id in used for card in run) and is_valid_sequence(run):
                melds.append(run)
                used.update(card.id for card in run)
    return melds


def _extract_groups(cards: Sequence[Card], used: set[int]) -> list[list[Card]]:
    by_rank: dict[Rank, dict[Suit, Card]] = {}
    for card in cards:
        if card.id in used or card.rank is None or card.suit is None:
            continue
        by_rank.setdefault(card.rank, {}).setdefault(card.suit, card)

    melds: list[list[Card]] = []
    for suited in by_rank.values():
        group = list(suited.values())
        if 3 <= len(group) <= 4 and is_valid_group(group):
            melds.append(group)
            used.update(card.id for card in group)
    return melds


def _try_split(cards: Sequence[Card], *, sequences_first: bool) -> list[list[Card]] | None:
    naturals = _naturals(cards)
    if len(naturals) != len(cards):
        # Jokers are placed by the player, never automatically.
        return None

    used: set[int] = set()
    if sequences_first:
        melds = _extract_sequences(naturals, used)
        melds += _extract_groups(naturals, used)
    else:
        melds = _extract_groups(naturals, used)
        melds += _extract_sequences(naturals, used)

    if any(card.id not in used for card in naturals):
        return None
    return melds or None


def auto_split(cards: Sequence[Card]) -> list[list[Card]] | None:
    """Partition an unordered selection into melds that use every card.

    Sequences-first is tried before groups-first; ``None`` means neither
    strategy consumed the whole selection.
    """

    result = _try_split(cards, sequences_first=True)
    if result is not None:
        return result
    return _try_split(cards, sequences_first=False)


def find_candidate_melds(hand: Sequence[Card]) -> list[list[Card]]:
    """Return natural-only melds found in ``hand`` (groups and runs, possibly overlapping)."""

    naturals = _naturals(hand)
    candidates: list[list[Card]] = []

    by_rank: dict[Rank, dict[Suit, Card]] = {}
    for card in naturals:
        if card.rank is not None and card.suit is not None:
            by_rank.setdefault(card.rank, {}).setdefault(card.suit, card)
    for suited in by_rank.values():
        group = list(suited.values())
        if len(group) >= 3:
            candidates.append(group)
            if len(group) == 4:
                candidates.extend([group[:skip] + group[skip + 1 :] for skip in range(4)])

    for suit_cards in _by_suit(naturals).values():
        for index_of in (_low_index, _high_index):
            unique: dict[int, Card] = {}
            for card in sorted(suit_cards, key=index_of):
                unique.setdefault(index_of(card), card)
            ordered = list(unique.values())
            for start in range(len(ordered)):
                for end in range(start + 3, len(ordered) + 1):
                    window = ordered[start:end]
                    if index_of(window[-1]) - index_of(window[0]) != len(window) - 1:
                        break
                    if index_of is _high_index and not any(card.rank is Rank.ACE for card in window):
                        continue
                    candidates.append(window)
    return candidates
