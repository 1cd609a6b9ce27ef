"""Card abstractions and helpers for Remik."""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

__all__ = [
    "Suit",
    "Rank",
    "Card",
    "JOKER_POINTS",
    "ACE_LOW_RANGE",
    "ACE_HIGH_RANGE",
    "build_deck",
    "deal",
    "shuffled_deck",
    "parse_card",
    "parse_cards",
    "format_cards",
    "sort_cards",
]

JOKER_POINTS = 50
ACE_LOW_RANGE = (0, 12)
ACE_HIGH_RANGE = (1, 13)


class Suit(str, Enum):
    """Enumeration of the four suits in a Remik deck."""

    SPADES = "♠"
    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"

    @classmethod
    def from_code(cls, code: str) -> "Suit":
        """Return the suit for a symbol or an ASCII letter (``S``, ``H``, ``D``, ``C``)."""

        aliases = {"S": cls.SPADES, "H": cls.HEARTS, "D": cls.DIAMONDS, "C": cls.CLUBS}
        upper = code.upper()
        if upper in aliases:
            return aliases[upper]
        return cls(code)


class Rank(str, Enum):
    """Enumeration of ranks ordered ace-low."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @classmethod
    def ordered(cls) -> tuple["Rank", ...]:
        """Return ranks in ace-low order (A=0 … K=12)."""

        return tuple(cls)

    @property
    def low_index(self) -> int:
        return _LOW_INDEX[self]

    @property
    def high_index(self) -> int:
        """Rank index with the ace placed after the king (A=13)."""

        return 13 if self is Rank.ACE else _LOW_INDEX[self]

    @property
    def points(self) -> int:
        return _POINTS[self]


_LOW_INDEX = {rank: idx for idx, rank in enumerate(Rank)}
_POINTS = {
    Rank.ACE: 11,
    Rank.TWO: 2,
    Rank.THREE: 3,
    Rank.FOUR: 4,
    Rank.FIVE: 5,
    Rank.SIX: 6,
    Rank.SEVEN: 7,
    Rank.EIGHT: 8,
    Rank.NINE: 9,
    Rank.TEN: 10,
    Rank.JACK: 10,
    Rank.QUEEN: 10,
    Rank.KING: 10,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Value object describing a physical Remik card.

    Jokers carry neither rank nor suit. The ``id`` is unique within a game and
    is the only thing callers use to refer to a card held in a hand.
    """

    id: int
    rank: Rank | None
    suit: Suit | None

    @classmethod
    def joker(cls, card_id: int) -> "Card":
        return cls(id=card_id, rank=None, suit=None)

    @property
    def is_joker(self) -> bool:
        """Return ``True`` when the card represents a Joker."""

        return self.rank is None

    @property
    def low_index(self) -> int:
        if self.rank is None:
            raise ValueError("jokers have no rank index")
        return self.rank.low_index

    @property
    def high_index(self) -> int:
        if self.rank is None:
            raise ValueError("jokers have no rank index")
        return self.rank.high_index

    def point_value(self, low_ace: bool = False) -> int:
        """Return the point value; an ace counts 1 when ``low_ace`` is set."""

        if self.rank is None:
            return JOKER_POINTS
        if low_ace and self.rank is Rank.ACE:
            return 1
        return self.rank.points

    def label(self) -> str:
        """Create a display label suitable for CLI representations."""

        if self.rank is None or self.suit is None:
            return "🃏"
        return f"{self.rank.value}{self.suit.value}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "rank": "JOKER" if self.rank is None else self.rank.value,
            "suit": "" if self.suit is None else self.suit.value,
            "is_joker": self.is_joker,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Card":
        if data.get("is_joker") or data.get("rank") == "JOKER":
            return cls.joker(int(data["id"]))
        return cls(id=int(data["id"]), rank=Rank(data["rank"]), suit=Suit(data["suit"]))


def build_deck(joker_count: int = 4) -> list[Card]:
    """Return two standard packs followed by ``joker_count`` jokers, ids from 1."""

    jokers = max(0, min(10, joker_count))
    deck: list[Card] = []
    next_id = 1
    for _copy in range(2):
        for suit in Suit:
            for rank in Rank.ordered():
                deck.append(Card(id=next_id, rank=rank, suit=suit))
                next_id += 1
    for _ in range(jokers):
        deck.append(Card.joker(next_id))
        next_id += 1
    return deck


def deal(
    deck: Sequence[Card], counts: Sequence[int]
) -> tuple[list[list[Card]], list[Card]]:
    """Deal round-robin from the front of ``deck``; return ``(hands, stock)``."""

    if sum(counts) > len(deck):
        raise ValueError("insufficient cards in deck for requested hand sizes")
    remaining = list(deck)
    hands: list[list[Card]] = [[] for _ in counts]
    position = 0
    for turn in range(max(counts, default=0)):
        for player_index, count in enumerate(counts):
            if turn < count:
                hands[player_index].append(remaining[position])
                position += 1
    return hands, remaining[position:]


def shuffled_deck(joker_count: int, rng: random.Random) -> list[Card]:
    deck = build_deck(joker_count)
    rng.shuffle(deck)
    return deck


def parse_card(code: str, card_id: int) -> Card:
    """Parse a code such as ``10H``, ``Q♠`` or ``JOKER`` into a :class:`Card`."""

    text = code.strip()
    if not text:
        raise ValueError("empty card code")
    if text.upper() in {"JOKER", "JK", "*", "🃏"}:
        return Card.joker(card_id)
    rank_text, suit_text = text[:-1], text[-1]
    try:
        rank = Rank(rank_text.upper())
        suit = Suit.from_code(suit_text)
    except ValueError as exc:
        raise ValueError(f"invalid card code '{code}'") from exc
    return Card(id=card_id, rank=rank, suit=suit)


def parse_cards(codes: str | Iterable[str], start_id: int = 1) -> list[Card]:
    """Parse whitespace separated codes, assigning sequential ids from ``start_id``."""

    tokens = codes.split() if isinstance(codes, str) else list(codes)
    return [parse_card(token, start_id + offset) for offset, token in enumerate(tokens)]


def sort_cards(cards: Iterable[Card], *, ace_high: bool = False) -> list[Card]:
    """Sort by suit then rank, jokers last."""

    suit_order = {suit: idx for idx, suit in enumerate(Suit)}

    def key(card: Card) -> tuple[int, int, int]:
        if card.rank is None or card.suit is None:
            return (len(suit_order), 0, card.id)
        rank_idx = card.high_index if ace_high else card.low_index
        return (suit_order[card.suit], rank_idx, card.id)

    return sorted(cards, key=key)


def format_cards(cards: Sequence[Card]) -> str:
    return " ".join(card.label() for card in cards)
