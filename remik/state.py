"""Core game state data structures for Remik."""

from __future__ import annotations

import random
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Sequence

from .cards import Card
from .melds import MeldKind

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .events import GameEvent

__all__ = [
    "TurnPhase",
    "RemikConfig",
    "PlayerState",
    "TableMeld",
    "RoundState",
]


class TurnPhase(str, Enum):
    """Phases of the round state machine."""

    DRAW = "DRAW"
    MELD = "MELD"
    DISCARD = "DISCARD"
    ROUND_OVER = "ROUND_OVER"
    GAME_OVER = "GAME_OVER"


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


@dataclass(slots=True)
class RemikConfig:
    """Runtime configuration for a Remik game; values are clamped on creation."""

    joker_count: int = 4
    points_to_eliminate: int = 501
    open_requirement: int = 51
    hand_size_first: int = 14
    hand_size_other: int = 13
    require_opening: bool = True
    allow_joker_swap: bool = False

    def __post_init__(self) -> None:
        self.joker_count = _clamp(self.joker_count, 0, 10)
        self.points_to_eliminate = _clamp(self.points_to_eliminate, 50, 2000)
        self.open_requirement = max(0, int(self.open_requirement))
        self.hand_size_first = _clamp(self.hand_size_first, 7, 20)
        self.hand_size_other = _clamp(self.hand_size_other, 7, 20)

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, Any] | None = None) -> "RemikConfig":
        """Merge ``overrides`` onto the defaults, ignoring unknown and ``None`` values."""

        known = {item.name for item in fields(cls)}
        values = {
            key: value
            for key, value in (overrides or {}).items()
            if key in known and value is not None
        }
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


@dataclass(slots=True)
class PlayerState:
    """State tracked for each seated player."""

    name: str
    hand: List[Card] = field(default_factory=list)
    score: int = 0
    has_opened: bool = False
    eliminated: bool = False

    def find_card(self, card_id: int) -> Card | None:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def remove_cards(self, card_ids: Sequence[int]) -> list[Card]:
        """Remove and return the cards with ``card_ids``; every id must be present."""

        wanted = set(card_ids)
        removed = [card for card in self.hand if card.id in wanted]
        if len(removed) != len(wanted):
            raise ValueError("card not present in hand")
        self.hand = [card for card in self.hand if card.id not in wanted]
        return removed

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "hand": [card.to_dict() for card in self.hand],
            "score": self.score,
            "has_opened": self.has_opened,
            "eliminated": self.eliminated,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerState":
        return cls(
            name=str(data["name"]),
            hand=[Card.from_dict(card) for card in data.get("hand", [])],
            score=int(data.get("score", 0)),
            has_opened=bool(data.get("has_opened", False)),
            eliminated=bool(data.get("eliminated", False)),
        )


@dataclass(slots=True)
class TableMeld:
    """Representation of a meld that is visible on the table."""

    cards: List[Card]
    owner: int
    kind: MeldKind

    @property
    def has_joker(self) -> bool:
        return any(card.is_joker for card in self.cards)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cards": [card.to_dict() for card in self.cards],
            "owner": self.owner,
            "kind": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TableMeld":
        return cls(
            cards=[Card.from_dict(card) for card in data["cards"]],
            owner=int(data["owner"]),
            kind=MeldKind(data["kind"]),
        )


def _rng_state_to_data(rng: random.Random) -> list[Any]:
    version, internal, gauss_next = rng.getstate()
    return [version, list(internal), gauss_next]


def _rng_state_from_data(data: Sequence[Any]) -> random.Random:
    rng = random.Random()
    version, internal, gauss_next = data
    rng.setstate((version, tuple(internal), gauss_next))
    return rng


@dataclass(slots=True)
class RoundState:
    """Mutable aggregate for a Remik game, one round at a time.

    Every container holds owned lists of :class:`Card`; the union of stock,
    hands, discard pile and table melds is always the full deck.
    """

    players: List[PlayerState]
    config: RemikConfig = field(default_factory=RemikConfig)
    stock: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    table_melds: List[TableMeld] = field(default_factory=list)
    current_player_index: int = 0
    phase: TurnPhase = TurnPhase.DRAW
    round_number: int = 1
    starting_player_index: int = 0
    reshuffle_count: int = 0
    drawn_card_id: int | None = None
    drawn_from_discard: bool = False
    opened_before_turn: bool = False
    round_winner: int | None = None
    is_remik: bool = False
    round_changes: List[int] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)
    listeners: List[Callable[["GameEvent"], None]] = field(
        default_factory=list, repr=False, compare=False
    )

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    @property
    def deck_size(self) -> int:
        return 104 + self.config.joker_count

    def active_players(self) -> list[int]:
        return [idx for idx, player in enumerate(self.players) if not player.eliminated]

    def card_count(self) -> int:
        """Return the number of cards across every container."""

        return (
            len(self.stock)
            + len(self.discard_pile)
            + sum(len(player.hand) for player in self.players)
            + sum(len(meld.cards) for meld in self.table_melds)
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the full aggregate as plain JSON-compatible data."""

        return {
            "players": [player.to_dict() for player in self.players],
            "config": self.config.to_dict(),
            "stock": [card.to_dict() for card in self.stock],
            "discard_pile": [card.to_dict() for card in self.discard_pile],
            "table_melds": [meld.to_dict() for meld in self.table_melds],
            "current_player_index": self.current_player_index,
            "phase": self.phase.value,
            "round_number": self.round_number,
            "starting_player_index": self.starting_player_index,
            "reshuffle_count": self.reshuffle_count,
            "drawn_card_id": self.drawn_card_id,
            "drawn_from_discard": self.drawn_from_discard,
            "opened_before_turn": self.opened_before_turn,
            "round_winner": self.round_winner,
            "is_remik": self.is_remik,
            "round_changes": list(self.round_changes),
            "rng_state": _rng_state_to_data(self.rng),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoundState":
        rng_data = data.get("rng_state")
        return cls(
            players=[PlayerState.from_dict(player) for player in data["players"]],
            config=RemikConfig.from_overrides(data.get("config")),
            stock=[Card.from_dict(card) for card in data.get("stock", [])],
            discard_pile=[Card.from_dict(card) for card in data.get("discard_pile", [])],
            table_melds=[TableMeld.from_dict(meld) for meld in data.get("table_melds", [])],
            current_player_index=int(data.get("current_player_index", 0)),
            phase=TurnPhase(data.get("phase", TurnPhase.DRAW.value)),
            round_number=int(data.get("round_number", 1)),
            starting_player_index=int(data.get("starting_player_index", 0)),
            reshuffle_count=int(data.get("reshuffle_count", 0)),
            drawn_card_id=data.get("drawn_card_id"),
            drawn_from_discard=bool(data.get("drawn_from_discard", False)),
            opened_before_turn=bool(data.get("opened_before_turn", False)),
            round_winner=data.get("round_winner"),
            is_remik=bool(data.get("is_remik", False)),
            round_changes=[int(value) for value in data.get("round_changes", [])],
            rng=_rng_state_from_data(rng_data) if rng_data else random.Random(),
        )

    def clone(self) -> "RoundState":
        """Return an independent copy without listeners, suitable for look-ahead."""

        return RoundState.from_dict(self.to_dict())

    def snapshot_for(self, player_index: int) -> dict[str, Any]:
        """Return a sanitized view in which only ``player_index``'s hand is visible."""

        if player_index < 0 or player_index >= len(self.players):
            raise ValueError("player index out of range")
        top = self.discard_pile[-1].to_dict() if self.discard_pile else None
        return {
            "my_index": player_index,
            "round_number": self.round_number,
            "current_player_index": self.current_player_index,
            "phase": self.phase.value,
            "players": [
                {
                    "name": player.name,
                    "hand_size": len(player.hand),
                    "hand": [card.to_dict() for card in player.hand] if idx == player_index else [],
                    "has_opened": player.has_opened,
                    "score": player.score,
                    "eliminated": player.eliminated,
                    "is_me": idx == player_index,
                }
                for idx, player in enumerate(self.players)
            ],
            "stock": {"count": len(self.stock)},
            "discard_pile": {"count": len(self.discard_pile), "top_card": top},
            "table_melds": [meld.to_dict() for meld in self.table_melds],
            "drawn_from_discard": (
                self.drawn_from_discard if self.current_player_index == player_index else False
            ),
            "round_winner": self.round_winner,
            "is_remik": self.is_remik,
            "config": self.config.to_dict(),
        }
