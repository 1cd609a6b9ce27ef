"""Per-game event notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Literal

if TYPE_CHECKING:
    from .state import RoundState

__all__ = ["EventKind", "GameEvent", "Listener", "subscribe", "unsubscribe", "emit"]

EventKind = Literal[
    "round_start",
    "draw",
    "meld",
    "extend",
    "joker_swap",
    "joker_reposition",
    "discard",
    "skip_meld",
    "reshuffle",
    "round_end",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    """Notification emitted after a successful state change."""

    kind: EventKind
    player_index: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[GameEvent], None]


def subscribe(state: "RoundState", listener: Listener) -> Listener:
    """Register ``listener`` on this game only and return it."""

    state.listeners.append(listener)
    return listener


def unsubscribe(state: "RoundState", listener: Listener) -> None:
    if listener in state.listeners:
        state.listeners.remove(listener)


def emit(state: "RoundState", event: GameEvent) -> None:
    for listener in list(state.listeners):
        listener(event)
