"""Rendering helpers dedicated to the CLI experience."""

from __future__ import annotations

from typing import Iterable, Sequence

from rich.console import RenderableType
from rich.panel import Panel

from ..cards import Card, Suit
from ..state import RoundState
from .views import StateSummaryView

_SUIT_COLORS = {
    Suit.SPADES: "cyan",
    Suit.HEARTS: "red",
    Suit.DIAMONDS: "magenta",
    Suit.CLUBS: "green",
}


def format_card(card: Card, *, show_id: bool = False) -> str:
    """Return a Rich-rendered label for ``card``."""

    suffix = f"[dim]#{card.id}[/dim]" if show_id else ""
    if card.suit is None:
        return f"[magenta]{card.label()}[/magenta]{suffix}"
    color = _SUIT_COLORS.get(card.suit, "white")
    return f"[{color}]{card.label()}[/{color}]{suffix}"


def format_meld(cards: Sequence[Card]) -> str:
    return " ".join(format_card(card) for card in cards)


def render_state(
    state: RoundState,
    roles: Sequence[str],
    *,
    reveal_players: Iterable[int] | None = None,
    title: str = "Remik",
) -> RenderableType:
    """Return a Rich panel describing the current table state."""

    view = StateSummaryView(
        state=state,
        roles=roles,
        reveal_players=set(reveal_players or set()),
        card_formatter=format_card,
    )
    return Panel(view.render(), title=title, padding=(0, 1), border_style="cyan")
