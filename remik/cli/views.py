"""Composable view primitives for the Remik CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Set

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table

from ..cards import Card
from ..state import RoundState, TurnPhase


@dataclass(slots=True)
class StateSummaryView:
    """Renderable summarising the current table state."""

    state: RoundState
    roles: Sequence[str]
    reveal_players: Set[int]
    card_formatter: Callable[[Card], str]

    def _hand_markup(self, cards: Sequence[Card], visible: bool) -> str:
        if not visible:
            return f"{len(cards)} cards"
        if not cards:
            return "—"
        return " ".join(self.card_formatter(card) for card in cards)

    def _metadata_panel(self) -> Panel:
        state = self.state
        grid = Table.grid(expand=True)
        grid.add_column(justify="left")
        grid.add_row(f"[cyan]Round[/cyan]: {state.round_number}")
        grid.add_row(f"[cyan]Phase[/cyan]: {state.phase.value.replace('_', ' ').title()}")
        grid.add_row(f"[cyan]Stock[/cyan]: {len(state.stock)} card(s)")
        if state.discard_pile:
            top_card = self.card_formatter(state.discard_pile[-1])
            grid.add_row(f"[cyan]Discard[/cyan]: {top_card} ({len(state.discard_pile)} card(s))")
        else:
            grid.add_row("[cyan]Discard[/cyan]: —")
        grid.add_row(f"[cyan]Opening[/cyan]: {state.config.open_requirement}")
        return Panel(grid, title="Table State", box=box.SQUARE, border_style="blue")

    def render(self) -> RenderableType:
        state = self.state
        table = Table(box=box.ROUNDED, expand=True)
        table.add_column("Player", justify="left", style="bold")
        table.add_column("Role", justify="left")
        table.add_column("Hand", justify="left")
        table.add_column("Score", justify="right")
        table.add_column("Status", justify="left")

        round_over = state.phase in (TurnPhase.ROUND_OVER, TurnPhase.GAME_OVER)
        for idx, player in enumerate(state.players):
            role = self.roles[idx] if idx < len(self.roles) else "Bot"
            visible = idx in self.reveal_players
            status_text = "Opened" if player.has_opened else "Closed"
            if player.eliminated:
                status_text = "[red]Eliminated[/red]"
            elif round_over and state.round_winner == idx:
                status_text = "[bold green]Winner[/bold green]"

            name = player.name
            if idx == state.current_player_index and not round_over:
                name = f"[bold yellow]{name}[/bold yellow]"
            table.add_row(
                name,
                role,
                self._hand_markup(player.hand, visible),
                str(player.score),
                status_text,
            )

        components: list[RenderableType] = [table, self._metadata_panel()]

        if state.table_melds:
            meld_table = Table(box=box.MINIMAL, expand=True)
            meld_table.add_column("Meld", justify="left", style="bold")
            meld_table.add_column("Owner", justify="left")
            meld_table.add_column("Kind", justify="left")
            meld_table.add_column("Cards", justify="left")

            for idx, meld in enumerate(state.table_melds):
                cards_display = " ".join(self.card_formatter(card) for card in meld.cards)
                meld_table.add_row(
                    f"M{idx}",
                    state.players[meld.owner].name,
                    meld.kind.value.title(),
                    cards_display,
                )

            components.append(Panel(meld_table, title="Table Melds", box=box.SQUARE, border_style="green"))

        return Group(*components)
