"""Typer entry-point wiring for the Remik CLI."""

from __future__ import annotations

import logging
import sys
from typing import List, Sequence

import structlog
import typer
from rich import box
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .. import actions, benchmark, events, melds, rules, scoreboard
from ..bot import GreedyBot
from ..cards import Card, parse_cards, sort_cards
from ..events import GameEvent
from ..state import RemikConfig, RoundState, TurnPhase
from .render import format_card, format_meld, render_state

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}

HELP_TEXT = (
    "[bold]draw[/bold] | [bold]take[/bold] | [bold]meld[/bold] 1 2 3 / 4 5 6 | "
    "[bold]auto[/bold] 1 2 3 4 5 6 | [bold]extend[/bold] M ID.. [start|end] | "
    "[bold]swap[/bold] M SLOT ID | [bold]move[/bold] M SLOT | [bold]skip[/bold] | "
    "[bold]discard[/bold] ID | [bold]sort[/bold] | [bold]order[/bold] ID.. | [bold]quit[/bold]"
)


def configure_logging(verbosity: int = 0) -> None:
    """Route structlog output to stderr at a level picked by ``verbosity``."""

    level = _LOG_LEVELS.get(verbosity, logging.DEBUG)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@app.callback()
def cli(
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log verbosity."),
) -> None:
    """Remik (Polish Rummy) engine tools."""

    configure_logging(verbose)


def _parse(codes: Sequence[str], start_id: int = 1) -> list[Card]:
    try:
        return parse_cards(list(codes), start_id=start_id)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def classify(cards: List[str] = typer.Argument(..., help="Cards such as 10H QS A♠ JOKER.")) -> None:
    """Classify a single meld."""

    parsed = _parse(cards)
    kind = melds.classify(parsed)
    if kind is None:
        console.print(f"{format_meld(parsed)}: [red]not a valid meld[/red]")
        return
    points = rules.melds_points([parsed])
    console.print(f"{format_meld(parsed)}: [green]{kind.value}[/green] ({points} points)")


@app.command()
def split(cards: List[str] = typer.Argument(..., help="Unordered cards to partition.")) -> None:
    """Partition cards into melds that use every card."""

    parsed = _parse(cards)
    result = melds.auto_split(parsed)
    if result is None:
        console.print("[red]No split uses every card.[/red]")
        return
    table = Table(title="Auto Split", box=box.SIMPLE_HEAVY)
    table.add_column("Meld", justify="right")
    table.add_column("Kind", justify="left")
    table.add_column("Cards", justify="left")
    for idx, meld in enumerate(result, start=1):
        kind = melds.classify(meld)
        table.add_row(str(idx), kind.value if kind else "?", format_meld(sort_cards(meld)))
    console.print(table)


@app.command()
def opening(
    meld_args: List[str] = typer.Argument(..., help="Melds as comma separated cards, e.g. 10S,JS,QS."),
    requirement: int = typer.Option(rules.DEFAULT_OPEN_REQUIREMENT, help="Points needed to open."),
) -> None:
    """Check whether a set of melds satisfies the opening requirement."""

    parsed: list[list[Card]] = []
    next_id = 1
    for arg in meld_args:
        meld = _parse([code for code in arg.split(",") if code], start_id=next_id)
        next_id += len(meld)
        parsed.append(meld)

    check = rules.is_valid_opening(parsed, requirement)
    if check.valid:
        console.print(f"[green]Valid opening[/green] ({check.points} points)")
    else:
        console.print(f"[red]Invalid opening[/red]: {check.reason}")


def _render_round_summary(summary: scoreboard.RoundSummary, names: Sequence[str]) -> Table:
    """Return a Rich table describing the outcome of a round."""

    table = Table(title=f"Round {summary.round_number} Summary", box=box.SIMPLE_HEAVY)
    table.add_column("Player", justify="center")
    table.add_column("Result", justify="center")
    table.add_column("Change", justify="right")
    table.add_column("Total", justify="right")

    for idx, name in enumerate(names):
        if summary.winner_index == idx:
            result = "[bold green]Remik![/bold green]" if summary.is_remik else "[bold green]Win[/bold green]"
            name = f"[bold green]{name}[/bold green]"
        elif summary.eliminated[idx]:
            result = "[red]Out[/red]"
        else:
            result = "Loss" if summary.winner_index is not None else "Stock out"
        table.add_row(name, result, f"{summary.changes[idx]:+d}", str(summary.totals[idx]))
    return table


def _render_match_summary(history: scoreboard.MatchHistory, names: Sequence[str]) -> Table:
    """Return the aggregated match summary table."""

    totals = history.totals()
    table = Table(title="Match Summary", box=box.DOUBLE_EDGE)
    table.add_column("Player", justify="center")
    table.add_column("Wins", justify="right")
    table.add_column("Remiks", justify="right")
    table.add_column("Penalties", justify="right")
    table.add_column("Score", justify="right")

    best = min((total.score for total in totals), default=0)
    for total in totals:
        label = names[total.player_index]
        score = str(total.score)
        if total.score == best and history.rounds:
            label = f"[bold blue]{label}[/bold blue]"
            score = f"[bold blue]{score}[/bold blue]"
        if total.eliminated:
            label = f"[strike]{label}[/strike]"
        table.add_row(label, str(total.wins), str(total.remiks), str(total.penalty_points), score)
    return table


@app.command()
def simulate(
    players: int = typer.Option(4, min=2, max=6, help="Number of seated bots."),
    rounds: int = typer.Option(1, min=1, help="Rounds to play (stops early on game over)."),
    seed: int | None = typer.Option(None, help="Random seed for reproducible games."),
    jokers: int = typer.Option(4, min=0, max=10, help="Jokers added to the two packs."),
    limit: int = typer.Option(501, min=50, max=2000, help="Score that eliminates a player."),
    joker_swap: bool = typer.Option(
        False, "--joker-swap/--no-joker-swap", help="Allow swapping jokers out of table melds."
    ),
) -> None:
    """Run bot-only rounds and print the results."""

    config = RemikConfig(joker_count=jokers, points_to_eliminate=limit, allow_joker_swap=joker_swap)
    report = benchmark.run_match(players, rounds, seed=seed, config=config)
    names = [player.name for player in report.final_state.players]

    for summary in report.history.rounds:
        console.print(_render_round_summary(summary, names))
    console.print(_render_match_summary(report.history, names))
    if report.game_over:
        console.print("[cyan]Game over.[/cyan]")


def _parse_ids(tokens: Sequence[str]) -> tuple[int, ...]:
    try:
        return tuple(int(token) for token in tokens)
    except ValueError as exc:
        raise ValueError(f"expected card ids, got {' '.join(tokens)}") from exc


def parse_command(text: str, hand: Sequence[Card]) -> actions.Action | None:
    """Translate a typed command into an action; ``None`` means quit."""

    tokens = text.replace("/", " / ").split()
    if not tokens:
        raise ValueError("empty command")
    verb, args = tokens[0].lower(), tokens[1:]

    if verb in {"q", "quit", "exit"}:
        return None
    if verb in {"d", "draw"}:
        return actions.DrawStock()
    if verb in {"t", "take"}:
        return actions.DrawDiscard()
    if verb in {"s", "skip"}:
        return actions.SkipMeld()
    if verb in {"x", "discard"} and len(args) == 1:
        return actions.Discard(_parse_ids(args)[0])
    if verb in {"m", "meld"} and args:
        groups: list[tuple[int, ...]] = []
        current: list[str] = []
        for token in [*args, "/"]:
            if token == "/":
                if current:
                    groups.append(_parse_ids(current))
                current = []
            else:
                current.append(token)
        return actions.PlayMelds(tuple(groups))
    if verb in {"a", "auto"} and args:
        wanted = set(_parse_ids(args))
        selected = [card for card in hand if card.id in wanted]
        result = melds.auto_split(selected) if len(selected) == len(wanted) else None
        if result is None:
            raise ValueError("those cards cannot be split into melds")
        return actions.PlayMelds(tuple(tuple(card.id for card in meld) for meld in result))
    if verb in {"e", "extend"} and len(args) >= 2:
        position = "end"
        if args[-1].lower() in {"start", "end"}:
            position = args[-1].lower()
            args = args[:-1]
        ids = _parse_ids(args)
        return actions.ExtendMeld(ids[0], ids[1:], position)  # type: ignore[arg-type]
    if verb == "swap" and len(args) == 3:
        meld_index, slot, card_id = _parse_ids(args)
        return actions.SwapJoker(meld_index, slot, card_id)
    if verb == "sort" and not args:
        return actions.ReorderHand(0, tuple(card.id for card in sort_cards(hand)))
    if verb == "order" and args:
        return actions.ReorderHand(0, _parse_ids(args))
    if verb == "move" and len(args) == 2:
        meld_index, slot = _parse_ids(args)
        return actions.RepositionJoker(meld_index, slot)
    raise ValueError(f"unknown command '{text.strip()}'")


def describe_event(state: RoundState, event: GameEvent) -> str | None:
    """Return a one-line description of ``event`` for the play log."""

    name = state.players[event.player_index].name if event.player_index is not None else "?"
    payload = event.payload
    if event.kind == "draw":
        if payload.get("source") == "discard":
            card = Card.from_dict(payload["card"])
            return f"{name} took {format_card(card)} from the discard pile"
        return f"{name} drew from the stock"
    if event.kind == "meld":
        return f"{name} laid {len(payload['melds'])} meld(s)"
    if event.kind == "extend":
        return f"{name} extended meld M{payload['meld_index']}"
    if event.kind == "joker_swap":
        return f"{name} took a joker from meld M{payload['meld_index']}"
    if event.kind == "joker_reposition":
        return f"{name} moved a joker in meld M{payload['meld_index']}"
    if event.kind == "discard":
        return f"{name} discarded {format_card(Card.from_dict(payload['card']))}"
    if event.kind == "reshuffle":
        return f"Discard pile reshuffled into the stock ({payload['stock_count']} cards)"
    return None


def _hand_table(hand: Sequence[Card]) -> Table:
    table = Table(title="Your Hand", box=box.MINIMAL)
    table.add_column("ID", justify="right")
    table.add_column("Card", justify="left")
    for card in hand:
        table.add_row(str(card.id), format_card(card))
    return table


@app.command()
def play(
    players: int = typer.Option(3, min=2, max=6, help="Number of seated players (seat 0 is you)."),
    seed: int | None = typer.Option(None, help="Random seed for reproducible games (omit for randomness)."),
    jokers: int = typer.Option(4, min=0, max=10, help="Jokers added to the two packs."),
    joker_swap: bool = typer.Option(
        False, "--joker-swap/--no-joker-swap", help="Allow swapping jokers out of table melds."
    ),
) -> None:
    """Play an interactive game against greedy bots."""

    names = ["You", *[f"Bot {idx}" for idx in range(1, players)]]
    roles = ["Human", *["Bot" for _ in range(1, players)]]
    state = rules.create_round(names, RemikConfig(joker_count=jokers, allow_joker_swap=joker_swap), seed=seed)
    bot = GreedyBot()
    history = scoreboard.MatchHistory(players)

    def log_event(event: GameEvent) -> None:
        if event.player_index == 0:
            return
        line = describe_event(state, event)
        if line:
            console.print(f"[dim]{line}[/dim]")

    events.subscribe(state, log_event)

    while True:
        if state.phase in (TurnPhase.ROUND_OVER, TurnPhase.GAME_OVER):
            summary = scoreboard.summarize_round(state)
            history.record(summary)
            console.print(_render_round_summary(summary, names))
            if state.phase is TurnPhase.GAME_OVER:
                console.print(_render_match_summary(history, names))
                console.print("[cyan]Game over.[/cyan]")
                return
            if not Confirm.ask("Deal the next round?", default=True):
                console.print(_render_match_summary(history, names))
                return
            rules.advance_round(state)
            continue

        if state.current_player_index != 0:
            bot.play_turn(state)
            continue

        console.print(render_state(state, roles, reveal_players=[0]))
        console.print(_hand_table(state.players[0].hand))
        console.print(HELP_TEXT)
        text = Prompt.ask(f"[yellow]{state.phase.value.title()}[/yellow]")
        try:
            action = parse_command(text, state.players[0].hand)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            continue
        if action is None:
            console.print(_render_match_summary(history, names))
            return
        result = actions.apply_action(state, action)
        if not result.success:
            console.print(f"[red]{result.reason}[/red]")
        elif result.card is not None and isinstance(action, (actions.DrawStock, actions.DrawDiscard)):
            console.print(f"You drew {format_card(result.card, show_id=True)}")


def main() -> None:
    """Entry-point for ``python -m remik.cli``."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    main()
