"""Main Typer application for the Duel Arena CLI."""

import asyncio
import random
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from duelarena.battle.engine import TurnEngine
from duelarena.battle.entropy import SeededEntropy
from duelarena.battle.errors import BattleError
from duelarena.battle.models import BattleAction, BattleEnded, BattleSession, TurnResult
from duelarena.battle.serialization import serialize_session
from duelarena.cli.utils import configure_logging, load_registry
from duelarena.events import EventDispatcher, RecordingSink
from duelarena.registry.characters import CharacterNotFound, CharacterRegistry
from duelarena.server_logging.event_log import EventLogger
from duelarena.utils.config import get_event_log_path

console = Console()

app = typer.Typer(
    name="duel",
    help="Duel Arena CLI - run and inspect turn-based battles.",
    rich_markup_mode="rich",
)

MAX_SIMULATED_TURNS = 500
# Weighted action policy used by simulated controllers
SIMULATION_WEIGHTS = {
    BattleAction.STANDARD: 6,
    BattleAction.HEAVY: 3,
    BattleAction.DEFEND: 1,
}


async def run_simulation(
    registry: CharacterRegistry,
    fighter_a: str,
    fighter_b: str,
    *,
    seed: Optional[int] = None,
    event_log: Optional[EventLogger] = None,
    max_turns: int = MAX_SIMULATED_TURNS,
) -> tuple[BattleSession, RecordingSink]:
    """Play a battle to completion with both sides driven by a seeded policy."""

    recorder = RecordingSink()
    dispatcher = EventDispatcher()
    await dispatcher.register(recorder)
    if event_log is not None:
        await dispatcher.register(event_log)

    engine = TurnEngine(registry, entropy=SeededEntropy(seed), sink=dispatcher)
    policy = random.Random(seed)
    actions = list(SIMULATION_WEIGHTS)
    weights = [SIMULATION_WEIGHTS[action] for action in actions]

    session_id = await engine.start_battle(fighter_a, fighter_b)
    for _ in range(max_turns):
        session = await engine.get_session(session_id)
        if not session.active:
            break
        acting = session.fighter_for(session.turn_owner)
        action = policy.choices(actions, weights=weights)[0]
        await engine.perform_turn(session_id, registry.controller_of(acting), action)
    return await engine.get_session(session_id), recorder


def _turn_table(recorder: RecordingSink) -> Table:
    table = Table(title="Turns")
    table.add_column("#", justify="right")
    table.add_column("Actor")
    table.add_column("Action")
    table.add_column("Damage", justify="right")
    table.add_column("Health", justify="right")
    table.add_column("Notes")
    turn = 0
    for record in recorder.records:
        if not isinstance(record, TurnResult):
            continue
        turn += 1
        notes = [flag for flag in ("critical", "missed", "evaded", "shield_consumed") if getattr(record, flag)]
        table.add_row(
            str(turn),
            record.acting_character,
            record.action.value,
            str(record.damage_dealt),
            str(record.resulting_health),
            ", ".join(notes),
        )
    return table


@app.command()
def simulate(
    fighter_a: str = typer.Argument(..., help="First character id"),
    fighter_b: str = typer.Argument(..., help="Second character id"),
    registry_path: Optional[Path] = typer.Option(None, "--registry", "-r", help="Character registry JSON"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Seed for rolls and action choice"),
    log_path: Optional[Path] = typer.Option(None, "--log", "-l", help="Append events to this JSONL file"),
    no_log: bool = typer.Option(False, "--no-log", help="Do not write the event log"),
) -> None:
    """Run a simulated battle between two registered characters."""

    registry = load_registry(registry_path, console)
    event_log = None if no_log else EventLogger(log_path or get_event_log_path())
    try:
        session, recorder = asyncio.run(
            run_simulation(registry, fighter_a, fighter_b, seed=seed, event_log=event_log)
        )
    except BattleError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    summary = serialize_session(session)
    console.print(f"[bold]Session[/bold] {summary['session_id']}")
    console.print(_turn_table(recorder))
    console.print(
        f"{summary['fighter_a']}: {summary['health_a']} HP, "
        f"{summary['fighter_b']}: {summary['health_b']} HP after {summary['turn_count']} turns"
    )
    ended = [record for record in recorder.records if isinstance(record, BattleEnded)]
    if ended:
        console.print(
            f"[green]{ended[0].winner_character}[/green] defeats {ended[0].loser_character}"
        )
    else:
        console.print(f"[yellow]No winner after {MAX_SIMULATED_TURNS} turns[/yellow]")


@app.command()
def history(
    session_id: str = typer.Argument(..., help="Battle session id"),
    log_path: Optional[Path] = typer.Option(None, "--log", "-l", help="Event log JSONL file"),
    limit: int = typer.Option(0, "--limit", "-n", help="Maximum entries (0 = default cap)"),
) -> None:
    """Print the logged events of one battle."""

    event_log = EventLogger(log_path or get_event_log_path())
    entries, truncated = event_log.query(session_id=session_id, limit=limit or None)
    if not entries:
        console.print(f"[yellow]No events for session {session_id}[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"Session {session_id}")
    table.add_column("Time", no_wrap=True)
    table.add_column("Event", no_wrap=True)
    table.add_column("Details")
    for entry in entries:
        payload = {k: v for k, v in entry.get("payload", {}).items() if k != "session_id"}
        details = " ".join(f"{k}={v}" for k, v in payload.items())
        table.add_row(entry.get("timestamp", ""), entry.get("event", ""), details)
    console.print(table)
    if truncated:
        console.print("[dim]Output truncated[/dim]")


@app.command()
def stats(
    character_id: str = typer.Argument(..., help="Character id"),
    registry_path: Optional[Path] = typer.Option(None, "--registry", "-r", help="Character registry JSON"),
) -> None:
    """Show a character's combat stats and controller."""

    registry = load_registry(registry_path, console)
    try:
        character_stats = registry.stats_of(character_id)
        controller = registry.controller_of(character_id)
    except CharacterNotFound:
        console.print(f"[red]Error:[/red] unknown character {character_id}")
        raise typer.Exit(code=1)

    table = Table(title=character_id)
    table.add_column("Stat")
    table.add_column("Value", justify="right")
    table.add_row("controller", controller)
    for name, value in character_stats.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from importlib.metadata import PackageNotFoundError, version as get_version

        try:
            v = get_version("duel-arena")
        except PackageNotFoundError:
            v = "0.1.0"
        console.print(f"[bold]Duel Arena[/bold] v{v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", callback=version_callback, is_eager=True, help="Show version and exit"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override DUEL_LOG_LEVEL"),
) -> None:
    """Duel Arena CLI."""
    configure_logging(log_level)
