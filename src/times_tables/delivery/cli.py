"""
Times Tables: terminal practice app.

A Rich terminal interface over the scheduling engine.

Commands:
- times-tables practice  - Start a practice session
- times-tables stats     - Show progress
- times-tables tables    - Show the open facts grid
- times-tables reset     - Clear progress (with backup)
- times-tables serve     - Run the HTTP server
"""
from __future__ import annotations

import time
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ..config import get_settings
from ..core import Fact, SchedulingEngine, pick_fact
from ..log_config import configure_logging
from .progress_file import ProgressFile, ProgressFileError
from .telemetry import SessionTelemetry

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="times-tables",
    help="Times Tables: spaced-repetition multiplication practice",
    no_args_is_help=True,
)
console = Console()

QUIT_WORDS = {"q", "quit", "exit"}


# =============================================================================
# Styling
# =============================================================================

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "mastered": "green",
    "due": "yellow",
    "learning": "white",
    "dim": "dim",
}


def _progress_file() -> ProgressFile:
    return ProgressFile(get_settings().progress_path)


# =============================================================================
# Display Helpers
# =============================================================================

def display_fact(fact: Fact, number: int) -> None:
    """Show the problem card."""
    console.print(Panel(
        f"[bold]{fact.display()}[/bold]",
        title=f"Problem {number}",
        title_align="left",
        border_style="cyan",
        padding=(1, 4),
    ))


def display_status(engine: SchedulingEngine, telemetry: SessionTelemetry) -> None:
    """One-line progress summary under each problem."""
    tables = ", ".join(str(t) for t in engine.unlocked_tables_display())
    next_table = engine.next_table_to_unlock()

    line = (
        f"Streak: {telemetry.streak}  |  "
        f"Mastered: {engine.mastered_count()}/{engine.unlocked_count()}  |  "
        f"Due: {engine.due_count()}  |  "
        f"Tables: {tables}"
    )
    if next_table is not None:
        line += f"  |  Next: {next_table}×"

    console.print(f"[{STYLES['dim']}]{line}[/{STYLES['dim']}]")


def _read_number(label: str) -> int | None:
    """
    Prompt until the learner types an integer.

    Returns:
        The number, or None if they asked to quit
    """
    while True:
        try:
            raw = Prompt.ask(label, console=console).strip()
        except EOFError:
            return None

        if raw.lower() in QUIT_WORDS:
            return None
        try:
            return int(raw)
        except ValueError:
            console.print(f"[{STYLES['dim']}]Enter a whole number, or q to quit.[/{STYLES['dim']}]")


def _correction_drill(fact: Fact, given: int) -> bool:
    """
    Make the learner type the right product after a miss.

    Returns:
        False if they quit during the drill
    """
    console.print(
        f"[{STYLES['incorrect']}]{given} is wrong.[/{STYLES['incorrect']}] "
        f"Type the answer: [bold]{fact.answer}[/bold]"
    )
    while True:
        typed = _read_number("Answer")
        if typed is None:
            return False
        if typed == fact.answer:
            return True


def _save(store: ProgressFile, engine: SchedulingEngine) -> None:
    try:
        store.save(engine)
    except ProgressFileError as e:
        logger.error(str(e))
        console.print(f"[{STYLES['incorrect']}]Could not save progress: {e}[/{STYLES['incorrect']}]")


# =============================================================================
# Commands
# =============================================================================

@app.command()
def practice(
    limit: Optional[int] = typer.Option(
        None,
        "--limit", "-n",
        min=1,
        help="Stop after this many problems",
    ),
) -> None:
    """
    Start an interactive practice session.

    Presents the weakest due fact first and saves progress after every
    answer. Type q to finish.
    """
    console.print("\n[bold cyan]Times Tables[/bold cyan] - Practice", style="bold")
    console.print("=" * 40)

    store = _progress_file()
    engine = store.load_or_new()
    telemetry = SessionTelemetry()

    last: Fact | None = None
    asked = 0

    try:
        while limit is None or asked < limit:
            fact = pick_fact(engine, last)
            asked += 1

            console.print()
            display_fact(fact, asked)

            start_time = time.monotonic()
            given = _read_number("Answer")
            if given is None:
                break
            elapsed = time.monotonic() - start_time

            correct = given == fact.answer
            engine.record_answer(fact, correct, elapsed)
            telemetry.record(fact, correct, elapsed)
            _save(store, engine)

            if correct:
                console.print(f"[{STYLES['correct']}]Correct![/{STYLES['correct']}]")
            elif not _correction_drill(fact, given):
                break

            display_status(engine, telemetry)
            last = fact

    except KeyboardInterrupt:
        console.print("\n\n[yellow]Session interrupted.[/yellow]")

    _display_session_summary(engine, telemetry)


def _display_session_summary(engine: SchedulingEngine, telemetry: SessionTelemetry) -> None:
    """Display end-of-session summary."""
    stats = telemetry.get_stats()
    content = (
        f"[bold]Session Complete![/bold]\n\n"
        f"Duration: {stats['duration_minutes']:.1f} minutes\n"
        f"Session: {stats['correct_count']} correct, {stats['wrong_count']} wrong\n"
        f"Accuracy: {stats['accuracy_percent']:.1f}%\n"
        f"Best streak: {stats['best_streak']}\n"
        f"All-time: {engine.total_correct()} correct, {engine.total_wrong()} wrong"
    )

    struggling = telemetry.get_struggling_facts()
    if struggling:
        content += "\n\nKeep practising: " + ", ".join(f"{f.a} × {f.b}" for f in struggling)

    console.print("\n")
    console.print(Panel(content, title="Summary", border_style="green"))


@app.command()
def stats() -> None:
    """Show learning statistics and progress."""
    store = _progress_file()
    engine = store.load_or_new()
    summary = engine.summary()

    console.print("\n[bold cyan]Learning Statistics[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    next_table = summary["next_table"]
    table.add_row("Unlocked tables", ", ".join(str(t) for t in summary["unlocked_tables"]))
    table.add_row("Next table", f"{next_table}×" if next_table is not None else "all unlocked")
    table.add_row("Mastered", f"{summary['mastered']}/{summary['total']}")
    table.add_row("Due now", str(summary["due"]))
    table.add_row("All-time correct", str(summary["total_correct"]))
    table.add_row("All-time wrong", str(summary["total_wrong"]))

    console.print(table)


@app.command()
def tables() -> None:
    """Show the grid of open facts with their ease factors."""
    engine = _progress_file().load_or_new()
    now = engine.clock()
    values = sorted(engine.unlocked_tables_display())

    grid = Table(title="Open facts (ease factor)")
    grid.add_column("×", style="bold")
    for b in values:
        grid.add_column(str(b), justify="right")

    for a in values:
        cells = []
        for b in values:
            stats = engine.stats_for(Fact(a, b))
            if stats.is_mastered():
                style = STYLES["mastered"]
            elif stats.is_due(now):
                style = STYLES["due"]
            else:
                style = STYLES["learning"]
            cells.append(f"[{style}]{stats.ease_factor:.2f}[/{style}]")
        grid.add_row(str(a), *cells)

    console.print(grid)
    console.print(
        f"[{STYLES['mastered']}]mastered[/{STYLES['mastered']}]  "
        f"[{STYLES['due']}]due[/{STYLES['due']}]  "
        "scheduled"
    )


@app.command()
def reset(
    confirm: bool = typer.Option(
        False,
        "--yes", "-y",
        help="Skip confirmation",
    ),
) -> None:
    """Clear all progress for a fresh start. A backup is kept."""
    if not confirm and not Confirm.ask("Reset ALL progress?", default=False, console=console):
        raise typer.Exit(0)

    store = _progress_file()
    try:
        backup = store.reset()
    except ProgressFileError as e:
        console.print(f"[{STYLES['incorrect']}]Reset failed: {e}[/{STYLES['incorrect']}]")
        raise typer.Exit(1)

    if backup:
        console.print(f"[dim]Backup saved: {backup}[/dim]")
    console.print("[green]All progress has been reset.[/green]")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port"),
) -> None:
    """Run the multi-user HTTP server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "times_tables.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)

    app()


if __name__ == "__main__":
    main()
