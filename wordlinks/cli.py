import asyncio
import logging
from datetime import datetime
import typer
from rich.console import Console, Group
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from wordlinks.coordinator.coordinator import SessionCoordinator
from wordlinks.game.models import GameConfig
from wordlinks.notifications.scheduler import InMemoryNotificationScheduler
from wordlinks.puzzles.source import FilePuzzleSource, HttpPuzzleSource, PuzzleSource
from wordlinks.storage.json_store import JsonStorage
from wordlinks.terminal.clock import AsyncioClock
from wordlinks.terminal.scheduler import TerminalScheduler
from wordlinks.words.bank import Dictionary

app = typer.Typer(help="Links: a daily word-chain puzzle in your terminal.")
console = Console()

HELP_TEXT = "Commands: :go (follow link)  :today  :yesterday  :reset  :quit"


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _render(coordinator: SessionCoordinator) -> Panel:
    lines = [Text(line, style="green") for line in coordinator.scheduler.snapshot()]
    title = Text(coordinator.header, style="bold green")
    subtitle = Text(f"♥ {coordinator.lives_remaining}", style="bold red")
    return Panel(Group(*lines), title=title, subtitle=subtitle, border_style="green", width=72)


async def _render_until_idle(coordinator: SessionCoordinator):
    with Live(_render(coordinator), console=console, refresh_per_second=30, transient=True) as live:
        while coordinator.is_animating:
            live.update(_render(coordinator))
            await asyncio.sleep(1 / 60)
    console.print(_render(coordinator))


@app.command()
def play(
    api_url: str = typer.Option(None, envvar="WORDLINKS_API_URL", help="Puzzle API endpoint"),
    puzzles_file: str = typer.Option("data/puzzles.json", envvar="WORDLINKS_PUZZLES", help="Local puzzle file, used when no API URL is set"),
    dictionary_file: str = typer.Option("data/words_en.json", envvar="WORDLINKS_DICTIONARY", help="Path to word dictionary"),
    data_dir: str = typer.Option("results", envvar="WORDLINKS_DATA_DIR", help="Directory for saved sessions"),
    max_lives: int = typer.Option(10, help="Lives per puzzle"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    Plays today's puzzle.
    """
    _setup_logging(verbose)
    asyncio.run(_async_play(api_url, puzzles_file, dictionary_file, data_dir, max_lives))


async def _async_play(api_url, puzzles_file, dictionary_file, data_dir, max_lives):
    # 1. Load configuration and collaborators
    config = GameConfig(max_lives=max_lives)
    try:
        dictionary = Dictionary.from_file(dictionary_file, min_length=config.min_word_length)
    except FileNotFoundError:
        console.print(f"[red]Error: {dictionary_file} not found.[/red]")
        return

    source: PuzzleSource
    if api_url:
        source = HttpPuzzleSource(api_url, expected_word_count=config.expected_word_count)
    else:
        source = FilePuzzleSource(puzzles_file, expected_word_count=config.expected_word_count, fallback=True)

    clock = AsyncioClock()
    storage = JsonStorage(data_dir)
    notifier = InMemoryNotificationScheduler(clock)
    notifier.schedule_upcoming()

    # 2. Wire the terminal and start today's game
    scheduler = TerminalScheduler(clock)
    coordinator = SessionCoordinator(scheduler, clock, source, storage, dictionary, notifier, config)
    await coordinator.start()
    console.print(f"[dim]{HELP_TEXT}[/dim]")

    # 3. Input loop
    while True:
        await _render_until_idle(coordinator)
        try:
            entry = await asyncio.to_thread(console.input, "[green]> [/green]")
        except (EOFError, KeyboardInterrupt):
            break

        command = entry.strip().lower()
        if command in (":q", ":quit"):
            break
        elif command == ":today":
            await coordinator.switch_to_today()
        elif command == ":yesterday":
            await coordinator.switch_to_prior_day()
        elif command == ":go":
            if not await coordinator.follow_navigation_link():
                console.print("[yellow]No link on screen.[/yellow]")
        elif command == ":reset":
            await coordinator.full_reset()
        elif command.startswith(":"):
            console.print(f"[dim]{HELP_TEXT}[/dim]")
        else:
            coordinator.submit(entry)


@app.command()
def stats(data_dir: str = typer.Option("results", envvar="WORDLINKS_DATA_DIR", help="Directory for saved sessions")):
    """
    Displays completion statistics and recent games.
    """
    storage = JsonStorage(data_dir)
    summary = storage.completion_stats(datetime.now().date())

    table = Table(title="Links Statistics")
    table.add_column("Completed", justify="right")
    table.add_column("Won", justify="right", style="bold green")
    table.add_column("Win rate", justify="right")
    table.add_column("Streak", justify="right", style="cyan")
    table.add_row(
        str(summary.total_completed),
        str(summary.games_won),
        f"{summary.win_rate:.0%}",
        str(summary.current_streak),
    )
    console.print(table)

    recent = sorted(storage.load_all(), key=lambda r: r.game_date, reverse=True)[:10]
    if not recent:
        return
    history = Table(title="Recent Games")
    history.add_column("Date", style="cyan")
    history.add_column("Result")
    history.add_column("Words", justify="right")
    history.add_column("Lives used", justify="right")
    for record in recent:
        if not record.is_completed:
            result = "[yellow]In progress[/yellow]"
        elif record.did_win:
            result = "[green]Won[/green]"
        else:
            result = "[red]Lost[/red]"
        history.add_row(record.display_date, result, str(record.words_completed), str(record.lives_used))
    console.print(history)


@app.command()
def reset(
    data_dir: str = typer.Option("results", envvar="WORDLINKS_DATA_DIR", help="Directory for saved sessions"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Deletes every saved session.
    """
    if not yes and not typer.confirm("Wipe all saved sessions?"):
        raise typer.Abort()
    JsonStorage(data_dir).wipe_all()
    console.print("[green]All sessions wiped.[/green]")


if __name__ == "__main__":
    app()
