"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.identity import StaticIdentityProvider
from ..adapters.memory_store import JsonFileSlotStore
from ..config import AppConfig, load_config
from ..domain.exceptions import StoreError
from ..domain.models import AvailabilitySlot, OperationResult
from ..domain.time_codec import day_name, day_of_week_for, is_valid_time, parse_day
from ..services.availability_manager import AvailabilityManager

app = typer.Typer(
    name="slotmatch",
    help="Manage weekly availability and compare it with study partners",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
OwnerOption = Annotated[
    Optional[str],
    typer.Option("--as", help="Act as this owner instead of the configured one."),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _configure_logging(config: AppConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else config.logging.as_int()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _setup(config_file: Optional[Path], owner: Optional[str], verbose: bool):
    """Load config and wire the manager. Returns (config, manager)."""
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _configure_logging(config, verbose)

    try:
        store = JsonFileSlotStore(
            config.store_file,
            enforce_exclusion=config.enforce_store_exclusion,
        )
    except StoreError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    manager = AvailabilityManager(
        slot_store=store,
        identity_provider=StaticIdentityProvider(owner or config.owner),
        reject_batch_overlaps=config.reject_batch_overlaps,
    )
    return config, manager


def _run(coro) -> OperationResult:
    """Run a manager coroutine and stop with exit code 1 if it failed."""
    result = asyncio.run(coro)
    if not result.ok:
        console.print(f"[bold red]Error ({result.error_kind}):[/bold red] {result.message}")
        for conflict in result.conflicts:
            console.print(f"  [yellow]{conflict.slot}[/yellow] collides with:")
            for existing in conflict.conflicts:
                console.print(f"    {existing}")
        raise typer.Exit(1)
    return result


def parse_slot_arg(text: str) -> Dict[str, object]:
    """
    Parse ``DAY=HH:MM-HH:MM`` into a slot payload.

    Example: ``mon=09:00-11:00``
    """
    try:
        day_part, range_part = text.split("=", 1)
        start, end = range_part.split("-", 1)
    except ValueError:
        raise typer.BadParameter(f"Expected DAY=HH:MM-HH:MM, got '{text}'")

    try:
        day = parse_day(day_part)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    return {"day_of_week": day, "start_time": start.strip(), "end_time": end.strip()}


def parse_selection_args(args: List[str]) -> Dict[int, List[str]]:
    """
    Parse ``DAY=HH:MM,HH:MM,...`` grid selections.

    Example: ``mon=09:00,10:00,11:00 wed=14:00``
    """
    selection: Dict[int, List[str]] = {}
    for text in args:
        try:
            day_part, units_part = text.split("=", 1)
            day = parse_day(day_part)
        except ValueError:
            raise typer.BadParameter(f"Expected DAY=HH:MM[,HH:MM...], got '{text}'")
        units = [unit.strip() for unit in units_part.split(",") if unit.strip()]
        selection.setdefault(day, []).extend(units)
    return selection


def _slot_table(title: str, slots: List[AvailabilitySlot], show_ids: bool = True) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    if show_ids:
        table.add_column("ID", style="dim")
    table.add_column("Day", style="bold yellow")
    table.add_column("Start")
    table.add_column("End")

    for slot in slots:
        row = [day_name(slot.day_of_week), slot.start_time, slot.end_time]
        if show_ids:
            row.insert(0, slot.id or "")
        table.add_row(*row)

    return table


@app.command("list")
def list_slots(
    other: Annotated[Optional[str], typer.Argument(help="Show another owner's week instead of your own.")] = None,
    config_file: ConfigOption = None,
    owner: OwnerOption = None,
    verbose: VerboseOption = False,
):
    """
    List weekly availability, ordered by day and start time.
    """
    _, manager = _setup(config_file, owner, verbose)

    if other:
        result = _run(manager.list_slots_for(other))
        title = f"Availability of {other}"
    else:
        result = _run(manager.list_slots())
        title = "Your availability"

    if not result.data:
        console.print("[yellow]No availability slots defined.[/yellow]")
        return

    console.print(_slot_table(title, result.data, show_ids=not other))


@app.command()
def add(
    slots: Annotated[List[str], typer.Argument(help="Slots as DAY=HH:MM-HH:MM, e.g. mon=09:00-11:00")],
    config_file: ConfigOption = None,
    owner: OwnerOption = None,
    verbose: VerboseOption = False,
):
    """
    Add one or more slots. Nothing is saved if any of them conflicts.
    """
    payloads = [parse_slot_arg(text) for text in slots]
    _, manager = _setup(config_file, owner, verbose)

    result = _run(manager.create_slots(payloads))
    console.print(f"[green]✓ {result.data['message']}[/green]")


@app.command()
def update(
    slot_id: Annotated[str, typer.Argument(help="ID of the slot to change")],
    day: Annotated[Optional[str], typer.Option("--day", help="New day (name or 0-6, Sunday=0)")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="New start time (HH:MM)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="New end time (HH:MM)")] = None,
    config_file: ConfigOption = None,
    owner: OwnerOption = None,
    verbose: VerboseOption = False,
):
    """
    Change the day or times of one of your slots.
    """
    patch: Dict[str, object] = {}
    if day is not None:
        try:
            patch["day_of_week"] = parse_day(day)
        except ValueError as e:
            raise typer.BadParameter(str(e))
    if start is not None:
        patch["start_time"] = start
    if end is not None:
        patch["end_time"] = end

    _, manager = _setup(config_file, owner, verbose)
    result = _run(manager.update_slot(slot_id, patch))
    console.print(f"[green]✓ Updated:[/green] {result.data}")


@app.command()
def delete(
    slot_id: Annotated[str, typer.Argument(help="ID of the slot to delete")],
    config_file: ConfigOption = None,
    owner: OwnerOption = None,
    verbose: VerboseOption = False,
):
    """
    Delete one of your slots.
    """
    _, manager = _setup(config_file, owner, verbose)
    result = _run(manager.delete_slot(slot_id))
    console.print(f"[green]✓ {result.data['message']}[/green]")


@app.command()
def select(
    cells: Annotated[Optional[List[str]], typer.Argument(help="Selected grid cells as DAY=HH:MM,HH:MM,...")] = None,
    config_file: ConfigOption = None,
    owner: OwnerOption = None,
    verbose: VerboseOption = False,
):
    """
    Replace your whole week with a grid selection.

    Contiguous cells are merged, e.g. mon=09:00,10:00,11:00 becomes
    Monday 09:00-12:00. Without cells the week is cleared.
    """
    selection = parse_selection_args(cells or [])
    config, manager = _setup(config_file, owner, verbose)

    outside = sorted({
        unit
        for units in selection.values()
        for unit in units
        if is_valid_time(unit) and not config.grid.contains(unit)
    })
    if outside:
        console.print(
            f"[bold red]Error:[/bold red] cells outside the grid "
            f"({config.grid.start_hour}:00-{config.grid.end_hour}:00): {', '.join(outside)}"
        )
        raise typer.Exit(1)

    result = _run(manager.replace_schedule(selection, config.grid.granularity_minutes))
    console.print(
        f"[green]✓ Saved {result.data['count']} slot(s)[/green] "
        f"(replaced {result.data['deleted']})"
    )


@app.command()
def compare(
    other: Annotated[str, typer.Argument(help="Owner to compare your week with")],
    config_file: ConfigOption = None,
    owner: OwnerOption = None,
    verbose: VerboseOption = False,
):
    """
    Show how much weekly availability you share with another owner.
    """
    _, manager = _setup(config_file, owner, verbose)
    report = _run(manager.compare_with(other)).data

    table = Table(title=f"Shared availability with {other}", show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Shared minutes", justify="right")
    for day, minutes in report.minutes_by_day.items():
        if minutes:
            table.add_row(day_name(day), str(minutes))

    console.print()
    if report.total_minutes:
        console.print(table)
        console.print(_slot_table("Common ranges", report.shared, show_ids=False))
    console.print(
        f"[bold]Total:[/bold] {report.total_minutes} min/week "
        f"([bold]{report.compatibility:.0%}[/bold] of the smaller schedule, "
        f"{report.pair_count} overlapping slot pair(s))\n"
    )


@app.command()
def today(
    config_file: ConfigOption = None,
    owner: OwnerOption = None,
    verbose: VerboseOption = False,
):
    """
    Show your availability for the current day in the configured timezone.
    """
    config, manager = _setup(config_file, owner, verbose)

    now = pendulum.now(config.timezone)
    day = day_of_week_for(now)
    slots = [slot for slot in _run(manager.list_slots()).data if slot.day_of_week == day]

    console.print(f"\n[bold cyan]{day_name(day)}, {now.format('DD.MM.YYYY')}[/bold cyan]")
    if not slots:
        console.print("[yellow]No availability today.[/yellow]\n")
        return
    for slot in slots:
        console.print(f"  {slot.start_time} - {slot.end_time}")
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotmatch[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
