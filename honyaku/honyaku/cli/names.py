"""
Names command for Honyaku CLI.

Shows the name mapping of a work: chosen English form, part, votes, and which
chapters have been scouted.
"""
import click
from rich import box
from rich.markup import escape
from rich.table import Table

from .base import build_store, exit_on_error
from ..config import get_config
from ..logging import HonyakuError, console, get_logger

logger = get_logger(__name__)


@click.command()
@click.option("--module", "module_name", required=True, help="Source site module the work came from.")
@click.option("--work-id", required=True, help="Work ID on the source site.")
@click.option("--votes", "show_votes", is_flag=True, help="Show every candidate and its vote count.")
def names(module_name: str, work_id: str, show_votes: bool) -> None:
    """Show the name mapping for a work."""
    try:
        store = build_store(get_config(), module_name, work_id)
    except HonyakuError as e:
        exit_on_error(e)
        return

    if not store.filepath.exists():
        console.print(f"[yellow]No name mapping yet: {escape(str(store.filepath))}[/yellow]")
        return

    table = Table(title=escape(f"Names: [{module_name}: {work_id}]"), box=box.ROUNDED)
    table.add_column("Original", style="cyan")
    table.add_column("English", style="green")
    table.add_column("Part", style="magenta")
    table.add_column("Votes", justify="right")
    if show_votes:
        table.add_column("Candidates", style="dim")

    for original, record in store.names():
        row = [
            original,
            record.english or "-",
            record.part.value,
            f"{record.count or 0}/{record.total_votes}",
        ]
        if show_votes:
            row.append(", ".join(f"{name} ({count})" for name, count in sorted(record.votes.items())))
        table.add_row(*row)

    console.print(table)

    coverage = store.coverage
    if coverage:
        console.print(f"[dim]Scouted chapters ({len(coverage)}): {', '.join(map(str, coverage))}[/dim]")
    else:
        console.print("[dim]No chapters scouted yet[/dim]")
