"""
Scout command for Honyaku CLI.

Runs only the name scouting step so the mapping can be reviewed before translating.
"""
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from .base import build_pipeline, exit_on_error, load_chapters, load_config_or_exit
from ..logging import HonyakuError, console, get_logger, log_step, log_substep

logger = get_logger(__name__)


@click.command()
@click.argument("work_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--module", "module_name", required=True, help="Source site module the work came from.")
@click.option("--work-id", required=True, help="Work ID on the source site.")
@click.option("--start", type=int, default=None, help="First chapter to scout.")
@click.option("--end", type=int, default=None, help="Last chapter to scout.")
def scout(work_dir: Path, module_name: str, work_id: str, start: Optional[int], end: Optional[int]) -> None:
    """Scout character names in WORK_DIR without translating."""
    logger.info(f"Scout command started (work_dir={work_dir}, module={module_name}, id={work_id})")
    config = load_config_or_exit(require_scout_api=True)

    try:
        chapters, total, _ = load_chapters(work_dir, start, end)
        if not chapters:
            console.print(f"[yellow]No chapters found in {escape(str(work_dir))}[/yellow]")
            return

        log_step(escape(f"Scouting names: [{module_name}: {work_id}]"))
        log_substep(f"{len(chapters)} chapters loaded from {work_dir}")
        pipeline = build_pipeline(config, module_name, work_id, show_progress=False)
        pipeline.scout_chapters(chapters)
    except HonyakuError as e:
        exit_on_error(e)
        return

    console.print(f"[green]Name mapping: {escape(str(pipeline.store.filepath))}[/green]")
