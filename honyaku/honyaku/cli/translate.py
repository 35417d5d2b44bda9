"""
Translate command for Honyaku CLI.

Scouts names, pauses for review, then translates the chapters of a work folder.
"""
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape
from rich.rule import Rule

from .base import (
    build_pipeline,
    exit_on_error,
    interactive_review,
    load_chapters,
    load_config_or_exit,
)
from ..logging import HonyakuError, console, get_logger, log_step, log_substep

logger = get_logger(__name__)


@click.command()
@click.argument("work_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--module", "module_name", required=True, help="Source site module the work came from (e.g. kakuyomu).")
@click.option("--work-id", required=True, help="Work ID on the source site.")
@click.option("--start", type=int, default=None, help="First chapter to translate.")
@click.option("--end", type=int, default=None, help="Last chapter to translate.")
@click.option("--no-name-pause", is_flag=True, help="Skip the name review pause after scouting.")
@click.option("--no-progress", is_flag=True, help="Hide the live streaming progress lines.")
def translate(
    work_dir: Path,
    module_name: str,
    work_id: str,
    start: Optional[int],
    end: Optional[int],
    no_name_pause: bool,
    no_progress: bool
) -> None:
    """
    Translate the chapters in WORK_DIR.

    Originals are read from WORK_DIR/Original ("NN - title.txt") or
    WORK_DIR/original.txt for a one-shot. Chapters that already have a
    translation are skipped.
    """
    logger.info(
        f"Translate command started (work_dir={work_dir}, module={module_name}, id={work_id}, "
        f"start={start}, end={end}, no_name_pause={no_name_pause})"
    )
    config = load_config_or_exit(require_scout_api=True)

    try:
        chapters, total, oneshot = load_chapters(work_dir, start, end)
        if not chapters:
            console.print(f"[yellow]No chapters found in {escape(str(work_dir))}[/yellow]")
            return

        log_step(escape(f"Translating {len(chapters)} of {total} chapters: [{module_name}: {work_id}]"))
        log_substep(f"Reading {'one-shot' if oneshot else 'chapters'} from {work_dir}")
        pipeline = build_pipeline(config, module_name, work_id, show_progress=not no_progress)
        review = None if no_name_pause else interactive_review(config.paths.editor_command)

        written = pipeline.process(chapters, work_dir, total, oneshot=oneshot, review=review)
    except HonyakuError as e:
        exit_on_error(e)
        return

    console.print(Rule(f"[bold green]Done: {len(written)} files written[/bold green]"))
    logger.info(f"Translate command finished ({len(written)} files written)")
