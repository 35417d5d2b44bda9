"""
New command for Honyaku CLI.

Creates (or finds) the output folder for a work so originals can be dropped into it.
"""
import sys

import click
from rich.markup import escape

from .base import exit_on_error, load_config_or_exit
from ..ai_api import ApiClient
from ..constants import ORIGINAL_DIRNAME
from ..logging import ConsoleSink, HonyakuError, console, get_logger
from ..models import NovelInfo
from ..pipeline import resolve_work_dir
from ..translator import Translator

logger = get_logger(__name__)


@click.command()
@click.option("--module", "module_name", required=True, help="Source site module the work came from.")
@click.option("--work-id", required=True, help="Work ID on the source site.")
@click.option("--title", required=True, help="Original (Japanese) title of the work.")
def new(module_name: str, work_id: str, title: str) -> None:
    """Create the folder for a work, named after its translated title."""
    config = load_config_or_exit(require_scout_api=False)
    novel = NovelInfo(title=title, novel_id=work_id, module=module_name)

    translator = Translator(
        ApiClient.from_config(config.api),
        config.translation,
        config.prompts.title_translation,
        config.prompts.content_translation,
        sink=ConsoleSink(console),
    )

    try:
        work_dir = resolve_work_dir(config.output_dir(), novel, translator)
        (work_dir / ORIGINAL_DIRNAME).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create work folder: {e}")
        console.print(f"[bold red]Error: Failed to create work folder: {escape(str(e))}[/bold red]")
        sys.exit(1)
    except HonyakuError as e:
        exit_on_error(e)
        return

    logger.info(f"Work folder ready: {work_dir}")
    console.print(f"[green]Work folder: {escape(str(work_dir))}[/green]")
    console.print(f"[dim]Put originals in {escape(str(work_dir / ORIGINAL_DIRNAME))} as 'NN - title.txt'[/dim]")
