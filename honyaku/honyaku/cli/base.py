"""
Shared CLI utilities and base functionality.

Builds the components a command needs from configuration and provides the
interactive bits (progress line, editor, review prompt).
"""
import platform
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import click
from rich.markup import escape
from rich.text import Text

from ..ai_api import ApiClient
from ..config import HonyakuConfig, get_config
from ..constants import (
    EDITOR_CANDIDATES_LINUX,
    EDITOR_CANDIDATES_MACOS,
    EDITOR_CANDIDATES_WINDOWS,
)
from ..library import LocalChapterSource, validate_chapter_range
from ..logging import ConfigError, ConsoleSink, HonyakuError, console, get_logger
from ..models import ChapterText, StreamProgress
from ..name_store import NameConsensusStore
from ..pipeline import WorkPipeline
from ..scout import NameScout
from ..translator import Translator

logger = get_logger(__name__)


def load_config_or_exit(require_scout_api: bool = True) -> HonyakuConfig:
    """
    Loads and validates configuration for a run.

    Raises:
        SystemExit: If a required value is missing.
    """
    config = get_config()
    try:
        config.validate_for_run(require_scout_api=require_scout_api)
    except ConfigError as e:
        logger.error(str(e))
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)
    return config


def exit_on_error(e: HonyakuError) -> None:
    logger.error(str(e))
    console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
    sys.exit(1)


def print_progress(progress: StreamProgress) -> None:
    """One status line per progress snapshot: chapter/chunk, speed, tail of the output."""
    line = Text()
    if progress.info is not None:
        line.append(
            f"Ch.{progress.info.chapter} [{progress.info.chunk}/{progress.info.total_chunks}] ",
            style="bold cyan"
        )
    line.append(f"{progress.chars} chars ", style="green")
    line.append(f"({progress.chars_per_second} c/s) ", style="dim")
    line.append(progress.preview, style="italic dim")
    console.print(line, highlight=False, overflow="ellipsis", no_wrap=True)


def build_store(config: HonyakuConfig, module_name: str, work_id: str) -> NameConsensusStore:
    return NameConsensusStore(config.names_dir(), module_name, work_id)


def build_pipeline(
    config: HonyakuConfig,
    module_name: str,
    work_id: str,
    show_progress: bool = True
) -> WorkPipeline:
    """Wires store, scout and translator for one work from configuration."""
    sink = ConsoleSink(console)
    store = build_store(config, module_name, work_id)

    scout = NameScout(
        ApiClient.from_config(config.scout_api_config()),
        config.name_scout,
        config.prompts.name_scout,
        sink=sink,
    )
    translator = Translator(
        ApiClient.from_config(config.api),
        config.translation,
        config.prompts.title_translation,
        config.prompts.content_translation,
        sink=sink,
        on_progress=print_progress if show_progress else None,
    )
    return WorkPipeline(store, scout, translator, sink=sink)


def load_chapters(
    work_dir: Path,
    start: Optional[int],
    end: Optional[int]
) -> Tuple[List[ChapterText], int, bool]:
    """
    Reads originals from a work folder and applies --start/--end.

    Returns:
        (selected chapters, total chapter count, is one-shot)
    """
    source = LocalChapterSource(work_dir)
    chapters = source.chapters()
    oneshot = source.is_oneshot()
    total = max((c.number for c in chapters), default=0)

    if not chapters:
        return [], total, oneshot

    first, last = validate_chapter_range(start, end, total, oneshot)
    selected = [c for c in chapters if first <= c.number <= last]
    return selected, total, oneshot


def editor_candidates() -> Tuple[str, ...]:
    system = platform.system()
    if system == "Windows":
        return EDITOR_CANDIDATES_WINDOWS
    if system == "Darwin":
        return EDITOR_CANDIDATES_MACOS
    return EDITOR_CANDIDATES_LINUX


def find_editor(preferred: Optional[str] = None) -> Optional[str]:
    """Configured editor if set, otherwise the first known editor on PATH."""
    if preferred:
        return preferred
    for candidate in editor_candidates():
        if shutil.which(candidate):
            return candidate
    return None


def make_editor_opener(preferred: Optional[str] = None) -> Callable[[Path], None]:
    def open_editor(path: Path) -> None:
        editor = find_editor(preferred)
        if editor is None:
            console.print(f"[yellow]No editor found. Please open manually: {escape(str(path))}[/yellow]")
            return
        try:
            # Don't wait: the person confirms with Enter when done
            subprocess.Popen([editor, str(path)])
            console.print(f"[dim]Opened in {editor}[/dim]")
        except OSError as e:
            logger.warning(f"Failed to open editor {editor}: {e}")
            console.print(f"[yellow]Could not open {editor}. Please open manually: {escape(str(path))}[/yellow]")
    return open_editor


def wait_for_enter() -> None:
    click.prompt(
        "Review the name mapping, save it, then press Enter to continue",
        default="",
        show_default=False,
        prompt_suffix=" "
    )


def interactive_review(editor_command: Optional[str] = None) -> Callable[[WorkPipeline], None]:
    def review(pipeline: WorkPipeline) -> None:
        pipeline.review_names(wait_for_enter, make_editor_opener(editor_command))
    return review
