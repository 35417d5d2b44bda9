"""
Drives one work through scouting, name review and translation.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .constants import ONESHOT_TRANSLATED_FILENAME, TITLE_FAILED_SUFFIX
from .library import (
    chapter_filename,
    find_work_folder,
    sanitize_filename,
    translation_exists,
    work_folder_name,
)
from .logging import ExhaustedError, FileError, LoggingSink, OutputSink, ParseError
from .models import ChapterText, NovelInfo, ProgressInfo
from .name_store import NameConsensusStore
from .scout import NameScout, build_chapter_payload
from .translator import Translator

logger = logging.getLogger(__name__)


class WorkPipeline:
    """
    Scout -> store -> translator for a single work.

    The store is mutated only here and saved after every batch of votes, so
    an interrupted run keeps everything scouted so far.
    """

    def __init__(
        self,
        store: NameConsensusStore,
        scout: NameScout,
        translator: Translator,
        sink: Optional[OutputSink] = None
    ):
        self.store = store
        self.scout = scout
        self.translator = translator
        self.sink = sink or LoggingSink(logger)

    def scout_chapters(self, chapters: Sequence[ChapterText]) -> bool:
        """
        Scouts every chapter not yet covered and records the votes.

        Returns:
            True if any chapter was scouted, False if all were already covered.
        """
        uncovered = [c for c in chapters if not self.store.is_chapter_covered(c.number)]
        if not uncovered:
            self.sink.info("All chapters already scouted for names")
            return False

        self.sink.info(f"Scouting {len(uncovered)} chapters for character names")

        for chapter in uncovered:
            self.sink.info(f"Scouting chapter {chapter.number}: {chapter.title}")
            payload = build_chapter_payload(chapter.number, chapter.title, chapter.content)
            name_chunks = self.scout.collect_names(payload)

            total_names = sum(len(entries) for entries in name_chunks)
            self.sink.info(f"Found {total_names} names in chapter {chapter.number}")

            for entries in name_chunks:
                self.store.record_votes(entries)
                self.store.save()

            self.store.add_coverage([chapter.number])
            self.store.save()

        self.sink.success(f"Name mapping now has {len(self.store)} names")
        return True

    def review_names(
        self,
        wait: Callable[[], None],
        open_editor: Optional[Callable[[Path], None]] = None
    ) -> None:
        """
        Lets a person edit the mapping file, then reloads it.

        wait() returns once the person says they are done. A file that fails to
        parse is reported and the person is asked again; the previous mapping
        stays in memory until a valid file is loaded. wait() may raise to abort.
        """
        filepath = self.store.filepath
        if not filepath.exists():
            self.store.save()

        self.sink.info(f"Name mapping file: {filepath}")
        if open_editor is not None:
            open_editor(filepath)

        while True:
            wait()
            try:
                self.store.reload_from_disk()
            except (ParseError, FileError) as e:
                self.sink.error(f"Failed to reload name mapping: {e}")
                self.sink.info("Please fix the JSON and try again.")
                continue

            self.sink.success("Name mapping reloaded successfully")
            return

    def translate_title(self, title: str) -> str:
        """Translated title, or the original marked as failed if the model never delivered."""
        try:
            return self.translator.translate_title(self.store.apply_to_text(title))
        except ExhaustedError as e:
            self.sink.warning(f"Title translation failed: {e}")
            return f"{title} {TITLE_FAILED_SUFFIX}"

    def translate_chapter(self, chapter: ChapterText) -> Tuple[str, str]:
        """Returns (translated title, translated content) for one chapter."""
        title = self.translate_title(chapter.title)
        mapped = self.store.apply_to_text(chapter.content)
        content = self.translator.translate_content(mapped, ProgressInfo(chapter=chapter.number))
        return title, content

    def translate_chapters(
        self,
        chapters: Sequence[ChapterText],
        work_dir: Path,
        total_chapters: int
    ) -> List[Path]:
        """
        Translates and writes every chapter that has no translation yet.

        Returns:
            Paths of the files written.
        """
        written = []
        for chapter in chapters:
            if translation_exists(work_dir, chapter.number):
                self.sink.info(f"Chapter {chapter.number} already translated, skipping")
                continue

            self.sink.info(f"Translating chapter {chapter.number}: {chapter.title}")
            title, content = self.translate_chapter(chapter)
            path = work_dir / chapter_filename(chapter.number, total_chapters, title, chapter.prefix)
            _write_text(path, content)
            self.sink.success(f"Saved: {path.name}")
            written.append(path)
        return written

    def translate_oneshot(self, chapter: ChapterText, work_dir: Path) -> Optional[Path]:
        path = work_dir / ONESHOT_TRANSLATED_FILENAME
        if path.exists():
            self.sink.info("Translation already exists, skipping...")
            return None

        mapped = self.store.apply_to_text(chapter.content)
        content = self.translator.translate_content(mapped, ProgressInfo(chapter=1))
        _write_text(path, content)
        self.sink.success("Translation saved")
        return path

    def process(
        self,
        chapters: Sequence[ChapterText],
        work_dir: Path,
        total_chapters: int,
        oneshot: bool = False,
        review: Optional[Callable[["WorkPipeline"], None]] = None
    ) -> List[Path]:
        """
        Full run: scout, optional review (only if something was scouted), translate.
        """
        if not chapters:
            self.sink.warning("No chapters to process")
            return []

        scouted = self.scout_chapters(chapters)
        if review is not None and scouted:
            review(self)

        if oneshot:
            path = self.translate_oneshot(chapters[0], work_dir)
            return [path] if path else []
        return self.translate_chapters(chapters, work_dir, total_chapters)


def _write_text(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise FileError(f"Failed to write {path}: {e}") from e


def translated_folder_title(translator: Translator, title: str) -> str:
    """English title for a new work folder; falls back to the original title."""
    try:
        return sanitize_filename(translator.translate_title(title)) or sanitize_filename(title)
    except ExhaustedError:
        return sanitize_filename(title)


def resolve_work_dir(output_dir: Path, novel: NovelInfo, translator: Translator) -> Path:
    """
    Folder for a work under output_dir.

    An existing folder for the same module and ID is reused, whatever its
    title; otherwise a new one is named after the translated title.
    """
    existing = find_work_folder(output_dir, novel.module, novel.novel_id)
    if existing is not None:
        return output_dir / existing

    title = translated_folder_title(translator, novel.title)
    return output_dir / work_folder_name(novel.module, novel.novel_id, title)
