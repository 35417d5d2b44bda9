"""
On-disk layout of translated works.

A work lives in "<output>/[<module>: <id>] <English title>/". Downloaded
originals go into its "Original" folder as "<NN> - <title>.txt"; translated
chapters sit next to that folder under the same numbering.
"""

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Protocol, Tuple

from .constants import (
    FILENAME_INVALID_CHARS,
    FILENAME_REPLACEMENT_CHAR,
    ORIGINAL_DIRNAME,
    ONESHOT_ORIGINAL_FILENAME,
)
from .logging import FileError, ValidationError
from .models import ChapterText

logger = logging.getLogger(__name__)

CHAPTER_FILE_RE = re.compile(r'^(\d+) - (.*)\.txt$')
TRANSLATED_PREFIX_RE = re.compile(r'^(\d+) - ')


class ChapterSource(Protocol):
    """Anything that can hand over downloaded chapters (a scraper, a folder...)."""

    def is_oneshot(self) -> bool: ...

    def chapters(self) -> List[ChapterText]: ...


def sanitize_filename(name: str) -> str:
    """
    Sanitizes a string for use as a file or folder name.
    Replaces \\ / * ? " < > | with underscores and trims trailing dots and spaces.
    """
    sanitized = "".join(FILENAME_REPLACEMENT_CHAR if c in FILENAME_INVALID_CHARS else c for c in name)
    return sanitized.rstrip(" .")


def chapter_prefix(number: int, total_chapters: int) -> str:
    """Chapter number zero-padded to the width of the chapter count."""
    width = len(str(max(total_chapters, 1)))
    return f"{number:0{width}d}"


def chapter_filename(number: int, total_chapters: int, title: str, prefix: Optional[str] = None) -> str:
    """Uses the given prefix when there is one, else pads the number to the chapter count."""
    if prefix is None:
        prefix = chapter_prefix(number, total_chapters)
    return f"{prefix} - {sanitize_filename(title)}.txt"


def work_folder_name(module_name: str, novel_id: str, title: str) -> str:
    return f"[{module_name}: {novel_id}] {sanitize_filename(title)}"


def find_work_folder(output_dir: Path, module_name: str, novel_id: str) -> Optional[str]:
    """
    Finds an existing folder for a work.

    Matches the current "[module: id]" prefix and the older "[id]" one.
    """
    if not output_dir.is_dir():
        return None

    prefixes = (f"[{module_name}: {novel_id}]", f"[{novel_id}]")
    for entry in sorted(output_dir.iterdir()):
        if entry.is_dir() and entry.name.startswith(prefixes):
            return entry.name
    return None


def translation_exists(work_dir: Path, number: int) -> bool:
    """
    True if a translated file for this chapter number is already in the work folder.

    Compares numbers, not prefixes, so "1 - " and "01 - " both count as chapter 1.
    """
    if not work_dir.is_dir():
        return False
    for path in work_dir.iterdir():
        match = TRANSLATED_PREFIX_RE.match(path.name)
        if match and path.is_file() and int(match.group(1)) == number:
            return True
    return False


def validate_chapter_range(
    start: Optional[int],
    end: Optional[int],
    total_chapters: int,
    oneshot: bool = False
) -> Tuple[int, int]:
    """
    Resolves --start/--end against the chapter count.

    Raises:
        ValidationError: For a range on a one-shot, start after end, or end past the last chapter.
    """
    if oneshot:
        if start is not None or end is not None:
            raise ValidationError("Cannot use --start or --end with one-shot stories")
        return 1, 1

    start_chapter = start if start is not None else 1
    end_chapter = end if end is not None else total_chapters

    if start_chapter < 1:
        raise ValidationError(f"Start chapter ({start_chapter}) must be at least 1")
    if start_chapter > end_chapter:
        raise ValidationError(
            f"Start chapter ({start_chapter}) cannot be greater than end chapter ({end_chapter})"
        )
    if end_chapter > total_chapters:
        raise ValidationError(
            f"End chapter ({end_chapter}) exceeds total chapters ({total_chapters})"
        )
    return start_chapter, end_chapter


class LocalChapterSource:
    """
    Reads chapters that were already downloaded into a work folder.

    Multi-chapter works keep one file per chapter in "Original/"; a one-shot
    keeps its text in "original.txt".
    """

    def __init__(self, work_dir: Path):
        self.work_dir = Path(work_dir)

    @property
    def original_dir(self) -> Path:
        return self.work_dir / ORIGINAL_DIRNAME

    def is_oneshot(self) -> bool:
        return (self.work_dir / ONESHOT_ORIGINAL_FILENAME).is_file() and not self.original_dir.is_dir()

    def _chapter_files(self) -> Iterator[Tuple[str, str, Path]]:
        for path in sorted(self.original_dir.glob("*.txt")):
            match = CHAPTER_FILE_RE.match(path.name)
            if not match:
                logger.debug(f"Ignoring file without chapter number: {path.name}")
                continue
            yield match.group(1), match.group(2), path

    def chapters(self) -> List[ChapterText]:
        """
        Raises:
            FileError: If the work folder has no originals or a file can't be read.
        """
        try:
            if self.is_oneshot():
                content = (self.work_dir / ONESHOT_ORIGINAL_FILENAME).read_text(encoding="utf-8")
                return [ChapterText(number=1, title=self.work_dir.name, content=content)]

            if not self.original_dir.is_dir():
                raise FileError(f"No '{ORIGINAL_DIRNAME}' folder or '{ONESHOT_ORIGINAL_FILENAME}' in {self.work_dir}")

            chapters = [
                ChapterText(
                    number=int(prefix),
                    title=title,
                    content=path.read_text(encoding="utf-8"),
                    prefix=prefix,
                )
                for prefix, title, path in self._chapter_files()
            ]
        except OSError as e:
            raise FileError(f"Failed to read chapters from {self.work_dir}: {e}") from e

        return sorted(chapters, key=lambda c: c.number)
