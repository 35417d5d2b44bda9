"""
Persistent, vote-based store of character name renderings for one work.

Every time the scout reads a chunk it reports the names it saw together with
an English rendering. The store counts those reports per (original, english)
pair and exposes the rendering with the most votes as the current best, which
the translator substitutes into the source text before sending it off.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, StrictInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from .logging import FileError, ParseError
from .models import NameEntry, NamePart, NameRecord
from .rules import DEFAULT_RULES, RejectionRule, first_rejection

logger = logging.getLogger(__name__)


def choose_best(
    previous_best: Optional[str],
    previous_count: Optional[int],
    votes: Dict[str, int]
) -> Tuple[Optional[str], Optional[int]]:
    """
    Picks the winning rendering from a vote tally.

    The highest count wins. When several renderings share the highest count,
    the previous best stays if it is one of them and its count has not gone
    down; otherwise the alphabetically first of them wins.

    Returns:
        (best, count), or (None, None) for an empty tally.
    """
    if not votes:
        return None, None

    top = max(votes.values())
    leaders = sorted(english for english, count in votes.items() if count == top)

    if previous_best in leaders:
        if previous_count is None or votes[previous_best] >= previous_count:
            return previous_best, top

    return leaders[0], top


def mapping_filename(module_name: str, novel_id: str) -> str:
    """File name for a work's mapping. Windows doesn't allow ':' in file names."""
    if os.name == "nt":
        return f"{module_name} - {novel_id}.json"
    return f"{module_name}: {novel_id}.json"


class _NameInfoSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    part: NamePart
    votes: Dict[str, StrictInt]
    english: Optional[str] = None
    count: Optional[StrictInt] = None

    @field_validator("part", mode="before")
    @classmethod
    def normalise_part(cls, v):
        if isinstance(v, str) and v.strip().lower() in {p.value for p in NamePart}:
            return v.strip().lower()
        return v

    @field_validator("votes")
    @classmethod
    def validate_votes(cls, v: Dict[str, int]) -> Dict[str, int]:
        for english, count in v.items():
            if count < 0:
                raise ValueError(f"vote count for '{english}' must not be negative")
        return v


class _MappingFileSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    names: Dict[str, _NameInfoSchema]
    coverage: List[StrictInt]

    @field_validator("coverage")
    @classmethod
    def validate_coverage(cls, v: List[int]) -> List[int]:
        if any(n < 0 for n in v):
            raise ValueError("chapter numbers must not be negative")
        return v


class NameConsensusStore:
    """
    Name mapping store for a single work.

    The state is loaded from disk on construction when the file exists. Call
    save() after each batch of changes; nothing is written implicitly.
    """

    def __init__(
        self,
        names_dir: Union[str, Path],
        module_name: str,
        novel_id: str,
        rules: Sequence[RejectionRule] = DEFAULT_RULES
    ):
        """
        Args:
            names_dir: Directory where mapping files are kept.
            module_name: Source site identifier (e.g. "syosetu").
            novel_id: Identifier of the work on that site.
            rules: Rejection rules applied to every vote.

        Raises:
            FileError: If an existing mapping file can't be read.
            ParseError: If an existing mapping file is malformed.
        """
        self.filepath = Path(names_dir) / mapping_filename(module_name, novel_id)
        self.rules = rules
        self.records: Dict[str, NameRecord] = {}
        self._coverage: Set[int] = set()

        if self.filepath.exists():
            self.reload_from_disk()

        self.purge_bad_votes()

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, original: str) -> bool:
        return original in self.records

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def coverage(self) -> List[int]:
        return sorted(self._coverage)

    def get(self, original: str) -> Optional[NameRecord]:
        return self.records.get(original)

    def names(self) -> Iterator[Tuple[str, NameRecord]]:
        """Yields (original, record) pairs sorted by original."""
        for original in sorted(self.records):
            yield original, self.records[original]

    def mapping(self) -> Dict[str, str]:
        """Current best rendering for every original that has one."""
        return {o: r.english for o, r in self.records.items() if r.english is not None}

    def record_votes(self, entries: Iterable[NameEntry]) -> int:
        """
        Counts one vote per acceptable entry.

        Entries that any rejection rule refuses are skipped. Calling this twice
        with the same entries counts them twice.

        Returns:
            Number of entries that were counted.
        """
        accepted = 0
        for entry in entries:
            rule = first_rejection(entry.original, entry.english, self.rules)
            if rule is not None:
                logger.debug(f"Rejected name '{entry.original}' -> '{entry.english}' ({rule.name})")
                continue

            record = self.records.get(entry.original)
            if record is None:
                record = NameRecord(part=entry.part)
                self.records[entry.original] = record

            if record.part == NamePart.UNKNOWN and entry.part != NamePart.UNKNOWN:
                record.part = entry.part

            record.votes[entry.english] = record.votes.get(entry.english, 0) + 1
            record.english, record.count = choose_best(record.english, record.count, record.votes)
            accepted += 1

        self.purge_bad_votes()
        return accepted

    def purge_bad_votes(self) -> int:
        """
        Re-checks every stored vote against the rejection rules.

        Also drops votes with a count below one, which can only come from a
        hand-edited file. Records left without votes are removed.

        Returns:
            Number of votes removed.
        """
        purged, removed = self._purged(self.records)
        self.records = purged
        if removed:
            logger.info(f"Purged {removed} bad votes from {self.filepath.name}")
        return removed

    def _purged(self, records: Dict[str, NameRecord]) -> Tuple[Dict[str, NameRecord], int]:
        result: Dict[str, NameRecord] = {}
        removed = 0

        for original, record in records.items():
            votes = {
                english: count
                for english, count in record.votes.items()
                if count > 0 and first_rejection(original, english, self.rules) is None
            }
            removed += len(record.votes) - len(votes)
            if not votes:
                continue

            english, count = choose_best(record.english, record.count, votes)
            result[original] = NameRecord(part=record.part, votes=votes, english=english, count=count)

        return result, removed

    def is_chapter_covered(self, chapter_number: int) -> bool:
        return chapter_number in self._coverage

    def add_coverage(self, chapters: Iterable[int]) -> None:
        self._coverage.update(chapters)

    def apply_to_text(self, text: str) -> str:
        """
        Replaces every known original in text with its best rendering.

        Longer originals are replaced first so that a full name is never split
        by a shorter name that happens to be part of it.
        """
        replacements = sorted(
            self.mapping().items(),
            key=lambda pair: (-len(pair[0]), pair[0])
        )

        result = text
        for original, english in replacements:
            result = result.replace(original, english)
        return result

    def to_dict(self) -> Dict[str, object]:
        return {
            "names": {original: record.to_dict() for original, record in self.names()},
            "coverage": self.coverage,
        }

    def save(self) -> None:
        """
        Writes the full state to disk.

        Raises:
            FileError: If the directory or file can't be written.
        """
        tmp_path = self.filepath.with_name(self.filepath.name + ".tmp")
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.filepath)
        except OSError as e:
            raise FileError(f"Failed to save name mapping to {self.filepath}: {e}") from e

        logger.debug(f"Saved {len(self.records)} names to {self.filepath}")

    def reload_from_disk(self) -> None:
        """
        Replaces the in-memory state with the file's contents.

        The file is fully parsed and validated before anything is replaced,
        so a broken file leaves the current state as it was.

        Raises:
            FileError: If the file can't be read.
            ParseError: If the file isn't valid mapping JSON.
        """
        try:
            content = self.filepath.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Name mapping {self.filepath} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise FileError(f"Failed to read name mapping {self.filepath}: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"Failed to parse name mapping JSON: {e}") from e

        try:
            schema = _MappingFileSchema.model_validate(data)
        except PydanticValidationError as e:
            raise ParseError(f"Invalid name mapping structure: {e}") from e

        loaded = {
            original: NameRecord(
                part=info.part,
                votes=dict(info.votes),
                english=info.english,
                count=info.count,
            )
            for original, info in schema.names.items()
        }
        records, removed = self._purged(loaded)

        self.records = records
        self._coverage = set(schema.coverage)
        logger.info(
            f"Loaded {len(records)} names and {len(self._coverage)} covered chapters "
            f"from {self.filepath.name}" + (f" ({removed} bad votes dropped)" if removed else "")
        )
