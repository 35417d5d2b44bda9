from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class NamePart(str, Enum):
    """Which part of a person's name a fragment is."""
    FAMILY = "family"
    GIVEN = "given"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "NamePart":
        """Case-insensitive; anything unrecognised is UNKNOWN."""
        if not isinstance(value, str):
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class NameEntry:
    """One candidate name extracted by the scout, before voting."""
    original: str
    english: str
    part: NamePart = NamePart.UNKNOWN


@dataclass
class NameRecord:
    """Vote tally for one original name fragment."""
    part: NamePart = NamePart.UNKNOWN
    votes: Dict[str, int] = field(default_factory=dict)
    english: Optional[str] = None
    count: Optional[int] = None

    @property
    def total_votes(self) -> int:
        return sum(self.votes.values())

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"part": self.part.value, "votes": dict(self.votes)}
        if self.english is not None:
            data["english"] = self.english
            data["count"] = self.count
        return data


@dataclass
class Message:
    """A chat message as sent to the completion endpoint."""
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ProgressInfo:
    """Where in a work the translator currently is (1-based)."""
    chapter: int
    chunk: int = 1
    total_chunks: int = 1


@dataclass(frozen=True)
class StreamProgress:
    """Snapshot handed to the display callback while a response streams in."""
    chars: int
    elapsed: float
    preview: str
    info: Optional[ProgressInfo] = None

    @property
    def chars_per_second(self) -> int:
        if self.elapsed <= 0:
            return 0
        return int(self.chars / self.elapsed)


class ChunkStatus(str, Enum):
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


@dataclass
class ChunkOutcome:
    """Terminal state of one scouted chunk."""
    index: int
    status: ChunkStatus
    entries: List[NameEntry] = field(default_factory=list)
    attempts: int = 0


@dataclass(frozen=True)
class NovelInfo:
    """Identity of a work as reported by a scraper."""
    title: str
    novel_id: str
    module: str


@dataclass(frozen=True)
class ChapterText:
    """A downloaded chapter: number (1-based), title and raw text."""
    number: int
    title: str
    content: str
    # Number as written in the original file name ("007"), if it came from one
    prefix: Optional[str] = None
