"""
Name scout: asks a model which character names appear in a piece of text.

The text is cut into chunks and each chunk is sent on its own. A chunk is
retried with exponential backoff when the model refuses, the answer has no
usable JSON, or the request fails. A chunk that never succeeds is logged and
skipped; the rest of the text is still scouted.
"""

import json
import logging
import re
import time
from typing import Any, List, Optional

from .ai_api import ApiClient, is_refusal
from .chunker import chunk_text
from .config import NameScoutConfig
from .logging import HonyakuError, LoggingSink, OutputSink, ParseError, RefusedError
from .models import ChunkOutcome, ChunkStatus, Message, NameEntry, NamePart

logger = logging.getLogger(__name__)

CODE_FENCE_RE = re.compile(r'^```[a-zA-Z]*\s*(.*?)\s*```$', re.DOTALL)


def build_chapter_payload(chapter_number: int, title: str, content: str) -> str:
    """Text sent to the scout for one chapter: a heading line, then the content."""
    return f"### Chapter {chapter_number} - {title}\n{content}"


def strip_code_fence(text: str) -> str:
    """Removes a surrounding ``` / ```json fence if the text starts with one."""
    trimmed = text.strip()
    if not trimmed.startswith("```"):
        return trimmed

    match = CODE_FENCE_RE.match(trimmed)
    if match:
        return match.group(1)

    # Unterminated or odd fence: peel the markers off by hand
    without_start = re.sub(r'^```[a-zA-Z]*', '', trimmed)
    return without_start.rstrip().removesuffix("```").strip()


def parse_names_response(raw: str) -> List[NameEntry]:
    """
    Extracts name entries from a model answer.

    Expected shape: {"names": [{"original": ..., "english": ..., "part": ...}]}.
    Preambles and postambles around the object are ignored. Entries without
    an original or english value are dropped; a missing or unknown part
    becomes UNKNOWN.

    Raises:
        ParseError: If no JSON object with a names list can be found.
    """
    text = strip_code_fence(raw)

    first_brace = text.find('{')
    last_brace = text.rfind('}')
    if first_brace == -1 or last_brace == -1 or last_brace < first_brace:
        raise ParseError("No valid JSON object found")

    try:
        data = json.loads(text[first_brace:last_brace + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON parse error: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("names"), list):
        raise ParseError("JSON object has no 'names' list")

    entries = []
    for item in data["names"]:
        entry = _to_entry(item)
        if entry is not None:
            entries.append(entry)
    return entries


def _to_entry(item: Any) -> Optional[NameEntry]:
    if not isinstance(item, dict):
        return None

    original = item.get("original")
    english = item.get("english")
    if not isinstance(original, str) or not isinstance(english, str):
        return None

    original = original.strip()
    english = english.strip()
    if not original or not english:
        return None

    return NameEntry(original=original, english=english, part=NamePart.parse(item.get("part")))


class NameScout:
    """Extracts candidate character names from Japanese text."""

    def __init__(
        self,
        client: ApiClient,
        config: NameScoutConfig,
        prompt: str,
        sink: Optional[OutputSink] = None
    ):
        self.client = client
        self.config = config
        self.prompt = prompt
        self.sink = sink or LoggingSink(logger)

    def split_into_chunks(self, text: str) -> List[str]:
        return chunk_text(text, self.config.chunk_size_chars)

    def collect_names(self, text: str) -> List[List[NameEntry]]:
        """
        Scouts text chunk by chunk.

        Returns:
            One entry list per chunk that produced names. Chunks that found
            nothing or failed contribute nothing.
        """
        return [
            outcome.entries
            for outcome in self.scout_chunks(text)
            if outcome.status == ChunkStatus.SUCCESS and outcome.entries
        ]

    def scout_chunks(self, text: str) -> List[ChunkOutcome]:
        """Scouts every chunk and reports how each one ended."""
        chunks = self.split_into_chunks(text)
        total = len(chunks)
        outcomes = []

        for index, chunk in enumerate(chunks):
            chunk_num = index + 1
            self.sink.info(f"Name scout chunk {chunk_num}/{total} ({len(chunk)} chars)")
            outcome = self._scout_chunk(index, chunk)

            if outcome.status == ChunkStatus.SUCCESS:
                if outcome.entries:
                    self.sink.success(f"Found {len(outcome.entries)} names in chunk {chunk_num}")
            else:
                self.sink.error(
                    f"Failed to process chunk {chunk_num} after {outcome.attempts} attempts"
                )
            outcomes.append(outcome)

        return outcomes

    def _scout_chunk(self, index: int, chunk: str) -> ChunkOutcome:
        max_attempts = self.config.json_retries
        attempt = 0

        while attempt < max_attempts:
            try:
                raw = self._call_model(chunk)
                if is_refusal(raw):
                    raise RefusedError("Model refused to process the chunk")
                entries = parse_names_response(raw)
                return ChunkOutcome(index=index, status=ChunkStatus.SUCCESS, entries=entries, attempts=attempt + 1)
            except RefusedError:
                self.sink.warning(f"Model refused to process chunk {index + 1}, retrying...")
            except ParseError as e:
                self.sink.warning(f"Failed to parse JSON from chunk {index + 1}: {e}, retrying...")
            except HonyakuError as e:
                self.sink.warning(f"API error for chunk {index + 1}: {e}, retrying...")

            attempt += 1
            if attempt < max_attempts:
                time.sleep(2 ** attempt)

        return ChunkOutcome(index=index, status=ChunkStatus.EXHAUSTED, attempts=attempt)

    def _call_model(self, chunk: str) -> str:
        if self.config.delay_between_requests_sec > 0:
            time.sleep(self.config.delay_between_requests_sec)

        messages = [
            Message(role="system", content=self.prompt),
            Message(role="user", content=chunk),
        ]
        return self.client.chat(messages)
