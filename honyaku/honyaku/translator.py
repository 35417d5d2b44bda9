"""
Translation of titles and chapter text through a streaming chat endpoint.

Content is cut into chunks and translated in order. Each chunk is sent with
the system prompt and the last few chunk/translation pairs so the model keeps
the voice and terminology of what came before.
"""

import logging
import time
from typing import Callable, List, Optional

from .ai_api import ApiClient, is_refusal
from .chunker import chunk_text
from .config import TranslationConfig
from .constants import (
    CHUNK_SEPARATOR,
    PROGRESS_INTERVAL_SEC,
    PROGRESS_PREVIEW_CHARS,
    TITLE_LOG_SNIPPET_CHARS,
    TRANSLATION_FAILED_MARKER,
)
from .logging import ExhaustedError, HonyakuError, LoggingSink, OutputSink, RefusedError
from .models import Message, ProgressInfo, StreamProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[StreamProgress], None]


class ConversationHistory:
    """System message plus at most max_pairs user/assistant exchanges."""

    def __init__(self, system_prompt: str, max_pairs: int):
        self.max_pairs = max_pairs
        self.messages: List[Message] = [Message(role="system", content=system_prompt)]

    def __len__(self) -> int:
        return len(self.messages)

    @property
    def max_messages(self) -> int:
        return 1 + 2 * self.max_pairs

    def request(self, chunk: str) -> List[Message]:
        """Messages to send for the next chunk. The history itself is not changed."""
        return self.messages + [Message(role="user", content=chunk)]

    def record(self, chunk: str, translation: str) -> None:
        """Adds a successful exchange and evicts the oldest pairs beyond the bound."""
        self.messages.append(Message(role="user", content=chunk))
        self.messages.append(Message(role="assistant", content=translation))

        excess = len(self.messages) - self.max_messages
        if excess > 0:
            del self.messages[1:1 + excess]


def failure_placeholder(chunk: str) -> str:
    return f"{TRANSLATION_FAILED_MARKER}\n{chunk}"


class Translator:
    """Translates Japanese titles and chapter text to English."""

    def __init__(
        self,
        client: ApiClient,
        config: TranslationConfig,
        title_prompt: str,
        content_prompt: str,
        sink: Optional[OutputSink] = None,
        on_progress: Optional[ProgressCallback] = None,
        progress_interval: float = PROGRESS_INTERVAL_SEC
    ):
        self.client = client
        self.config = config
        self.title_prompt = title_prompt
        self.content_prompt = content_prompt
        self.sink = sink or LoggingSink(logger)
        self.on_progress = on_progress
        self.progress_interval = progress_interval

    def split_into_chunks(self, text: str) -> List[str]:
        return chunk_text(text, self.config.chunk_size_chars)

    def translate(self, text: str, is_title: bool = False, progress_info: Optional[ProgressInfo] = None) -> str:
        if is_title:
            return self.translate_title(text)
        return self.translate_content(text, progress_info)

    def translate_title(self, title: str) -> str:
        """
        Translates a title in one request with a fresh history.

        Raises:
            ExhaustedError: If every attempt failed. Callers pick a fallback.
        """
        if not title.strip():
            return ""

        snippet = title if len(title) <= TITLE_LOG_SNIPPET_CHARS else f"{title[:TITLE_LOG_SNIPPET_CHARS]}..."
        self.sink.info(f"Translating title 「{snippet}」")

        history = ConversationHistory(self.title_prompt, max_pairs=0)
        return self._translate_with_retries(title, history, None)

    def translate_content(self, text: str, progress_info: Optional[ProgressInfo] = None) -> str:
        """
        Translates text chunk by chunk.

        A chunk that fails every attempt is replaced by a marked placeholder
        holding the untranslated chunk, and translation moves on.
        """
        if not text.strip():
            return ""

        chunks = self.split_into_chunks(text)
        total = len(chunks)
        history = ConversationHistory(self.content_prompt, self.config.history_length)
        results = []

        for i, chunk in enumerate(chunks):
            progress = None
            if progress_info is not None:
                progress = ProgressInfo(chapter=progress_info.chapter, chunk=i + 1, total_chunks=total)

            try:
                results.append(self._translate_with_retries(chunk, history, progress))
            except ExhaustedError as e:
                self.sink.error(f"Translation failed after all retries: {e.last_error}")
                results.append(failure_placeholder(chunk))

        return CHUNK_SEPARATOR.join(results)

    def _translate_with_retries(
        self,
        chunk: str,
        history: ConversationHistory,
        progress: Optional[ProgressInfo]
    ) -> str:
        max_attempts = self.config.retries
        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            try:
                return self.translate_single_chunk(chunk, history, progress)
            except HonyakuError as e:
                last_error = e
                if attempt < max_attempts:
                    delay = 2 ** attempt
                    self.sink.warning(
                        f"Translation failed ({e}), retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_attempts})"
                    )
                    time.sleep(delay)

        raise ExhaustedError(max_attempts, last_error)

    def translate_single_chunk(
        self,
        chunk: str,
        history: ConversationHistory,
        progress: Optional[ProgressInfo] = None
    ) -> str:
        """
        One streamed request for one chunk; records the exchange on success.

        Raises:
            RefusedError: If the aggregated answer is empty or a refusal.
            TransportError, APIError: From the client.
        """
        translated = self._stream(history.request(chunk), progress).strip()

        if not translated:
            raise RefusedError("Empty response")
        if is_refusal(translated):
            raise RefusedError(f"Response starts with refusal phrase: {translated[:40]}")

        history.record(chunk, translated)

        if self.config.delay_between_requests_sec > 0:
            time.sleep(self.config.delay_between_requests_sec)

        return translated

    def _stream(self, messages: List[Message], progress: Optional[ProgressInfo]) -> str:
        fragments: List[str] = []
        char_count = 0
        start = time.monotonic()
        last_update = start

        for fragment in self.client.stream_chat(messages):
            fragments.append(fragment)
            char_count += len(fragment)

            if self.on_progress is None:
                continue
            now = time.monotonic()
            if now - last_update >= self.progress_interval:
                self._report_progress(fragments, char_count, now - start, progress)
                last_update = now

        return "".join(fragments)

    def _report_progress(
        self,
        fragments: List[str],
        char_count: int,
        elapsed: float,
        progress: Optional[ProgressInfo]
    ) -> None:
        tail = "".join(fragments[-PROGRESS_PREVIEW_CHARS:])[-PROGRESS_PREVIEW_CHARS:]
        snapshot = StreamProgress(
            chars=char_count,
            elapsed=elapsed,
            preview=tail.replace("\n", " "),
            info=progress,
        )
        try:
            self.on_progress(snapshot)
        except Exception as e:
            # Display only; never let it break a translation
            logger.debug(f"Progress callback failed: {e}")
