import json
import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import requests

from .constants import (
    CHAT_COMPLETIONS_PATH,
    DEFAULT_API_TIMEOUT,
    REFUSAL_PHRASES,
    SSE_DATA_PREFIX,
    SSE_DONE_SENTINEL,
)
from .logging import APIError, ParseError, TransportError, log_api_call
from .models import Message

logger = logging.getLogger(__name__)

MessageLike = Union[Message, Dict[str, str]]


def is_refusal(text: str, phrases: Sequence[str] = REFUSAL_PHRASES) -> bool:
    """
    True if the response opens with a refusal phrase.

    Only the start of the trimmed text counts, so a translation that says
    "sorry" somewhere in the middle is not a refusal.
    """
    lowered = text.strip().lower()
    return any(lowered.startswith(p) for p in phrases)


def build_endpoint(base_url: str) -> str:
    """Appends /chat/completions unless the URL already points at it."""
    endpoint = base_url.rstrip("/")
    if endpoint.lower().endswith(CHAT_COMPLETIONS_PATH):
        return endpoint
    return f"{endpoint}{CHAT_COMPLETIONS_PATH}"


class ApiClient:
    """
    Minimal client for an OpenAI-compatible chat completion endpoint.

    Retrying is left to the callers, which know what a usable answer looks like.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: int = DEFAULT_API_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        self.endpoint = build_endpoint(base_url)
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, api_config, session: Optional[requests.Session] = None) -> "ApiClient":
        return cls(
            base_url=api_config.base_url,
            api_key=api_config.key,
            model=api_config.model,
            timeout=api_config.timeout,
            session=session,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        # OpenRouter specific headers
        if "openrouter" in self.endpoint:
            headers["HTTP-Referer"] = "https://github.com/honyaku/honyaku"
            headers["X-Title"] = "Honyaku CLI"
        return headers

    def _payload(self, messages: Sequence[MessageLike], stream: bool) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_dict() if isinstance(m, Message) else dict(m) for m in messages],
            "stream": stream,
        }

    def _post(self, payload: Dict[str, Any], stream: bool) -> requests.Response:
        log_api_call(self.endpoint, "POST", {"model": self.model, "stream": stream, "messages": len(payload["messages"])})
        try:
            response = self.session.post(
                self.endpoint,
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
                stream=stream,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"API request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            body = response.text
            if response.status_code == 401:
                logger.error("API Unauthorized (401). Check your API key in .env.")
            elif response.status_code == 429:
                logger.warning("API Rate Limit (429).")
            raise APIError(
                f"API error: HTTP {response.status_code}: {body[:500]}",
                status_code=response.status_code,
                body=body,
            )
        return response

    def chat(self, messages: Sequence[MessageLike]) -> str:
        """
        Sends a non-streaming request.

        Returns:
            The first choice's message content, trimmed.

        Raises:
            TransportError, APIError, ParseError
        """
        response = self._post(self._payload(messages, stream=False), stream=False)

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Failed to parse API response: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"Unexpected API response type: {type(data).__name__}")
        if "error" in data and not data.get("choices"):
            raise APIError(f"API error: {data['error']}", status_code=response.status_code, body=json.dumps(data))

        choices = data.get("choices") or []
        if not choices:
            raise ParseError("No choices in API response")

        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError) as e:
            raise ParseError(f"Unexpected API response format: {e}") from e

        return (content or "").strip()

    def stream_chat(self, messages: Sequence[MessageLike]) -> Iterator[str]:
        """
        Sends a streaming request and yields content fragments as they arrive.

        Lines that aren't SSE data or don't parse as JSON are skipped; the
        stream ends at the [DONE] sentinel or when the server closes it.

        Raises:
            TransportError, APIError
        """
        response = self._post(self._payload(messages, stream=True), stream=True)

        try:
            # Decode ourselves: text/event-stream without a charset would default to latin-1
            for raw_line in response.iter_lines():
                line = raw_line.decode("utf-8", errors="replace") if isinstance(raw_line, bytes) else raw_line
                if not line or not line.startswith(SSE_DATA_PREFIX):
                    continue

                data = line[len(SSE_DATA_PREFIX):].strip()
                if data == SSE_DONE_SENTINEL:
                    break

                try:
                    event = json.loads(data)
                except json.JSONDecodeError:
                    logger.debug(f"Skipping unparseable stream line: {data[:100]}")
                    continue

                for fragment in _delta_contents(event):
                    yield fragment
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Stream interrupted: {e}") from e
        finally:
            response.close()


def _delta_contents(event: Any) -> List[str]:
    if not isinstance(event, dict):
        return []
    fragments = []
    for choice in event.get("choices") or []:
        delta = choice.get("delta") if isinstance(choice, dict) else None
        if isinstance(delta, dict) and isinstance(delta.get("content"), str):
            fragments.append(delta["content"])
    return fragments
