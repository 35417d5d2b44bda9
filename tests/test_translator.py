"""
Tests for the translator: history bound, retries, placeholders and progress.
"""
import itertools
from unittest.mock import MagicMock, patch

import pytest

from honyaku.honyaku.config import TranslationConfig
from honyaku.honyaku.logging import APIError, ExhaustedError, TransportError
from honyaku.honyaku.models import ProgressInfo
from honyaku.honyaku.translator import ConversationHistory, Translator, failure_placeholder


@pytest.fixture
def config():
    return TranslationConfig(chunk_size_chars=4000, retries=3, delay_between_requests_sec=0, history_length=5)


@pytest.fixture
def client():
    return MagicMock()


def make_translator(client, config, **kwargs):
    return Translator(client, config, "title prompt", "content prompt", sink=MagicMock(), **kwargs)


def streams(*responses):
    """side_effect for stream_chat: each call yields the next response's fragments (or raises)."""
    queue = list(responses)

    def _next(messages):
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return iter(item)

    return _next


# --- history ---

def test_history_bound():
    history = ConversationHistory("system", max_pairs=2)
    for i in range(5):
        history.record(f"jp{i}", f"en{i}")

    assert len(history) == 5
    assert history.messages[0].role == "system"
    assert [m.content for m in history.messages[1:]] == ["jp3", "en3", "jp4", "en4"]


def test_history_zero_pairs_keeps_only_system():
    history = ConversationHistory("system", max_pairs=0)
    history.record("jp", "en")
    assert [m.content for m in history.messages] == ["system"]


def test_history_request_does_not_modify():
    history = ConversationHistory("system", max_pairs=1)
    request = history.request("chunk")
    assert [m.content for m in request] == ["system", "chunk"]
    assert len(history) == 1


# --- content ---

@patch("honyaku.honyaku.translator.time.sleep")
def test_translate_content_single_chunk(mock_sleep, client, config):
    client.stream_chat.side_effect = streams(["Snow ", "falls."])
    translator = make_translator(client, config)

    assert translator.translate("雪が降る。") == "Snow falls."
    messages = client.stream_chat.call_args[0][0]
    assert [m.role for m in messages] == ["system", "user"]
    assert messages[0].content == "content prompt"


@patch("honyaku.honyaku.translator.time.sleep")
def test_translate_content_joins_chunks_and_keeps_history(mock_sleep, client, config):
    config.chunk_size_chars = 5
    config.history_length = 1
    client.stream_chat.side_effect = streams(["One"], ["Two"], ["Three"])
    translator = make_translator(client, config)

    result = translator.translate_content("一二三\n四五六\n七八九")

    assert result == "One\n\nTwo\n\nThree"
    # Third request carries only the most recent pair
    third = client.stream_chat.call_args_list[2][0][0]
    assert [m.content for m in third] == ["content prompt", "四五六", "Two", "七八九"]


@pytest.mark.parametrize("text", ["", "   \n  "])
def test_empty_input_makes_no_requests(client, config, text):
    translator = make_translator(client, config)
    assert translator.translate_content(text) == ""
    assert translator.translate_title(text) == ""
    client.stream_chat.assert_not_called()


@patch("honyaku.honyaku.translator.time.sleep")
def test_refusal_and_empty_are_retried(mock_sleep, client, config):
    client.stream_chat.side_effect = streams(["I'm sorry, ", "I can't."], ["  "], ["Snow."])
    translator = make_translator(client, config)

    assert translator.translate_content("雪。") == "Snow."
    assert [c.args[0] for c in mock_sleep.call_args_list] == [2, 4]


@patch("honyaku.honyaku.translator.time.sleep")
def test_exhausted_chunk_becomes_placeholder(mock_sleep, client, config):
    config.chunk_size_chars = 5
    client.stream_chat.side_effect = streams(
        TransportError("down"), APIError("HTTP 500", status_code=500), TransportError("down"),
        ["Second."],
    )
    translator = make_translator(client, config)

    result = translator.translate_content("一二三\n四五六")

    assert result == "[TRANSLATION FAILED]\n一二三\n\nSecond."
    assert failure_placeholder("一二三") == "[TRANSLATION FAILED]\n一二三"
    # Failed chunk isn't in the history of the next request
    second = client.stream_chat.call_args_list[3][0][0]
    assert [m.content for m in second] == ["content prompt", "四五六"]


@patch("honyaku.honyaku.translator.time.sleep")
def test_delay_after_success(mock_sleep, client, config):
    config.delay_between_requests_sec = 1.5
    client.stream_chat.side_effect = streams(["Snow."])
    make_translator(client, config).translate_content("雪。")
    mock_sleep.assert_called_once_with(1.5)


# --- title ---

@patch("honyaku.honyaku.translator.time.sleep")
def test_translate_title_uses_fresh_history(mock_sleep, client, config):
    client.stream_chat.side_effect = streams(["First Title"], ["Second Title"])
    translator = make_translator(client, config)

    assert translator.translate("第一話", is_title=True) == "First Title"
    assert translator.translate_title("第二話") == "Second Title"

    second = client.stream_chat.call_args_list[1][0][0]
    assert [m.content for m in second] == ["title prompt", "第二話"]


@patch("honyaku.honyaku.translator.time.sleep")
def test_translate_title_exhausted_raises(mock_sleep, client, config):
    client.stream_chat.side_effect = streams(["I cannot"], ["I cannot"], ["I cannot"])
    translator = make_translator(client, config)

    with pytest.raises(ExhaustedError) as exc:
        translator.translate_title("第一話")
    assert exc.value.attempts == 3


# --- progress ---

@patch("honyaku.honyaku.translator.time.sleep")
@patch("honyaku.honyaku.translator.time.monotonic")
def test_progress_is_throttled(mock_monotonic, mock_sleep, client, config):
    # start=0, then each fragment is 0.5s later
    mock_monotonic.side_effect = itertools.count(0, 0.5)
    client.stream_chat.side_effect = streams(["a", "b", "c", "d", "e"])
    updates = []
    translator = make_translator(client, config, on_progress=updates.append)

    translator.translate_content("雪", ProgressInfo(chapter=7))

    # Fragments arrive at 0.5, 1.0, 1.5, 2.0, 2.5: updates at 1.0 and 2.0
    assert [u.chars for u in updates] == [2, 4]
    assert updates[0].info == ProgressInfo(chapter=7, chunk=1, total_chunks=1)
    assert updates[1].preview == "abcd"


@patch("honyaku.honyaku.translator.time.sleep")
@patch("honyaku.honyaku.translator.time.monotonic")
def test_progress_callback_errors_are_ignored(mock_monotonic, mock_sleep, client, config):
    mock_monotonic.side_effect = itertools.count(0, 2)
    client.stream_chat.side_effect = streams(["Snow", " falls."])
    callback = MagicMock(side_effect=RuntimeError("display broke"))
    translator = make_translator(client, config, on_progress=callback)

    assert translator.translate_content("雪が降る。") == "Snow falls."
    assert callback.called
