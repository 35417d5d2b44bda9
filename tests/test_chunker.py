import pytest

from honyaku.honyaku.chunker import chunk_lines, chunk_text


def test_empty_text_gives_no_chunks():
    assert chunk_text("", 100) == []
    assert chunk_lines("", 100) == []


def test_lines_are_packed_up_to_the_limit():
    # "aaa\nbbb" is exactly 7 characters and still fits
    assert chunk_text("aaa\nbbb\nccc", 7) == ["aaa\nbbb", "ccc"]


def test_everything_fits_in_one_chunk():
    text = "一行目\n二行目\n三行目"
    assert chunk_text(text, 1000) == [text]


def test_oversized_line_is_resplit_on_whitespace():
    assert chunk_text("one two three four", 9) == ["one two", "three", "four"]


def test_oversized_word_becomes_its_own_chunk():
    chunks = chunk_text("a verylongwordhere b", 5)
    assert chunks == ["a", "verylongwordhere", "b"]


def test_text_without_spaces_is_never_truncated():
    text = "あ" * 10
    assert chunk_text(text, 4) == [text]


def test_chunk_lines_keeps_long_line_whole():
    assert chunk_lines("short\n" + "x" * 20 + "\nend", 10) == ["short", "x" * 20, "end"]


def test_only_newlines_split_lines():
    text = "a\x0cb\u2028c\x85d\r\ne\n"
    assert chunk_lines(text, 100) == ["a\x0cb\u2028c\x85d\ne"]
    assert chunk_lines(text, 6) == ["a\x0cb\u2028c\x85d", "e"]


def test_no_characters_are_lost():
    text = "\n".join(f"第{i}行 これは テスト です。" for i in range(50))
    chunks = chunk_text(text, 40)

    assert all(chunks)
    original = "".join(text.split())
    rejoined = "".join("".join(c.split()) for c in chunks)
    assert rejoined == original


def test_chunks_respect_limit_when_possible():
    text = "\n".join("word " * 5 for _ in range(30))
    for chunk in chunk_text(text, 50):
        assert len(chunk) <= 50


def test_chunking_is_deterministic():
    text = "abc def\nghi jkl mno\npqr"
    assert chunk_text(text, 8) == chunk_text(text, 8)


def test_invalid_max_size():
    with pytest.raises(ValueError):
        chunk_text("text", 0)
