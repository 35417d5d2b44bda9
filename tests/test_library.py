import pytest

from honyaku.honyaku.library import (
    LocalChapterSource,
    chapter_filename,
    chapter_prefix,
    find_work_folder,
    sanitize_filename,
    translation_exists,
    validate_chapter_range,
    work_folder_name,
)
from honyaku.honyaku.logging import FileError, ValidationError


@pytest.mark.parametrize("name,expected", [
    ("Normal Title", "Normal Title"),
    ('What? A "Hero" <again>', "What_ A _Hero_ _again_"),
    ("a/b\\c*d|e", "a_b_c_d_e"),
    ("Ends with dots...", "Ends with dots"),
    ("Trailing space. ", "Trailing space"),
    ("Colon: stays", "Colon: stays"),
])
def test_sanitize_filename(name, expected):
    assert sanitize_filename(name) == expected


def test_chapter_prefix_width_follows_total():
    assert chapter_prefix(3, 9) == "3"
    assert chapter_prefix(3, 12) == "03"
    assert chapter_prefix(12, 120) == "012"
    assert chapter_prefix(1, 0) == "1"


def test_chapter_and_folder_names():
    assert chapter_filename(2, 10, "The Beginning?") == "02 - The Beginning_.txt"
    assert chapter_filename(2, 10, "Two", prefix="002") == "002 - Two.txt"
    assert work_folder_name("kakuyomu", "42", "My Story") == "[kakuyomu: 42] My Story"


def test_find_work_folder(tmp_path):
    (tmp_path / "[kakuyomu: 42] My Story").mkdir()
    (tmp_path / "[99] Old Layout").mkdir()
    (tmp_path / "[kakuyomu: 420] Other").mkdir()

    assert find_work_folder(tmp_path, "kakuyomu", "42") == "[kakuyomu: 42] My Story"
    assert find_work_folder(tmp_path, "syosetu", "99") == "[99] Old Layout"
    assert find_work_folder(tmp_path, "kakuyomu", "7") is None
    assert find_work_folder(tmp_path / "missing", "kakuyomu", "42") is None


def test_translation_exists(tmp_path):
    (tmp_path / "03 - Some Title.txt").write_text("x", encoding="utf-8")
    assert translation_exists(tmp_path, 3)
    assert not translation_exists(tmp_path, 4)
    assert not translation_exists(tmp_path / "missing", 3)


def test_translation_exists_ignores_padding(tmp_path):
    (tmp_path / "1 - One.txt").write_text("x", encoding="utf-8")
    (tmp_path / "012 - Twelve.txt").write_text("x", encoding="utf-8")
    (tmp_path / "Original").mkdir()

    assert translation_exists(tmp_path, 1)
    assert translation_exists(tmp_path, 12)
    assert not translation_exists(tmp_path, 10)



@pytest.mark.parametrize("start,end,total,expected", [
    (None, None, 10, (1, 10)),
    (3, None, 10, (3, 10)),
    (None, 4, 10, (1, 4)),
    (5, 5, 10, (5, 5)),
])
def test_validate_chapter_range(start, end, total, expected):
    assert validate_chapter_range(start, end, total) == expected


@pytest.mark.parametrize("start,end,total,oneshot", [
    (5, 3, 10, False),
    (1, 11, 10, False),
    (0, 3, 10, False),
    (1, None, 1, True),
])
def test_validate_chapter_range_errors(start, end, total, oneshot):
    with pytest.raises(ValidationError):
        validate_chapter_range(start, end, total, oneshot)


def test_oneshot_range_defaults():
    assert validate_chapter_range(None, None, 1, oneshot=True) == (1, 1)


def test_local_source_reads_chapters_in_order(tmp_path):
    original = tmp_path / "Original"
    original.mkdir()
    (original / "10 - 最後.txt").write_text("終わり", encoding="utf-8")
    (original / "02 - 二話.txt").write_text("本文二", encoding="utf-8")
    (original / "01 - 一話.txt").write_text("本文一", encoding="utf-8")
    (original / "notes.txt").write_text("ignored", encoding="utf-8")

    source = LocalChapterSource(tmp_path)
    chapters = source.chapters()

    assert not source.is_oneshot()
    assert [(c.number, c.title, c.content) for c in chapters] == [
        (1, "一話", "本文一"),
        (2, "二話", "本文二"),
        (10, "最後", "終わり"),
    ]
    assert [c.prefix for c in chapters] == ["01", "02", "10"]


def test_local_source_oneshot(tmp_path):
    (tmp_path / "original.txt").write_text("短編", encoding="utf-8")

    source = LocalChapterSource(tmp_path)

    assert source.is_oneshot()
    chapters = source.chapters()
    assert len(chapters) == 1
    assert chapters[0].number == 1
    assert chapters[0].content == "短編"


def test_local_source_without_originals(tmp_path):
    with pytest.raises(FileError):
        LocalChapterSource(tmp_path).chapters()
