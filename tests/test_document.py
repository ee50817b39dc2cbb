from __future__ import annotations

import pytest

from bookmark_engine.document import (
    CRLF,
    LF,
    Document,
    LineRangeError,
    clamp_line,
    detect_newline,
    split_line_endings,
)


def test_detects_crlf_anywhere() -> None:
    assert detect_newline("a\nb\r\nc") == CRLF
    assert detect_newline("a\nb") == LF
    assert detect_newline("") == LF


def test_round_trip_preserves_line_endings() -> None:
    for text in ("a\r\nb\r\n", "a\nb\n", "a\r\nb\nc", "single", ""):
        assert Document.from_text(text).to_text() == text


def test_trailing_newline_keeps_empty_last_line() -> None:
    document = Document.from_text("a\nb\n")

    assert document.snapshot() == ("a", "b", "")
    assert document.last_line == 2


def test_replace_line_returns_new_version() -> None:
    document = Document.from_text("a\r\nb")

    updated = document.replace_line(1, "B")

    assert updated.to_text() == "a\r\nB"
    assert updated.version == document.version + 1
    assert document.get_line(1) == "b"


def test_out_of_range_line_raises() -> None:
    document = Document.from_text("only")

    with pytest.raises(LineRangeError):
        document.get_line(1)
    with pytest.raises(IndexError):
        document.replace_line(-1, "x")


def test_clamp_line() -> None:
    assert clamp_line(5, 3) == 2
    assert clamp_line(-1, 3) == 0
    assert clamp_line(4, 0) == 0


def test_replace_line_keeps_each_line_terminator() -> None:
    document = Document.from_text("a\r\nb\nc\r\n")

    updated = document.replace_line(1, "B")

    assert updated.to_text() == "a\r\nB\nc\r\n"
    assert updated.line_endings() == ("\r\n", "\n", "\r\n", "")


def test_split_line_endings_pairs_content_with_terminator() -> None:
    assert split_line_endings("x\r\ny\nz") == [("x", "\r\n"), ("y", "\n"), ("z", "")]
    assert split_line_endings("") == [("", "")]


def test_from_lines_uses_given_newline() -> None:
    document = Document.from_lines(["a", "b"], newline=CRLF)

    assert document.to_text() == "a\r\nb"
    assert Document.from_lines([], newline=LF).to_text() == ""
