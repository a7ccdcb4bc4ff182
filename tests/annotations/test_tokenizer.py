from __future__ import annotations

from sketchbook.annotations.models import SourceLine
from sketchbook.annotations.tokenizer import tokenize


def test_empty_input_produces_no_lines() -> None:
    assert tokenize("") == []


def test_single_terminator_produces_one_empty_line() -> None:
    assert tokenize("\n") == [SourceLine(index=0, raw_text="", terminator="\n")]


def test_unterminated_last_line_is_kept() -> None:
    lines = tokenize("int a;\nint b;")

    assert [line.raw_text for line in lines] == ["int a;", "int b;"]
    assert [line.terminator for line in lines] == ["\n", ""]
    assert [line.index for line in lines] == [0, 1]


def test_line_count_matches_terminators_when_text_ends_with_newline() -> None:
    lines = tokenize("a\n\nb\n")

    assert len(lines) == 3
    assert lines[1].raw_text == ""
    assert lines[1].is_blank


def test_crlf_terminators_are_separated_from_text() -> None:
    lines = tokenize("a\r\nb\r\n")

    assert [line.raw_text for line in lines] == ["a", "b"]
    assert all(line.terminator == "\r\n" for line in lines)


def test_lone_carriage_return_stays_in_text() -> None:
    lines = tokenize("a\rb\n")

    assert len(lines) == 1
    assert lines[0].raw_text == "a\rb"


def test_leading_whitespace_is_exposed() -> None:
    (line,) = tokenize("  \tdelay(10);")

    assert line.leading_whitespace == "  \t"
    assert not line.is_blank
