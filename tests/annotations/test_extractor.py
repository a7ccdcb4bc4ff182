"""Behavioural tests for the full annotation extraction pipeline."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging

import pytest

from sketchbook.annotations import (
    Annotation,
    ExtractionResult,
    MalformedMarkerSyntax,
    MismatchedClose,
    UnterminatedAnnotation,
    extract_code_annotations,
)
from sketchbook.annotations.tokenizer import tokenize


def _src(*lines: str) -> str:
    return "\n".join(lines)


def _assert_anchors_in_range(result: ExtractionResult) -> None:
    line_count = len(tokenize(result.code))
    for annotation in result.annotations:
        assert 0 <= annotation.start_line <= annotation.end_line < line_count


# ---------------------------------------------------------------------------
# Plain code
# ---------------------------------------------------------------------------

def test_plain_code_round_trips_unchanged() -> None:
    source = _src(
        "/**",
        " * Blink without annotations",
        " */",
        "void setup() {",
        "  pinMode(13, OUTPUT); // built-in LED",
        "}",
        "",
    )

    result = extract_code_annotations(source)

    assert result.code == source
    assert result.annotations == ()
    assert result.warnings == ()


def test_empty_source() -> None:
    assert extract_code_annotations("") == ExtractionResult(code="")


# ---------------------------------------------------------------------------
# Single-line forms
# ---------------------------------------------------------------------------

def test_inline_note_annotates_its_own_line() -> None:
    result = extract_code_annotations("int x = 1; // NOTE: initialize x")

    assert result.code == "int x = 1;"
    assert result.annotations == (Annotation(start_line=0, end_line=0, text="initialize x", anchor_column=10),)


def test_full_line_note_attaches_to_next_non_blank_line() -> None:
    source = _src(
        "int led = 13;",
        "// NOTE: Runs once at boot",
        "",
        "void setup() {}",
    )

    result = extract_code_annotations(source)

    assert result.code == "int led = 13;\n\nvoid setup() {}"
    (annotation,) = result.annotations
    assert (annotation.start_line, annotation.end_line) == (2, 2)
    assert annotation.text == "Runs once at boot"
    assert annotation.anchor_column is None


# ---------------------------------------------------------------------------
# Block annotations
# ---------------------------------------------------------------------------

def test_note_only_block_attaches_to_following_code_paragraph() -> None:
    source = _src(
        "// @annotate",
        "// first line",
        "// second line",
        "// @end",
        "int a = 1;",
        "int b = 2;",
    )

    result = extract_code_annotations(source)

    assert result.code == "int a = 1;\nint b = 2;"
    assert result.annotations == (Annotation(start_line=0, end_line=1, text="first line\nsecond line"),)


def test_following_paragraph_stops_at_blank_line() -> None:
    source = _src(
        "// @annotate Pin setup",
        "// @end",
        "pinMode(2, INPUT);",
        "pinMode(3, INPUT);",
        "",
        "Serial.begin(9600);",
    )

    (annotation,) = extract_code_annotations(source).annotations

    assert (annotation.start_line, annotation.end_line) == (0, 1)
    assert annotation.text == "Pin setup"


def test_block_enclosing_code_anchors_to_enclosed_lines() -> None:
    source = _src(
        "#include <Servo.h>",
        "// @annotate(loop) The main loop",
        "// toggles the LED.",
        "void loop() {",
        "  // regular comment inside code",
        "  digitalWrite(13, !digitalRead(13));",
        "}",
        "// @end(loop)",
        "",
    )

    result = extract_code_annotations(source)

    assert result.code == _src(
        "#include <Servo.h>",
        "void loop() {",
        "  digitalWrite(13, !digitalRead(13));",
        "}",
        "",
    )
    (annotation,) = result.annotations
    assert (annotation.start_line, annotation.end_line) == (1, 3)
    assert annotation.text == "The main loop\ntoggles the LED.\nregular comment inside code"
    assert annotation.marker_id == "loop"


def test_comment_after_code_inside_block_joins_the_note() -> None:
    source = _src(
        "// @annotate Blink",
        "setup();",
        "// explain the delay",
        "loop();",
        "// @end",
    )

    result = extract_code_annotations(source)

    assert result.code == "setup();\nloop();\n"
    (annotation,) = result.annotations
    assert (annotation.start_line, annotation.end_line) == (0, 1)
    assert annotation.text == "Blink\nexplain the delay"


def test_comments_outside_annotations_stay_in_code() -> None:
    source = _src("// header comment", "setup();", "// @annotate Loop", "loop();", "// @end", "// footer")

    result = extract_code_annotations(source)

    assert result.code == "// header comment\nsetup();\nloop();\n// footer"
    assert result.annotations[0].text == "Loop"


def test_body_lines_keep_internal_line_breaks_and_relative_indent() -> None:
    source = _src(
        "    // @annotate",
        "    //   Steps:",
        "    //     1. read",
        "    //",
        "    //     2. write",
        "    // @end",
        "    step();",
    )

    (annotation,) = extract_code_annotations(source).annotations

    assert annotation.text == "Steps:\n  1. read\n\n  2. write"


def test_nested_note_only_blocks_share_the_same_code_lines() -> None:
    source = _src(
        "// @annotate Outer note",
        "// @annotate Inner note",
        "// @end",
        "// outer continues",
        "// @end",
        "digitalWrite(13, HIGH);",
        "delay(500);",
    )

    result = extract_code_annotations(source)

    assert result.code == "digitalWrite(13, HIGH);\ndelay(500);"
    inner, outer = result.annotations
    assert inner.text == "Inner note"
    assert inner.depth == 1
    assert outer.text == "Outer note\nouter continues"
    assert outer.depth == 0
    assert (inner.start_line, inner.end_line) == (outer.start_line, outer.end_line) == (0, 1)


def test_nested_block_is_contained_in_outer_range() -> None:
    source = _src(
        "// @annotate Outer",
        "void loop() {",
        "  // @annotate Inner",
        "  digitalWrite(13, HIGH);",
        "  // @end",
        "}",
        "// @end",
    )

    result = extract_code_annotations(source)

    assert result.code == "void loop() {\n  digitalWrite(13, HIGH);\n}\n"
    inner, outer = result.annotations
    assert (inner.start_line, inner.end_line) == (1, 1)
    assert (outer.start_line, outer.end_line) == (0, 2)
    assert outer.start_line <= inner.start_line <= inner.end_line <= outer.end_line
    _assert_anchors_in_range(result)


def test_nested_note_only_block_stays_inside_outer_code() -> None:
    source = _src(
        "// @annotate(outer) Outer",
        "a();",
        "// @annotate Inner",
        "// @end",
        "// @end(outer)",
        "b();",
    )

    result = extract_code_annotations(source)

    assert result.code == "a();\nb();"
    inner, outer = result.annotations
    assert (outer.start_line, outer.end_line) == (0, 0)
    assert (inner.start_line, inner.end_line) == (0, 0)
    assert inner.depth == 1
    assert result.warnings == ()


def test_nested_note_only_block_prefers_code_after_it_within_outer() -> None:
    source = _src(
        "// @annotate Outer",
        "a();",
        "// @annotate Inner",
        "// @end",
        "b();",
        "c();",
        "// @end",
        "d();",
    )

    inner, outer = extract_code_annotations(source).annotations

    assert (outer.start_line, outer.end_line) == (0, 2)
    assert (inner.start_line, inner.end_line) == (1, 2)


def test_full_line_note_inside_block_does_not_escape_it() -> None:
    source = _src(
        "// @annotate Loop body",
        "tick();",
        "// NOTE: nothing after this inside the block",
        "// @end",
        "tock();",
    )

    note, block = extract_code_annotations(source).annotations

    assert (block.start_line, block.end_line) == (0, 0)
    assert (note.start_line, note.end_line) == (0, 0)


def test_ids_allow_overlapping_ranges() -> None:
    source = _src(
        "// @annotate(setup) Configure pins",
        "pinMode(13, OUTPUT);",
        "// @annotate(serial) Serial logging",
        "Serial.begin(9600);",
        "// @end(setup)",
        'Serial.println("ready");',
        "// @end(serial)",
    )

    result = extract_code_annotations(source)

    setup, serial = result.annotations
    assert setup.marker_id == "setup"
    assert (setup.start_line, setup.end_line) == (0, 1)
    assert serial.marker_id == "serial"
    assert (serial.start_line, serial.end_line) == (1, 2)


def test_markers_inside_strings_and_block_comments_are_code() -> None:
    source = _src(
        "/*",
        "// @annotate not a marker here",
        "*/",
        'Serial.println("// NOTE: not a note");',
    )

    result = extract_code_annotations(source)

    assert result.code == source
    assert result.annotations == ()


def test_inline_note_after_digit_separated_literal() -> None:
    result = extract_code_annotations("long n = 1'000; // NOTE: one thousand")

    assert result.code == "long n = 1'000;"
    assert result.annotations == (Annotation(start_line=0, end_line=0, text="one thousand", anchor_column=15),)


def test_crlf_line_endings_are_preserved() -> None:
    result = extract_code_annotations("a();\r\n// NOTE: hi\r\nb();\r\n")

    assert result.code == "a();\r\nb();\r\n"
    assert result.annotations == (Annotation(start_line=1, end_line=1, text="hi"),)


# ---------------------------------------------------------------------------
# Degenerate anchors
# ---------------------------------------------------------------------------

def test_note_at_end_of_file_is_dropped_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    result = extract_code_annotations("int a;\n// NOTE: nothing follows\n", source_name="tail.ino")

    assert result.code == "int a;\n"
    assert result.annotations == ()
    (warning,) = result.warnings
    assert warning.line == 1
    assert warning.source_name == "tail.ino"
    assert "no displayed line" in caplog.text


def test_note_only_block_at_end_of_file_is_dropped() -> None:
    source = _src("int a;", "// @annotate", "// dangling", "// @end", "")

    result = extract_code_annotations(source)

    assert result.code == "int a;\n"
    assert result.annotations == ()
    assert len(result.warnings) == 1
    assert result.warnings[0].line == 1


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

def test_unterminated_annotation_names_the_open_line() -> None:
    source = _src("int a;", "// @annotate never closed", "int b;")

    with pytest.raises(UnterminatedAnnotation) as excinfo:
        extract_code_annotations(source, source_name="simon.ino")

    assert excinfo.value.line == 1
    assert str(excinfo.value).endswith("(source=simon.ino, line=2)")


def test_orphan_close_is_fatal() -> None:
    with pytest.raises(MismatchedClose) as excinfo:
        extract_code_annotations("// @end\nint a;")

    assert excinfo.value.line == 0


def test_close_for_unknown_id_is_fatal() -> None:
    with pytest.raises(MismatchedClose):
        extract_code_annotations(_src("// @annotate(a)", "x();", "// @end(b)"))


def test_malformed_marker_is_fatal() -> None:
    with pytest.raises(MalformedMarkerSyntax) as excinfo:
        extract_code_annotations(_src("x();", "// @annotate(oops", "// @end"))

    assert excinfo.value.line == 1


def test_spaced_marker_id_is_rejected_instead_of_becoming_note_text() -> None:
    with pytest.raises(MalformedMarkerSyntax, match="without spaces") as excinfo:
        extract_code_annotations(_src("// @annotate (a) Note", "x();", "// @end"), source_name="blink.ino")

    assert excinfo.value.line == 0


# ---------------------------------------------------------------------------
# Purity
# ---------------------------------------------------------------------------

_SAMPLES = [
    _src("int x = 1; // NOTE: initialize x"),
    _src("// @annotate", "// setup notes", "// @end", "void setup() {}", ""),
    _src("// @annotate(a) A", "x();", "// @annotate(b) B", "y();", "// @end(a)", "z();", "// @end(b)"),
    _src("// NOTE: top", "void loop() {", "  // @annotate Inner", "  tick();", "  // @end", "}"),
    _src("plain();", "// comment", ""),
]


def test_extraction_is_idempotent() -> None:
    for source in _SAMPLES:
        first = extract_code_annotations(source)
        second = extract_code_annotations(source)

        assert first == second
        _assert_anchors_in_range(first)


def test_concurrent_extraction_matches_sequential_results() -> None:
    sources = _SAMPLES * 8
    sequential = [extract_code_annotations(source) for source in sources]

    with ThreadPoolExecutor(max_workers=8) as pool:
        concurrent = list(pool.map(extract_code_annotations, sources))

    assert concurrent == sequential
