"""Line classification for the embedded annotation comment syntax.

Markers are ``//`` comments whose trimmed content starts with a sentinel:

- ``// @annotate`` or ``// @annotate(id) first line of the note`` opens a block note
- ``// @end`` or ``// @end(id)`` closes the innermost open note, or the one with that id
- ``// NOTE: text`` on its own line annotates the next displayed line
- ``code();  // NOTE: text`` annotates that line and is stripped from it

Only real comments count: string and character literals and ``/* ... */``
block comments are skipped, and block-comment state is carried between lines
through ``LexState``.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from sketchbook.annotations.errors import MalformedMarkerSyntax
from sketchbook.annotations.models import ClassifiedLine, MarkerKind, SourceLine

_ID_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")
_QUOTES = frozenset("\"'")


@dataclass(frozen=True, slots=True)
class MarkerSyntax:
    """Comment delimiters and sentinels recognized by the extractor."""

    comment_prefix: str = "//"
    block_open: str = "/*"
    block_close: str = "*/"
    open_sentinel: str = "@annotate"
    close_sentinel: str = "@end"
    note_sentinel: str = "NOTE:"


DEFAULT_SYNTAX = MarkerSyntax()


@dataclass(frozen=True, slots=True)
class LexState:
    """Lexer state carried from one physical line to the next."""

    in_block_comment: bool = False


INITIAL_STATE = LexState()


def find_line_comment(
    text: str,
    *,
    syntax: MarkerSyntax = DEFAULT_SYNTAX,
    state: LexState = INITIAL_STATE,
) -> tuple[int | None, LexState]:
    """Return the column of the first real line comment and the state after the line."""

    in_block = state.in_block_comment
    quote: str | None = None
    index = 0
    length = len(text)

    while index < length:
        if in_block:
            end = text.find(syntax.block_close, index)
            if end == -1:
                return None, LexState(in_block_comment=True)
            index = end + len(syntax.block_close)
            in_block = False
            continue

        char = text[index]
        if quote is not None:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
            index += 1
            continue

        if text.startswith(syntax.comment_prefix, index):
            return index, LexState(in_block_comment=False)
        if text.startswith(syntax.block_open, index):
            in_block = True
            index += len(syntax.block_open)
            continue
        # 1'000 is a digit separator, not a character literal
        if char in _QUOTES and not (char == "'" and index > 0 and text[index - 1].isalnum()):
            quote = char
        index += 1

    # string literals never continue onto the next line
    return None, LexState(in_block_comment=in_block)


def _starts_with_sentinel(content: str, sentinel: str) -> bool:
    if not content.startswith(sentinel):
        return False
    rest = content[len(sentinel) :]
    return not rest or rest[0].isspace() or rest[0] == "("


def _parse_marker_payload(
    payload: str,
    *,
    line: SourceLine,
    source_name: str,
) -> tuple[str | None, str]:
    """Split ``(id) note`` following a sentinel into its id and note."""

    if not payload.startswith("("):
        if payload.lstrip().startswith("("):
            raise MalformedMarkerSyntax(
                source_name,
                line.index,
                "Annotation marker id must follow the sentinel without spaces",
            )
        return None, payload.strip()

    close = payload.find(")")
    if close == -1:
        raise MalformedMarkerSyntax(source_name, line.index, "Unclosed '(' in annotation marker id")

    marker_id = payload[1:close].strip()
    if not marker_id:
        raise MalformedMarkerSyntax(source_name, line.index, "Empty annotation marker id")
    if not _ID_RE.fullmatch(marker_id):
        raise MalformedMarkerSyntax(source_name, line.index, f"Invalid annotation marker id {marker_id!r}")
    return marker_id, payload[close + 1 :].strip()


def _plain(line: SourceLine) -> ClassifiedLine:
    return ClassifiedLine(line=line, kind=MarkerKind.PLAIN, code_text=line.raw_text)


def classify(
    line: SourceLine,
    *,
    syntax: MarkerSyntax = DEFAULT_SYNTAX,
    state: LexState = INITIAL_STATE,
    body_open: bool = False,
    source_name: str = "<memory>",
) -> tuple[ClassifiedLine, LexState]:
    """Classify one line and return it with the lexer state for the next line.

    ``body_open`` tells whether an annotation is currently open; ordinary
    full-line comments only become body text in that case.
    """

    comment_start, next_state = find_line_comment(line.raw_text, syntax=syntax, state=state)
    if comment_start is None:
        return _plain(line), next_state

    code = line.raw_text[:comment_start]
    content = line.raw_text[comment_start + len(syntax.comment_prefix) :]
    stripped = content.strip()
    full_line = not code.strip()

    for kind, sentinel in (
        (MarkerKind.OPEN, syntax.open_sentinel),
        (MarkerKind.CLOSE, syntax.close_sentinel),
    ):
        if not _starts_with_sentinel(stripped, sentinel):
            continue
        if not full_line:
            raise MalformedMarkerSyntax(
                source_name,
                line.index,
                f"Marker {sentinel!r} must be on its own line, not after code",
            )

        marker_id, note = _parse_marker_payload(
            stripped[len(sentinel) :],
            line=line,
            source_name=source_name,
        )
        if kind is MarkerKind.CLOSE:
            if note:
                raise MalformedMarkerSyntax(
                    source_name,
                    line.index,
                    f"Unexpected text after {sentinel!r}: {note!r}",
                )
            return ClassifiedLine(line=line, kind=kind, marker_id=marker_id), next_state
        return ClassifiedLine(line=line, kind=kind, marker_id=marker_id, text=note), next_state

    if stripped.startswith(syntax.note_sentinel):
        note = stripped[len(syntax.note_sentinel) :].strip()
        if not note:
            raise MalformedMarkerSyntax(source_name, line.index, f"Empty {syntax.note_sentinel!r} annotation")
        if full_line:
            return ClassifiedLine(line=line, kind=MarkerKind.NOTE, text=note), next_state

        kept = code.rstrip()
        return (
            ClassifiedLine(
                line=line,
                kind=MarkerKind.PLAIN,
                text=note,
                code_text=kept,
                code_column=len(kept),
            ),
            next_state,
        )

    if full_line and body_open:
        return ClassifiedLine(line=line, kind=MarkerKind.BODY, text=content.rstrip()), next_state

    return _plain(line), next_state
