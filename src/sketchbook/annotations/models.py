"""Data structures shared by the annotation extraction stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class SourceLine:
    """One physical line of the original source file."""

    index: int
    raw_text: str
    terminator: str = ""

    @property
    def leading_whitespace(self) -> str:
        return self.raw_text[: len(self.raw_text) - len(self.raw_text.lstrip())]

    @property
    def is_blank(self) -> bool:
        return not self.raw_text.strip()


class MarkerKind(Enum):
    PLAIN = "plain"
    OPEN = "open"
    CLOSE = "close"
    BODY = "body"
    NOTE = "note"


@dataclass(frozen=True, slots=True)
class ClassifiedLine:
    """A source line tagged by the recognizer.

    Payload fields depend on ``kind``:

    - ``OPEN``: ``marker_id`` (optional) and ``text`` (note on the marker line, may be empty)
    - ``CLOSE``: ``marker_id`` (optional)
    - ``BODY``: ``text`` (comment content with the comment prefix removed)
    - ``NOTE``: ``text``
    - ``PLAIN``: ``code_text`` is the text kept in the displayed code; when an
      inline trailing note was stripped, ``text`` holds the note and
      ``code_column`` the column where the note was attached.
    """

    line: SourceLine
    kind: MarkerKind
    marker_id: str | None = None
    text: str | None = None
    code_text: str | None = None
    code_column: int | None = None

    @property
    def is_kept(self) -> bool:
        return self.kind is MarkerKind.PLAIN

    @property
    def has_inline_note(self) -> bool:
        return self.kind is MarkerKind.PLAIN and self.text is not None


@dataclass(slots=True)
class AnnotationDraft:
    """An annotation that is open inside the assembler."""

    marker_id: str | None
    open_line: int
    opened_at_depth: int
    note: str = ""
    body_lines: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Annotation:
    """Finalized note anchored to displayed-code line numbers."""

    start_line: int
    end_line: int
    text: str
    anchor_column: int | None = None
    marker_id: str | None = None
    depth: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "start_line": self.start_line,
            "end_line": self.end_line,
            "text": self.text,
            "anchor_column": self.anchor_column,
            "marker_id": self.marker_id,
            "depth": self.depth,
        }


@dataclass(frozen=True, slots=True)
class DegenerateAnchor:
    """Warning for an annotation that has no displayed line to attach to."""

    source_name: str
    line: int
    message: str

    def __str__(self) -> str:
        return f"{self.message} (source={self.source_name}, line={self.line + 1})"

    def to_dict(self) -> dict[str, object]:
        return {"source_name": self.source_name, "line": self.line + 1, "message": self.message}


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Displayed code plus the annotations anchored into it."""

    code: str
    annotations: tuple[Annotation, ...] = ()
    warnings: tuple[DegenerateAnchor, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "annotations": [annotation.to_dict() for annotation in self.annotations],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }
