"""Stack-based state machine that pairs annotation markers into notes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import textwrap

from sketchbook.annotations.errors import MalformedMarkerSyntax, MismatchedClose, UnterminatedAnnotation
from sketchbook.annotations.models import AnnotationDraft, ClassifiedLine, MarkerKind


class AnchorForm(Enum):
    BLOCK = "block"
    NOTE = "note"
    INLINE = "inline"


@dataclass(frozen=True, slots=True)
class PendingAnnotation:
    """A closed annotation whose anchor is still in original coordinates."""

    form: AnchorForm
    open_line: int
    close_line: int
    text: str
    marker_id: str | None = None
    depth: int = 0
    anchor_column: int | None = None


def compose_note(note: str, body_lines: list[str]) -> str:
    """Join the marker-line note and dedented body lines into the note text."""

    body = textwrap.dedent("\n".join(body_lines)).strip("\n")
    return "\n".join(part for part in (note.strip(), body) if part)


class AnnotationAssembler:
    """Consume classified lines in order and collect closed annotations.

    Open annotations live on an explicit stack. A close marker without an id
    pops the innermost one; a close marker with an id may target any open
    annotation, which lets ranges overlap instead of nesting.
    """

    def __init__(self, *, source_name: str = "<memory>") -> None:
        self._source_name = source_name
        self._stack: list[AnnotationDraft] = []
        self._closed: list[PendingAnnotation] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def body_open(self) -> bool:
        """True while any annotation is open; comment lines then become note text."""

        return bool(self._stack)

    def feed(self, item: ClassifiedLine) -> None:
        kind = item.kind
        index = item.line.index

        if kind is MarkerKind.PLAIN:
            if item.has_inline_note:
                self._closed.append(
                    PendingAnnotation(
                        form=AnchorForm.INLINE,
                        open_line=index,
                        close_line=index,
                        text=item.text or "",
                        depth=self.depth,
                        anchor_column=item.code_column,
                    )
                )
            return

        if kind is MarkerKind.OPEN:
            self._open(item)
            return

        if kind is MarkerKind.BODY:
            if not self.body_open:
                raise MalformedMarkerSyntax(self._source_name, index, "Note text outside an open annotation")
            self._stack[-1].body_lines.append(item.text or "")
            return

        if kind is MarkerKind.CLOSE:
            draft = self._pop(item)
            self._closed.append(
                PendingAnnotation(
                    form=AnchorForm.BLOCK,
                    open_line=draft.open_line,
                    close_line=index,
                    text=compose_note(draft.note, draft.body_lines),
                    marker_id=draft.marker_id,
                    depth=draft.opened_at_depth,
                )
            )
            return

        if kind is MarkerKind.NOTE:
            self._closed.append(
                PendingAnnotation(
                    form=AnchorForm.NOTE,
                    open_line=index,
                    close_line=index,
                    text=item.text or "",
                    depth=self.depth,
                )
            )
            return

        raise ValueError(f"Unsupported marker kind: {kind!r}")

    def finish(self) -> list[PendingAnnotation]:
        """Return annotations in the order they closed; fail on unclosed ones."""

        if self._stack:
            draft = self._stack[-1]
            label = f" {draft.marker_id!r}" if draft.marker_id else ""
            raise UnterminatedAnnotation(
                self._source_name,
                draft.open_line,
                f"Annotation{label} is never closed",
            )
        return list(self._closed)

    def _open(self, item: ClassifiedLine) -> None:
        marker_id = item.marker_id
        if marker_id is not None and any(draft.marker_id == marker_id for draft in self._stack):
            raise MalformedMarkerSyntax(
                self._source_name,
                item.line.index,
                f"Annotation id {marker_id!r} is already open",
            )

        self._stack.append(
            AnnotationDraft(
                marker_id=marker_id,
                open_line=item.line.index,
                opened_at_depth=self.depth,
                note=item.text or "",
            )
        )

    def _pop(self, item: ClassifiedLine) -> AnnotationDraft:
        index = item.line.index
        if not self._stack:
            raise MismatchedClose(self._source_name, index, "Close marker without an open annotation")

        marker_id = item.marker_id
        if marker_id is None:
            return self._stack.pop()

        for position in range(len(self._stack) - 1, -1, -1):
            if self._stack[position].marker_id == marker_id:
                return self._stack.pop(position)

        raise MismatchedClose(
            self._source_name,
            index,
            f"Close marker {marker_id!r} does not match any open annotation",
        )
