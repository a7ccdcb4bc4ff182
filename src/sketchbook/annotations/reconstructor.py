"""Rebuild displayed code and translate anchors into its line numbers."""

from __future__ import annotations

import logging

from sketchbook.annotations.assembler import AnchorForm, PendingAnnotation
from sketchbook.annotations.models import Annotation, ClassifiedLine, DegenerateAnchor

logger = logging.getLogger(__name__)


def reconstruct(classified: list[ClassifiedLine]) -> tuple[str, dict[int, int]]:
    """Return the displayed code and a map from original to displayed line index.

    Kept lines retain their own terminators, so the result equals the input
    with every marker and note-body line deleted.
    """

    parts: list[str] = []
    mapping: dict[int, int] = {}

    for item in classified:
        if not item.is_kept:
            continue
        mapping[item.line.index] = len(mapping)
        parts.append((item.code_text or "") + item.line.terminator)

    return "".join(parts), mapping


def _is_content_line(item: ClassifiedLine) -> bool:
    return item.is_kept and bool((item.code_text or "").strip())


def _next_content_line(classified: list[ClassifiedLine], after: int, before: int) -> int | None:
    for index in range(after + 1, before):
        if _is_content_line(classified[index]):
            return index
    return None


def _paragraph_end(classified: list[ClassifiedLine], start: int, before: int) -> int:
    end = start
    while end + 1 < before and _is_content_line(classified[end + 1]):
        end += 1
    return end


def _enclosing_block(pending: PendingAnnotation, blocks: list[PendingAnnotation]) -> PendingAnnotation | None:
    """Return the tightest block whose markers surround ``pending``."""

    parents = [
        block
        for block in blocks
        if block.open_line < pending.open_line and pending.close_line < block.close_line
    ]
    if not parents:
        return None
    return min(parents, key=lambda block: block.close_line - block.open_line)


class _AnchorResolver:
    """Original-coordinate ranges for pending annotations.

    Nested annotations only look for their target inside the enclosing block,
    falling back to the last line of the parent's own range, so a nested
    range always lies within its parent's.
    """

    def __init__(self, pending: list[PendingAnnotation], classified: list[ClassifiedLine]) -> None:
        self._classified = classified
        self._blocks = [item for item in pending if item.form is AnchorForm.BLOCK]
        self._resolved: dict[tuple[int, int], tuple[int, int] | None] = {}

    def resolve(self, pending: PendingAnnotation) -> tuple[int, int] | None:
        if pending.form is AnchorForm.INLINE:
            return pending.open_line, pending.open_line

        key = (pending.open_line, pending.close_line)
        if pending.form is AnchorForm.BLOCK and key in self._resolved:
            return self._resolved[key]

        parent = _enclosing_block(pending, self._blocks)
        result = self._own_range(pending, parent)
        if result is None and parent is not None:
            parent_range = self.resolve(parent)
            if parent_range is None or parent_range[0] > parent.close_line:
                # note-only parent: share the paragraph it attaches to
                result = parent_range
            else:
                result = parent_range[1], parent_range[1]

        if pending.form is AnchorForm.BLOCK:
            self._resolved[key] = result
        return result

    def _own_range(self, pending: PendingAnnotation, parent: PendingAnnotation | None) -> tuple[int, int] | None:
        classified = self._classified
        before = len(classified) if parent is None else parent.close_line

        if pending.form is AnchorForm.NOTE:
            target = _next_content_line(classified, pending.open_line, before)
            return None if target is None else (target, target)

        enclosed = [
            index
            for index in range(pending.open_line + 1, pending.close_line)
            if classified[index].is_kept
        ]
        if enclosed:
            return enclosed[0], enclosed[-1]

        start = _next_content_line(classified, pending.close_line, before)
        if start is None:
            return None
        return start, _paragraph_end(classified, start, before)


def resolve_anchors(
    pending: list[PendingAnnotation],
    classified: list[ClassifiedLine],
    mapping: dict[int, int],
    *,
    source_name: str = "<memory>",
) -> tuple[list[Annotation], list[DegenerateAnchor]]:
    """Finalize pending annotations against the displayed-code mapping.

    Annotations with no displayed line to attach to are dropped and reported
    as ``DegenerateAnchor`` warnings.
    """

    annotations: list[Annotation] = []
    warnings: list[DegenerateAnchor] = []

    resolver = _AnchorResolver(pending, classified)
    for item in pending:
        original = resolver.resolve(item)
        if original is None:
            warning = DegenerateAnchor(
                source_name=source_name,
                line=item.open_line,
                message="Annotation has no displayed line to attach to and was dropped",
            )
            logger.warning("%s", warning)
            warnings.append(warning)
            continue

        start, end = original
        annotations.append(
            Annotation(
                start_line=mapping[start],
                end_line=mapping[end],
                text=item.text,
                anchor_column=item.anchor_column,
                marker_id=item.marker_id,
                depth=item.depth,
            )
        )

    return annotations, warnings
