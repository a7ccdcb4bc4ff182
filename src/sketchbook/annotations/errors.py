"""Structured failures raised by annotation extraction."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class AnnotationError(Exception):
    """Domain error for a content defect found while extracting annotations.

    ``line`` is the 0-based index in the original file; messages show it 1-based.
    """

    source_name: str
    line: int
    message: str

    def __str__(self) -> str:
        return f"{self.message} (source={self.source_name}, line={self.line + 1})"


class UnterminatedAnnotation(AnnotationError):
    """An open marker has no matching close marker before end of file."""


class MismatchedClose(AnnotationError):
    """A close marker does not match any open annotation."""


class MalformedMarkerSyntax(AnnotationError):
    """A line looks like a marker but its payload cannot be parsed."""
