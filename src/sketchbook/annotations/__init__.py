"""Annotation extraction engine interfaces."""

from .errors import AnnotationError, MalformedMarkerSyntax, MismatchedClose, UnterminatedAnnotation
from .extractor import extract_code_annotations
from .markers import DEFAULT_SYNTAX, MarkerSyntax
from .models import Annotation, DegenerateAnchor, ExtractionResult

__all__ = [
    "DEFAULT_SYNTAX",
    "Annotation",
    "AnnotationError",
    "DegenerateAnchor",
    "ExtractionResult",
    "MalformedMarkerSyntax",
    "MarkerSyntax",
    "MismatchedClose",
    "UnterminatedAnnotation",
    "extract_code_annotations",
]
