"""Entry point that turns annotated source text into displayed code and notes."""

from __future__ import annotations

import logging

from sketchbook.annotations.assembler import AnnotationAssembler
from sketchbook.annotations.markers import DEFAULT_SYNTAX, INITIAL_STATE, MarkerSyntax, classify
from sketchbook.annotations.models import ClassifiedLine, ExtractionResult
from sketchbook.annotations.reconstructor import reconstruct, resolve_anchors
from sketchbook.annotations.tokenizer import tokenize

logger = logging.getLogger(__name__)


def extract_code_annotations(
    source_text: str,
    *,
    source_name: str = "<memory>",
    syntax: MarkerSyntax = DEFAULT_SYNTAX,
) -> ExtractionResult:
    """Strip annotation markers from ``source_text`` and return code plus annotations.

    Raises an ``AnnotationError`` subclass on the first content defect.
    ``source_name`` only appears in error and warning messages.
    """

    assembler = AnnotationAssembler(source_name=source_name)
    classified: list[ClassifiedLine] = []
    state = INITIAL_STATE

    for line in tokenize(source_text):
        item, state = classify(
            line,
            syntax=syntax,
            state=state,
            body_open=assembler.body_open,
            source_name=source_name,
        )
        assembler.feed(item)
        classified.append(item)

    pending = assembler.finish()
    code, mapping = reconstruct(classified)
    annotations, warnings = resolve_anchors(pending, classified, mapping, source_name=source_name)

    logger.debug(
        "Extracted %d annotations from %s (%d of %d lines displayed)",
        len(annotations),
        source_name,
        len(mapping),
        len(classified),
    )
    return ExtractionResult(code=code, annotations=tuple(annotations), warnings=tuple(warnings))
