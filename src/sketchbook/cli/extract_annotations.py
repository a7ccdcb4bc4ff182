"""CLI command that extracts annotations from one source file."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from sketchbook.annotations import AnnotationError, extract_code_annotations
from sketchbook.content.loader import decode_source

LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Strip annotation markers from a source file and emit JSON")
    parser.add_argument("--path", required=True, help="Annotated source file")
    parser.add_argument("--name", default=None, help="Display name used in error messages")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(message)s")

    source_path = Path(args.path)
    source_name = args.name or source_path.name

    try:
        text = decode_source(source_path.read_bytes())
    except OSError as exc:
        print(json.dumps({"path": str(source_path), "error": f"Failed to read source file: {exc}"}, indent=2))
        return 1

    try:
        result = extract_code_annotations(text, source_name=source_name)
    except AnnotationError as exc:
        LOGGER.error("Extraction failed: %s", exc)
        payload = {
            "path": str(source_path),
            "error": str(exc),
            "error_type": type(exc).__name__,
            "line": exc.line + 1,
        }
        print(json.dumps(payload, ensure_ascii=True, indent=2))
        return 1

    payload = {"path": str(source_path), **result.to_dict()}
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
