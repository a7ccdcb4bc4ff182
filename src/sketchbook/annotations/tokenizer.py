"""Split source text into physical lines with their terminators."""

from __future__ import annotations

from sketchbook.annotations.models import SourceLine


def tokenize(source_text: str) -> list[SourceLine]:
    """Return one ``SourceLine`` per physical line of ``source_text``.

    A trailing ``\\r`` before ``\\n`` belongs to the terminator. Empty input
    yields no lines; a final line without a terminator is still a line.
    """

    lines: list[SourceLine] = []
    offset = 0
    length = len(source_text)

    while offset < length:
        newline = source_text.find("\n", offset)
        if newline == -1:
            lines.append(SourceLine(index=len(lines), raw_text=source_text[offset:], terminator=""))
            break

        raw = source_text[offset:newline]
        terminator = "\n"
        if raw.endswith("\r"):
            raw = raw[:-1]
            terminator = "\r\n"
        lines.append(SourceLine(index=len(lines), raw_text=raw, terminator=terminator))
        offset = newline + 1

    return lines
