"""Markdown heading extraction and anchor slugs for in-page navigation."""

from __future__ import annotations

from dataclasses import dataclass
import re

_ATX_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_NON_WORD_RE = re.compile(r"[^\w]+")


@dataclass(frozen=True, slots=True)
class Heading:
    text: str
    level: int


def extract_headings(markdown: str) -> list[Heading]:
    """Return ATX headings in document order, skipping fenced code blocks."""

    headings: list[Heading] = []
    fence: str | None = None

    for line in markdown.splitlines():
        fence_match = _FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            continue
        if fence is not None:
            continue

        match = _ATX_HEADING_RE.match(line)
        if not match:
            continue
        text = (match.group(2) or "").strip()
        if text:
            headings.append(Heading(text=text, level=len(match.group(1))))

    return headings


def heading_to_id(text: str) -> str:
    """Slug used as the anchor id of a rendered heading."""

    return _NON_WORD_RE.sub("-", text.strip().lower()).strip("-")
