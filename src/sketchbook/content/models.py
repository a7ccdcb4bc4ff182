"""Canonical records produced by the content loader."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    """Metadata for one curated project."""

    id: str
    name: str
    last_modified: int
    author: str | None = None
    description: str | None = None
    simulation: str | None = None
    thumbnail: str | None = None


@dataclass(frozen=True, slots=True)
class ProjectSourceFile:
    """One raw source file of a project, still carrying annotation markup."""

    name: str
    code: str
    primary: bool = False
