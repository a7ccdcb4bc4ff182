"""Concurrent static build of project pages into JSON page props."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import time
from typing import Sequence

from sketchbook.annotations import AnnotationError, ExtractionResult, extract_code_annotations
from sketchbook.content.loader import ContentError, ProjectRepository
from sketchbook.site.config import SiteSettings
from sketchbook.site.pages import (
    PageBuildError,
    ProjectPage,
    annotate_source,
    assemble_page,
    project_card,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BuildRunStats:
    scanned: int = 0
    built: int = 0
    errors: int = 0
    warnings: int = 0
    duration_ms: int = 0
    error_details: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, int | list[dict[str, str]]]:
        return {
            "scanned": self.scanned,
            "built": self.built,
            "errors": self.errors,
            "warnings": self.warnings,
            "duration_ms": self.duration_ms,
            "error_details": self.error_details,
        }


async def extract_many(
    sources: Sequence[tuple[str, str]],
    *,
    concurrency: int = 8,
) -> list[ExtractionResult | AnnotationError]:
    """Extract ``(name, text)`` sources concurrently, keeping input order.

    A failing file yields its ``AnnotationError`` in place of a result and
    does not affect the others.
    """

    if concurrency < 1:
        raise ValueError("concurrency must be positive")
    semaphore = asyncio.Semaphore(concurrency)

    async def _extract(name: str, text: str) -> ExtractionResult | AnnotationError:
        async with semaphore:
            try:
                return await asyncio.to_thread(extract_code_annotations, text, source_name=name)
            except AnnotationError as exc:
                return exc

    return list(await asyncio.gather(*(_extract(name, text) for name, text in sources)))


class SiteBuilder:
    """Builds every project page and the index into the output directory."""

    def __init__(self, repository: ProjectRepository, settings: SiteSettings) -> None:
        self._repository = repository
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: SiteSettings) -> "SiteBuilder":
        return cls(repository=ProjectRepository(settings.content_dir), settings=settings)

    @property
    def pages_dir(self) -> Path:
        return self._settings.output_dir / "projects"

    @property
    def index_path(self) -> Path:
        return self._settings.output_dir / "index.json"

    async def build_project(self, project_id: str) -> ProjectPage:
        """Load a project and annotate its files concurrently."""

        project = await asyncio.to_thread(self._repository.get_project, project_id)
        text = await asyncio.to_thread(self._repository.get_project_text, project_id)
        sources = await asyncio.to_thread(self._repository.get_project_code, project_id)
        outcomes = await extract_many(
            [(f"{project_id}/{source.name}", source.code) for source in sources],
            concurrency=self._settings.build_concurrency,
        )
        code = [annotate_source(project_id, source, outcome) for source, outcome in zip(sources, outcomes)]
        return assemble_page(project, text, code, settings=self._settings)

    async def rebuild_project(self, project_id: str) -> ProjectPage:
        """Build one project, write its page and refresh the index cards."""

        page = await self.build_project(project_id)
        self.write_page(page)
        await asyncio.to_thread(self.write_index)
        return page

    async def build(self) -> BuildRunStats:
        started = time.perf_counter()
        stats = BuildRunStats()
        project_ids = await asyncio.to_thread(self._repository.list_projects)
        stats.scanned = len(project_ids)
        semaphore = asyncio.Semaphore(self._settings.build_concurrency)

        async def _bounded(project_id: str) -> ProjectPage | PageBuildError | ContentError:
            async with semaphore:
                return await self._build_one(project_id)

        outcomes = await asyncio.gather(*(_bounded(project_id) for project_id in project_ids))

        for project_id, outcome in zip(project_ids, outcomes):
            if isinstance(outcome, ProjectPage):
                self.write_page(outcome)
                stats.built += 1
                stats.warnings += sum(len(source.warnings) for source in outcome.code)
                continue

            stats.errors += 1
            stats.error_details.append({"project_id": project_id, "error": str(outcome)})
            logger.error("Failed to build page for %s: %s", project_id, outcome)
            (self.pages_dir / f"{project_id}.json").unlink(missing_ok=True)

        await asyncio.to_thread(self.write_index)
        stats.duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info("Built %d of %d project pages in %d ms", stats.built, stats.scanned, stats.duration_ms)
        return stats

    def write_page(self, page: ProjectPage) -> Path:
        path = self.pages_dir / f"{page.project.id}.json"
        self._write_json(path, page.to_dict())
        return path

    def write_index(self) -> Path:
        """Write the project grid for every project that has a written page."""

        cards: list[dict[str, object]] = []
        for project_id in self._repository.list_projects():
            if not (self.pages_dir / f"{project_id}.json").is_file():
                continue
            try:
                project = self._repository.get_project(project_id)
            except ContentError as exc:
                logger.warning("Skipping index card for %s: %s", project_id, exc)
                continue
            cards.append(project_card(project))

        self._write_json(self.index_path, {"projects": cards})
        return self.index_path

    async def _build_one(self, project_id: str) -> ProjectPage | PageBuildError | ContentError:
        try:
            return await self.build_project(project_id)
        except (PageBuildError, ContentError) as exc:
            return exc

    def _write_json(self, path: Path, payload: dict[str, object]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


async def build_site(settings: SiteSettings) -> BuildRunStats:
    return await SiteBuilder.from_settings(settings).build()
