"""Page props for project pages, combining write-up, metadata and annotated sources."""

from __future__ import annotations

from dataclasses import dataclass, field
import re

from sketchbook.annotations import Annotation, AnnotationError, DegenerateAnchor, ExtractionResult
from sketchbook.content.models import ProjectInfo, ProjectSourceFile
from sketchbook.site.config import SiteSettings
from sketchbook.site.headings import extract_headings, heading_to_id
from sketchbook.site.urls import project_image_url, thumbnail_url

WRITEUP_IMAGE_MAX_WIDTH = 700
_NON_WORD_RE = re.compile(r"\W")
_IMAGE_SRC_RE = re.compile(r"""src=["']([^"'>]+)['"]""")


@dataclass(slots=True)
class PageBuildError(Exception):
    """A project page could not be generated; names the offending file and line."""

    project_id: str
    message: str
    file_name: str | None = None
    line: int | None = None

    def __str__(self) -> str:
        location = ""
        if self.file_name is not None:
            location = f", file={self.file_name}"
            if self.line is not None:
                location += f":{self.line}"
        return f"{self.message} (project={self.project_id}{location})"


@dataclass(frozen=True, slots=True)
class SectionLink:
    id: str
    name: str
    indent: int

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "indent": self.indent}


@dataclass(frozen=True, slots=True)
class AnnotatedSourceFile:
    """A source file as displayed: markers removed, annotations alongside."""

    name: str
    primary: bool
    code: str
    annotations: tuple[Annotation, ...] = ()
    warnings: tuple[DegenerateAnchor, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "primary": self.primary,
            "code": self.code,
            "annotations": [annotation.to_dict() for annotation in self.annotations],
        }


@dataclass(frozen=True, slots=True)
class ProjectPage:
    project: ProjectInfo
    text: str
    download_url: str
    source_url: str
    code: list[AnnotatedSourceFile] = field(default_factory=list)
    sections: list[SectionLink] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        project = self.project
        return {
            "id": project.id,
            "name": project.name,
            "last_modified": project.last_modified,
            "author": project.author,
            "description": project.description,
            "simulation": project.simulation,
            "text": self.text,
            "download_url": self.download_url,
            "source_url": self.source_url,
            "code": [source.to_dict() for source in self.code],
            "sections": [link.to_dict() for link in self.sections],
        }


def file_name_to_id(file_name: str) -> str:
    return f"source-{_NON_WORD_RE.sub('_', file_name.lower())}"


def fix_image_urls(project_id: str, markdown: str, *, settings: SiteSettings) -> str:
    """Point inline HTML ``src`` attributes of the write-up at served image URLs."""

    def _replace(match: re.Match[str]) -> str:
        url = project_image_url(project_id, match.group(1), settings=settings, max_width=WRITEUP_IMAGE_MAX_WIDTH)
        return f'src="{url}"'

    return _IMAGE_SRC_RE.sub(_replace, markdown)


def section_links(project: ProjectInfo, text: str, code: list[AnnotatedSourceFile]) -> list[SectionLink]:
    links = [SectionLink(id="start", name=project.name, indent=0)]
    links.extend(
        SectionLink(id=heading_to_id(heading.text), name=heading.text, indent=max(heading.level - 2, 0))
        for heading in extract_headings(text)
    )
    links.append(SectionLink(id="source-code", name="Source code", indent=0))
    links.extend(SectionLink(id=file_name_to_id(source.name), name=source.name, indent=1) for source in code)
    if project.simulation:
        links.append(SectionLink(id="simulation", name="Simulation", indent=0))
    return links


def annotate_source(
    project_id: str,
    source: ProjectSourceFile,
    outcome: ExtractionResult | AnnotationError,
) -> AnnotatedSourceFile:
    """Turn one file's extraction outcome into page props.

    Content defects become ``PageBuildError`` naming the file and its 1-based line.
    """

    if isinstance(outcome, AnnotationError):
        raise PageBuildError(
            project_id=project_id,
            message=outcome.message,
            file_name=source.name,
            line=outcome.line + 1,
        ) from outcome

    return AnnotatedSourceFile(
        name=source.name,
        primary=source.primary,
        code=outcome.code,
        annotations=outcome.annotations,
        warnings=outcome.warnings,
    )


def assemble_page(
    project: ProjectInfo,
    text: str,
    code: list[AnnotatedSourceFile],
    *,
    settings: SiteSettings,
) -> ProjectPage:
    return ProjectPage(
        project=project,
        text=fix_image_urls(project.id, text, settings=settings),
        download_url=f"/api/download-project/{project.id}.zip",
        source_url=f"{settings.repository_url}/{project.id}",
        code=code,
        sections=section_links(project, text, code),
    )


def project_card(project: ProjectInfo) -> dict[str, object]:
    """Entry for the index page grid."""

    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "thumbnail_url": thumbnail_url(project),
    }
