"""Filesystem-backed loader for project metadata, write-ups and source files."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path

from charset_normalizer import from_bytes

from sketchbook.content.models import ProjectInfo, ProjectSourceFile

logger = logging.getLogger(__name__)

PROJECT_FILE = "project.json"
TEXT_FILE = "README.md"
SKETCH_SUFFIXES = {".ino"}
SOURCE_SUFFIXES = {".ino", ".h", ".hpp", ".c", ".cpp"}
_OPTIONAL_FIELDS = ("author", "description", "simulation", "thumbnail")


@dataclass(slots=True)
class ContentError(Exception):
    """Domain error for missing or invalid project content."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


def decode_source(raw: bytes) -> str:
    """Decode source bytes, detecting legacy encodings used by older sketches."""

    if not raw:
        return ""

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass

    best = from_bytes(raw).best()
    if best and best.encoding:
        return raw.decode(best.encoding)

    logger.warning("Could not detect source encoding, falling back to cp1252")
    return raw.decode("cp1252", errors="replace")


def _source_sort_key(path: Path) -> tuple[int, str]:
    is_sketch = path.suffix.lower() in SKETCH_SUFFIXES
    return (0 if is_sketch else 1, path.name)


class ProjectRepository:
    """Read projects laid out as ``<content_dir>/<id>/project.json`` plus sources."""

    def __init__(self, content_dir: str | Path) -> None:
        self._content_dir = Path(content_dir)

    @property
    def content_dir(self) -> Path:
        return self._content_dir

    def project_dir(self, project_id: str) -> Path:
        directory = self._content_dir / project_id
        if not project_id or "/" in project_id or "\\" in project_id or project_id in {".", ".."}:
            raise ContentError(directory, f"Invalid project id {project_id!r}")
        if not (directory / PROJECT_FILE).is_file():
            raise ContentError(directory, f"Unknown project {project_id!r}")
        return directory

    def list_projects(self) -> list[str]:
        """Return project ids in stable name order."""

        if not self._content_dir.is_dir():
            return []
        return sorted(
            path.name
            for path in self._content_dir.iterdir()
            if path.is_dir() and (path / PROJECT_FILE).is_file()
        )

    def get_project(self, project_id: str) -> ProjectInfo:
        directory = self.project_dir(project_id)
        metadata_path = directory / PROJECT_FILE

        try:
            data = json.loads(metadata_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ContentError(metadata_path, f"Failed to read project metadata: {exc}") from exc

        if not isinstance(data, dict):
            raise ContentError(metadata_path, "Project metadata must be a JSON object")

        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ContentError(metadata_path, "Project metadata is missing 'name'")

        optional: dict[str, str | None] = {}
        for key in _OPTIONAL_FIELDS:
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ContentError(metadata_path, f"Project field {key!r} must be a string")
            optional[key] = value or None

        return ProjectInfo(
            id=project_id,
            name=name.strip(),
            last_modified=self._last_modified(directory),
            **optional,
        )

    def get_project_text(self, project_id: str) -> str:
        """Return the markdown write-up, or an empty string when there is none."""

        text_path = self.project_dir(project_id) / TEXT_FILE
        if not text_path.is_file():
            return ""
        return decode_source(text_path.read_bytes())

    def get_project_code(self, project_id: str) -> list[ProjectSourceFile]:
        """Return source files with sketches first; the first file is primary."""

        directory = self.project_dir(project_id)
        paths = sorted(
            (path for path in directory.iterdir() if path.is_file() and path.suffix.lower() in SOURCE_SUFFIXES),
            key=_source_sort_key,
        )

        files: list[ProjectSourceFile] = []
        for position, path in enumerate(paths):
            try:
                raw = path.read_bytes()
            except OSError as exc:
                raise ContentError(path, f"Failed to read source file: {exc}") from exc
            files.append(ProjectSourceFile(name=path.name, code=decode_source(raw), primary=position == 0))
        return files

    def _last_modified(self, directory: Path) -> int:
        mtimes = [path.stat().st_mtime_ns for path in directory.rglob("*") if path.is_file()]
        return max(mtimes) // 1_000_000 if mtimes else 0
