"""URL builders for project files, images and thumbnails."""

from __future__ import annotations

from urllib.parse import quote

from sketchbook.content.models import ProjectInfo
from sketchbook.site.config import SiteSettings

_ABSOLUTE_PREFIXES = ("/", "http://", "https://")


def _is_absolute(path: str) -> bool:
    return path.startswith(_ABSOLUTE_PREFIXES)


def project_file_url(project_id: str, path: str) -> str:
    """Return the served URL of a file inside a project directory."""

    if _is_absolute(path):
        return path
    return f"/api/files/{quote(project_id)}/{quote(path.removeprefix('./'))}"


def project_image_url(
    project_id: str,
    path: str,
    *,
    settings: SiteSettings,
    max_width: int | None = None,
    max_height: int | None = None,
) -> str:
    """Return an image URL, served from the image CDN in production."""

    if _is_absolute(path) or not settings.is_production:
        return project_file_url(project_id, path)

    url = f"{settings.image_cdn_url}/{quote(project_id)}/{quote(path.removeprefix('./'))}"
    transforms: list[str] = []
    if max_width is not None:
        transforms.append(f"w-{max_width}")
    if max_height is not None:
        transforms.append(f"h-{max_height}")
    if transforms:
        url += "?tr=" + ",".join(transforms)
    return url


def thumbnail_url(project: ProjectInfo) -> str | None:
    if not project.thumbnail:
        return None
    return project_file_url(project.id, project.thumbnail)
