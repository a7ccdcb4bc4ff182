"""Site build: page props, URLs, headings and the concurrent builder."""

from sketchbook.site.builder import BuildRunStats, SiteBuilder, build_site, extract_many
from sketchbook.site.config import SiteSettings
from sketchbook.site.pages import PageBuildError, ProjectPage

__all__ = [
    "BuildRunStats",
    "PageBuildError",
    "ProjectPage",
    "SiteBuilder",
    "SiteSettings",
    "build_site",
    "extract_many",
]
