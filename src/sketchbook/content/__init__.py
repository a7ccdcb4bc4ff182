"""Content loading interfaces."""

from .loader import ContentError, ProjectRepository
from .models import ProjectInfo, ProjectSourceFile

__all__ = ["ContentError", "ProjectInfo", "ProjectRepository", "ProjectSourceFile"]
