"""Data access repositories."""

from .base import BaseRepository
from .project_repository import ProjectRepository
from .outline_repository import OutlineRepository
from .answer_repository import AnswerRepository
from .section_repository import SectionRepository
from .version_repository import VersionRepository

__all__ = [
    "BaseRepository",
    "ProjectRepository",
    "OutlineRepository",
    "AnswerRepository",
    "SectionRepository",
    "VersionRepository",
]
