"""Database models."""

from .project import Project
from .outline import OutlineNode
from .answer import Answer
from .section import SectionRecord
from .version import Version
from .generation_log import GenerationLog

__all__ = [
    "Project", "OutlineNode", "Answer", "SectionRecord",
    "Version", "GenerationLog",
]
