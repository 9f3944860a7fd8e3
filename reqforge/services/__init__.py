"""Business logic services."""

from .project_service import ProjectService
from .section_service import SectionService
from .version_service import PatchOutcome, VersionService
from .generation import (
    LiteLLMOutlineAdapter,
    LiteLLMSectionContentAdapter,
    LiteLLMSuggestionAdapter,
    Suggestion,
)

__all__ = [
    "ProjectService",
    "SectionService",
    "VersionService",
    "PatchOutcome",
    "LiteLLMOutlineAdapter",
    "LiteLLMSectionContentAdapter",
    "LiteLLMSuggestionAdapter",
    "Suggestion",
]
