"""Pydantic schemas for API validation."""

from .project import ProjectCreate, ProjectResponse
from .outline import (
    OutlineSubsection,
    OutlineSection,
    OutlineTree,
    OutlineGenerateRequest,
    OutlineResponse,
)
from .section import (
    SectionStatus,
    QAPair,
    AnswersUpdate,
    AnswersResponse,
    GeneratedContentResponse,
    SectionSave,
    SectionKeyResponse,
    SectionRecordResponse,
    SectionSaveResponse,
    CompletionResponse,
    AssembledDocumentResponse,
)
from .version import (
    Author,
    VersionCreate,
    CommitRequest,
    SelectVersionRequest,
    VersionSummary,
    VersionResponse,
    ChainStateResponse,
)
from .patch import (
    SuggestRequest,
    SuggestionResponse,
    ApplyPatchRequest,
    AmbiguousMatchResponse,
    ApplyPatchResponse,
)
from .generation_log import GenerationLogResponse

__all__ = [
    "ProjectCreate", "ProjectResponse",
    "OutlineSubsection", "OutlineSection", "OutlineTree",
    "OutlineGenerateRequest", "OutlineResponse",
    "SectionStatus", "QAPair", "AnswersUpdate", "AnswersResponse",
    "GeneratedContentResponse", "SectionSave", "SectionKeyResponse",
    "SectionRecordResponse", "SectionSaveResponse",
    "CompletionResponse", "AssembledDocumentResponse",
    "Author", "VersionCreate", "CommitRequest", "SelectVersionRequest",
    "VersionSummary", "VersionResponse", "ChainStateResponse",
    "SuggestRequest", "SuggestionResponse", "ApplyPatchRequest",
    "AmbiguousMatchResponse", "ApplyPatchResponse",
    "GenerationLogResponse",
]
