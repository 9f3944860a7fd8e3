"""Patch (selection-scoped edit) schemas."""

from pydantic import BaseModel, Field
from typing import Optional

from .version import Author, VersionResponse


class SuggestRequest(BaseModel):
    """Selection in the currently viewed version plus the edit instruction."""
    selection_start: int = Field(ge=0)
    selection_end: int = Field(ge=0)
    instruction: str


class SuggestionResponse(BaseModel):
    selected_text: str
    selection_start: int
    selection_end: int
    instruction: str
    suggestion_text: str
    explanation: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    based_on_version: int


class ApplyPatchRequest(BaseModel):
    selected_text: str
    replacement_text: str
    selection_start: int = Field(ge=0)
    instruction: Optional[str] = None
    expected_head: Optional[int] = None
    author: Author = Author.ASSISTANT


class AmbiguousMatchResponse(BaseModel):
    """Advisory: the selected text occurs more than once. The patch still applied."""
    selected_text: str
    occurrences: int
    applied_at: int


class ApplyPatchResponse(BaseModel):
    version: VersionResponse
    occurrences: int
    ambiguous_match: Optional[AmbiguousMatchResponse] = None
    warning_count: int = 0
