"""Version schemas."""

from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class Author(str, Enum):
    HUMAN = "human"
    ASSISTANT = "assistant"


class VersionCreate(BaseModel):
    """Schema for appending a full-text version (manual edit or uploaded seed)."""
    content: str
    author: Author = Author.HUMAN
    instruction: Optional[str] = None
    expected_head: Optional[int] = None  # Omit to skip the optimistic check


class CommitRequest(BaseModel):
    """Commit the assembled document as the next version."""
    expected_head: Optional[int] = None


class SelectVersionRequest(BaseModel):
    number: int = Field(ge=1)


class VersionSummary(BaseModel):
    """Version metadata without the full text."""
    number: int
    author: Author
    content_hash: str
    instruction: Optional[str] = None
    replacement_text: Optional[str] = None
    changed_start: Optional[int] = None
    changed_end: Optional[int] = None
    created_at: Optional[datetime] = None


class VersionResponse(VersionSummary):
    content: str


class ChainStateResponse(BaseModel):
    """View pointer plus the version it points at."""
    head_version: int
    current_version: int
    version: VersionResponse
