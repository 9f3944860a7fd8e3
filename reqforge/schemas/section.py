"""Section, answer and completion schemas."""

from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, List, Optional


class SectionStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"


class QAPair(BaseModel):
    question: str
    answer: str


class AnswersUpdate(BaseModel):
    """Answers keyed by question index; omitted indexes keep their current answer."""
    answers: Dict[int, str]


class AnswersResponse(BaseModel):
    section_id: str
    subsection_id: str
    qa_pairs: List[QAPair]
    complete: bool


class GeneratedContentResponse(BaseModel):
    section_id: str
    subsection_id: str
    content: str


class SectionSave(BaseModel):
    """Schema for saving (approving) a subsection's content."""
    content: str
    status: SectionStatus = SectionStatus.APPROVED


class SectionKeyResponse(BaseModel):
    section_id: str
    subsection_id: str


class SectionRecordResponse(BaseModel):
    section_id: str
    subsection_id: str
    content: str
    status: SectionStatus
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SectionSaveResponse(BaseModel):
    record: SectionRecordResponse
    saved_keys: List[SectionKeyResponse]


class CompletionResponse(BaseModel):
    completed_count: int
    total_count: int
    percentage: int = Field(ge=0, le=100)
    can_export: bool


class AssembledDocumentResponse(BaseModel):
    content: str
    completion: CompletionResponse
