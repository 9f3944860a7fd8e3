"""Shared FastAPI dependencies for the generation adapters.

Routes depend on these factories rather than constructing adapters, so
tests can swap in fakes through ``app.dependency_overrides``.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import generation_log_service
from ..services.generation import (
    LiteLLMOutlineAdapter,
    LiteLLMSectionContentAdapter,
    LiteLLMSuggestionAdapter,
)


def get_suggestion_adapter(db: Session = Depends(get_db)) -> LiteLLMSuggestionAdapter:
    return LiteLLMSuggestionAdapter(recorder=generation_log_service.recorder_for(db))


def get_section_content_adapter(db: Session = Depends(get_db)) -> LiteLLMSectionContentAdapter:
    return LiteLLMSectionContentAdapter(recorder=generation_log_service.recorder_for(db))


def get_outline_adapter(db: Session = Depends(get_db)) -> LiteLLMOutlineAdapter:
    return LiteLLMOutlineAdapter(recorder=generation_log_service.recorder_for(db))
