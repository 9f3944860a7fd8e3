"""Generation log service - records every successful adapter call.

Entries are immutable. Writing is best-effort: a logging failure is
reported in the application log but never breaks the generation that
produced it.

Usage:
    adapter = LiteLLMSuggestionAdapter(recorder=generation_log_service.recorder_for(db))
"""

import logging
from typing import Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.logging_config import project_id_var
from ..models import GenerationLog
from .generation import GenerationRecord, Recorder

logger = logging.getLogger(__name__)


def record(db: Session, entry: GenerationRecord, project_id: Optional[str] = None) -> None:
    """Write a generation log entry. Never raises."""
    try:
        db.add(GenerationLog(
            project_id=project_id or project_id_var.get("") or None,
            kind=entry.kind,
            model=entry.model,
            prompt=entry.prompt,
            raw_response=entry.raw_response,
            parsed=entry.parsed,
        ))
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning("Failed to write generation log: %s", e)
        db.rollback()


def recorder_for(db: Session) -> Recorder:
    """Bind *db* into a recorder callable for the adapters."""
    def _record(entry: GenerationRecord) -> None:
        record(db, entry)
    return _record


def get_by_project(db: Session, project_id: str, kind: Optional[str] = None, limit: int = 100) -> list[GenerationLog]:
    """Most recent generation log entries for a project."""
    query = db.query(GenerationLog).filter(GenerationLog.project_id == project_id)
    if kind:
        query = query.filter(GenerationLog.kind == kind)
    return query.order_by(GenerationLog.id.desc()).limit(limit).all()
