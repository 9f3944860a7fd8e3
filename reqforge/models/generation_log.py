"""Generation log model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.sql import func
from ..database import Base


class GenerationLog(Base):
    """Immutable record of one call to a generation adapter.

    Fields:
        kind         - suggestion, section_content, outline_questions
        prompt       - prompt sent to the model
        raw_response - unparsed model reply
        parsed       - structured result handed back to the caller
    """

    __tablename__ = "generation_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(50), ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    kind = Column(String(30), nullable=False)
    model = Column(String(100), nullable=True)
    prompt = Column(Text, nullable=False)
    raw_response = Column(Text, nullable=True)
    parsed = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
