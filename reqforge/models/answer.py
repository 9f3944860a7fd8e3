"""Answer model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Answer(Base):
    """User's answer to one prompt question of a leaf subsection."""

    __tablename__ = "answers"
    __table_args__ = (
        UniqueConstraint(
            "project_id", "section_id", "subsection_id", "question_index",
            name="uq_answers_question",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(50), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    section_id = Column(String(50), nullable=False)
    subsection_id = Column(String(50), nullable=False)
    question_index = Column(Integer, nullable=False)

    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False, default='')

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="answers")
