"""Version model."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Version(Base):
    """Immutable snapshot of a project's document.

    Rows are insert-only. The unique (project_id, number) constraint is the
    last line of defence against two writers claiming the same number.
    """

    __tablename__ = "versions"
    __table_args__ = (
        UniqueConstraint("project_id", "number", name="uq_versions_project_number"),
        Index("ix_versions_project_id", "project_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(50), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    number = Column(Integer, nullable=False)  # 1-based, contiguous per project

    # Content
    content = Column(Text, nullable=False)
    content_hash = Column(String(64), nullable=False)  # SHA256

    # Author info
    author = Column(String(10), nullable=False)  # 'human' or 'assistant'
    instruction = Column(Text, nullable=True)
    replacement_text = Column(Text, nullable=True)

    # Span in the new content that the patch produced
    changed_start = Column(Integer, nullable=True)
    changed_end = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="versions")
