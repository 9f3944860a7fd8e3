"""Section record model."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class SectionRecord(Base):
    """Current content of one leaf subsection.

    Records live in an integer-keyed arena; the composite
    (project_id, section_id, subsection_id) unique index is the lookup table.
    Records are overwritten in place and never deleted, so the number of rows
    per project equals the number of distinct keys ever saved.
    """

    __tablename__ = "section_records"
    __table_args__ = (
        UniqueConstraint("project_id", "section_id", "subsection_id", name="uq_section_records_key"),
        Index("ix_section_records_project_id", "project_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(50), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    section_id = Column(String(50), nullable=False)
    subsection_id = Column(String(50), nullable=False)

    content = Column(Text, nullable=False)
    status = Column(String(10), nullable=False, default="approved")  # 'draft' or 'approved'

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="sections")
