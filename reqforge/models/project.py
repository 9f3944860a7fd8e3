"""Project model."""

from sqlalchemy import Column, Index, String, Text, Integer, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Project(Base):
    """One requirements document being authored."""

    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_updated_at", "updated_at"),
    )

    # Primary key
    id = Column(String(50), primary_key=True)  # prj-{uuid hex}

    title = Column(String(255), nullable=False)
    description = Column(Text, default='')

    # Version chain bookkeeping.
    # head_version is the chain length n; every append is a compare-and-set on it.
    # current_version is the view pointer (1..n, 0 while the chain is empty).
    head_version = Column(Integer, default=0, nullable=False)
    current_version = Column(Integer, default=0, nullable=False)

    # Set once, when the outline is registered. The outline is immutable afterwards.
    outline_registered_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    outline_nodes = relationship("OutlineNode", back_populates="project", cascade="all, delete-orphan")
    answers = relationship("Answer", back_populates="project", cascade="all, delete-orphan")
    sections = relationship("SectionRecord", back_populates="project", cascade="all, delete-orphan")
    versions = relationship("Version", back_populates="project", cascade="all, delete-orphan")
