"""Outline node model."""

from sqlalchemy import Column, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base


class OutlineNode(Base):
    """One section or subsection of a project's registered outline.

    Rows are written once, when the outline is registered, and never updated.
    """

    __tablename__ = "outline_nodes"
    __table_args__ = (
        UniqueConstraint("project_id", "node_id", name="uq_outline_nodes_project_node"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(50), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)

    node_id = Column(String(50), nullable=False)  # stable path, e.g. "2.3"
    parent_id = Column(String(50), nullable=True)  # NULL for top-level sections
    title = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False)  # declared order among siblings
    questions = Column(JSON, default=list)  # leaves only

    project = relationship("Project", back_populates="outline_nodes")
