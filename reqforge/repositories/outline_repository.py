"""Outline repository: write-once storage of a project's outline nodes."""

from typing import List

from ..models import OutlineNode


class OutlineRepository:
    def __init__(self, db):
        self.db = db

    def save(self, project_id: str, outline) -> None:
        """Persist every node of a registered (validated, ordered) outline."""
        for section in outline.sections:
            self.db.add(OutlineNode(
                project_id=project_id,
                node_id=section.id,
                parent_id=None,
                title=section.title,
                position=section.order,
                questions=[],
            ))
            for leaf in section.leaves:
                self.db.add(OutlineNode(
                    project_id=project_id,
                    node_id=leaf.subsection_id,
                    parent_id=section.id,
                    title=leaf.subsection_title,
                    position=leaf.order,
                    questions=list(leaf.questions),
                ))
        self.db.flush()

    def get_nodes(self, project_id: str) -> List[OutlineNode]:
        return self.db.query(OutlineNode).filter(
            OutlineNode.project_id == project_id
        ).order_by(OutlineNode.id).all()
