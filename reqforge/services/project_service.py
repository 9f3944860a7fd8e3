"""Project service - project lifecycle and outline registration.

Owns the Outline Registry's persistence: an outline is validated by
``outline_registry.register_outline``, written once, and rebuilt from its
stored nodes on every read. A second registration for the same project is
rejected; the outline is immutable once registered.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from sqlalchemy.orm import Session

from ..core.project_locks import ProjectLockRegistry, project_locks
from ..exceptions import OutlineNotFoundError, ValidationError
from ..models import Project
from ..repositories.outline_repository import OutlineRepository
from ..repositories.project_repository import ProjectRepository
from ..schemas.outline import OutlineSection, OutlineSubsection, OutlineTree
from ..schemas.project import ProjectCreate
from .default_outline import DEFAULT_SRS_OUTLINE
from .outline_registry import Outline, register_outline

logger = logging.getLogger(__name__)


class OutlineAdapter(Protocol):
    async def generate(self, project_description: str) -> OutlineTree:
        ...


class ProjectService:
    """Projects and their outlines."""

    def __init__(self, db: Session, locks: ProjectLockRegistry = project_locks):
        self.db = db
        self.locks = locks
        self.project_repo = ProjectRepository(db)
        self.outline_repo = OutlineRepository(db)

    def create_project(self, data: ProjectCreate) -> Project:
        project = self.project_repo.create(data)
        self.db.commit()
        logger.info("Created project", extra={"project": project.id})
        return project

    def get_project(self, project_id: str) -> Project:
        """Get project by ID. Raises ProjectNotFoundError."""
        return self.project_repo.get_by_id(project_id)

    def list_projects(self, skip: int = 0, limit: int = 100) -> List[Project]:
        return self.project_repo.get_all(skip, limit)

    def register_outline(self, project_id: str, tree: OutlineTree) -> Outline:
        """Validate and store the project's outline.

        Raises:
            ValidationError: the tree is malformed, or an outline is already registered.
        """
        with self.locks.hold(project_id):
            project = self.get_project(project_id)
            if project.outline_registered_at is not None:
                raise ValidationError(
                    "An outline is already registered for this project and cannot be changed",
                    field="sections",
                )
            outline = register_outline(tree)
            self.outline_repo.save(project_id, outline)
            project.outline_registered_at = datetime.now(timezone.utc)
            self.db.commit()

        logger.info(
            "Registered outline",
            extra={"sections": len(outline.sections), "leaves": outline.leaf_count()},
        )
        return outline

    def register_default_outline(self, project_id: str) -> Outline:
        return self.register_outline(project_id, DEFAULT_SRS_OUTLINE)

    async def generate_outline(
        self,
        project_id: str,
        adapter: OutlineAdapter,
        project_description: Optional[str] = None,
    ) -> Outline:
        """Have the model draft an outline with questions, then register it."""
        description = await asyncio.to_thread(self._outline_description, project_id, project_description)
        tree = await adapter.generate(description)
        return await asyncio.to_thread(self.register_outline, project_id, tree)

    def _outline_description(self, project_id: str, project_description: Optional[str]) -> str:
        project = self.get_project(project_id)
        if project.outline_registered_at is not None:
            raise ValidationError(
                "An outline is already registered for this project and cannot be changed",
                field="sections",
            )
        description = (project_description or project.description or "").strip()
        if not description:
            raise ValidationError("Project description is required", field="project_description")
        return description

    def has_outline(self, project_id: str) -> bool:
        return self.get_project(project_id).outline_registered_at is not None

    def get_outline(self, project_id: str) -> Outline:
        """Rebuild the registered outline. Raises OutlineNotFoundError if none."""
        if not self.has_outline(project_id):
            raise OutlineNotFoundError(project_id)

        nodes = self.outline_repo.get_nodes(project_id)
        subsections: dict[str, list[OutlineSubsection]] = {}
        for node in nodes:
            if node.parent_id is not None:
                subsections.setdefault(node.parent_id, []).append(
                    OutlineSubsection(
                        id=node.node_id,
                        title=node.title,
                        order=node.position,
                        questions=list(node.questions or []),
                    )
                )
        tree = OutlineTree(sections=[
            OutlineSection(
                id=node.node_id,
                title=node.title,
                order=node.position,
                subsections=subsections.get(node.node_id, []),
            )
            for node in nodes
            if node.parent_id is None
        ])
        return register_outline(tree)
