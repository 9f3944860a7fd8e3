"""Project repository for database operations."""

import uuid
from typing import List

from ..models import Project
from ..schemas.project import ProjectCreate
from ..exceptions import ProjectNotFoundError
from .base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for project CRUD and version-pointer bookkeeping."""

    model_class = Project
    not_found_error = ProjectNotFoundError

    def create(self, project: ProjectCreate) -> Project:
        db_project = Project(
            id=f"prj-{uuid.uuid4().hex[:16]}",
            title=project.title,
            description=project.description,
            head_version=0,
            current_version=0,
        )
        self.db.add(db_project)
        self.db.flush()
        self.db.refresh(db_project)
        return db_project

    def get_all(self, skip: int = 0, limit: int = 100) -> List[Project]:
        return self.db.query(Project).order_by(
            Project.created_at.desc(), Project.id
        ).offset(skip).limit(limit).all()

    def advance_head(self, project_id: str, expected_head: int) -> bool:
        """Compare-and-set head_version from *expected_head* to *expected_head* + 1.

        Moves the view pointer to the new head in the same statement.
        Returns False when another writer got there first.
        """
        updated = self.db.query(Project).filter(
            Project.id == project_id,
            Project.head_version == expected_head,
        ).update(
            {
                Project.head_version: expected_head + 1,
                Project.current_version: expected_head + 1,
            },
            synchronize_session=False,
        )
        return updated == 1

    def set_current(self, project_id: str, number: int) -> None:
        self.db.query(Project).filter(Project.id == project_id).update(
            {Project.current_version: number},
            synchronize_session=False,
        )
