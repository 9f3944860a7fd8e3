"""Project and outline API endpoints.

Endpoints are thin: ProjectService validates and stores the outline, and
the outline is immutable once registered.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.generation_log import GenerationLogResponse
from ..schemas.outline import OutlineGenerateRequest, OutlineResponse, OutlineTree
from ..schemas.project import ProjectCreate, ProjectResponse
from ..services import ProjectService, generation_log_service
from ..services.generation import LiteLLMOutlineAdapter
from ..services.outline_registry import Outline
from .deps import get_outline_adapter

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _outline_response(outline: Outline) -> OutlineResponse:
    return OutlineResponse(sections=outline.to_tree().sections, leaf_count=outline.leaf_count())


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(project: ProjectCreate, db: Session = Depends(get_db)):
    """Create an empty project. Register an outline next."""
    return ProjectService(db).create_project(project)


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return ProjectService(db).list_projects(skip, limit)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str, db: Session = Depends(get_db)):
    return ProjectService(db).get_project(project_id)


@router.put("/{project_id}/outline", response_model=OutlineResponse, status_code=201)
def register_outline(project_id: str, tree: OutlineTree, db: Session = Depends(get_db)):
    """Register the project's outline. Fails if one is already registered."""
    return _outline_response(ProjectService(db).register_outline(project_id, tree))


@router.post("/{project_id}/outline/default", response_model=OutlineResponse, status_code=201)
def register_default_outline(project_id: str, db: Session = Depends(get_db)):
    """Register the standard IEEE 830 SRS outline."""
    return _outline_response(ProjectService(db).register_default_outline(project_id))


@router.post("/{project_id}/outline/generate", response_model=OutlineResponse, status_code=201)
async def generate_outline(
    project_id: str,
    request: OutlineGenerateRequest,
    db: Session = Depends(get_db),
    adapter: LiteLLMOutlineAdapter = Depends(get_outline_adapter),
):
    """Have the model draft an outline with questions for this project, then register it."""
    outline = await ProjectService(db).generate_outline(
        project_id, adapter, request.project_description
    )
    return _outline_response(outline)


@router.get("/{project_id}/outline", response_model=OutlineResponse)
def get_outline(project_id: str, db: Session = Depends(get_db)):
    return _outline_response(ProjectService(db).get_outline(project_id))


@router.get("/{project_id}/generation-logs", response_model=List[GenerationLogResponse])
def list_generation_logs(
    project_id: str,
    kind: Optional[str] = Query(None, description="suggestion, section_content or outline_questions"),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Recorded model calls for the project, newest first."""
    ProjectService(db).get_project(project_id)
    return generation_log_service.get_by_project(db, project_id, kind=kind, limit=limit)
