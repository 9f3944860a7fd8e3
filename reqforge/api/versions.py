"""Version chain endpoints: list, read, append, and select (undo/redo)."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.version import (
    ChainStateResponse,
    SelectVersionRequest,
    VersionCreate,
    VersionResponse,
    VersionSummary,
)
from ..services import VersionService
from ..services.version_chain import Snapshot, VersionChain

router = APIRouter(prefix="/api/projects/{project_id}/versions", tags=["versions"])


def _summary_fields(snapshot: Snapshot) -> dict:
    start, end = snapshot.changed_span if snapshot.changed_span else (None, None)
    return {
        "number": snapshot.number,
        "author": snapshot.author,
        "content_hash": snapshot.content_hash,
        "instruction": snapshot.instruction,
        "replacement_text": snapshot.replacement_text,
        "changed_start": start,
        "changed_end": end,
        "created_at": snapshot.created_at,
    }


def version_response(snapshot: Snapshot) -> VersionResponse:
    return VersionResponse(content=snapshot.content, **_summary_fields(snapshot))


def chain_state(chain: VersionChain) -> ChainStateResponse:
    return ChainStateResponse(
        head_version=chain.length,
        current_version=chain.current_pointer,
        version=version_response(chain.current),
    )


@router.get("", response_model=List[VersionSummary])
def list_versions(
    project_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """List version metadata, newest first."""
    snapshots = VersionService(db).list_versions(project_id, skip, limit)
    return [VersionSummary(**_summary_fields(s)) for s in snapshots]


@router.post("", response_model=ChainStateResponse, status_code=201)
def append_version(project_id: str, version: VersionCreate, db: Session = Depends(get_db)):
    """Append a full-text version (manual edit or seed) after the tail."""
    chain = VersionService(db).append_version(
        project_id,
        version.content,
        version.author,
        instruction=version.instruction,
        expected_head=version.expected_head,
    )
    return chain_state(chain)


# Fixed path before /{number} to avoid route shadowing
@router.get("/current", response_model=ChainStateResponse)
def get_current_version(project_id: str, db: Session = Depends(get_db)):
    """The version under the view pointer."""
    return chain_state(VersionService(db).get_current(project_id))


@router.post("/select", response_model=ChainStateResponse)
def select_version(project_id: str, request: SelectVersionRequest, db: Session = Depends(get_db)):
    """Move the view pointer. No version is created or removed."""
    return chain_state(VersionService(db).select_version(project_id, request.number))


@router.get("/{number}", response_model=VersionResponse)
def get_version(project_id: str, number: int, db: Session = Depends(get_db)):
    return version_response(VersionService(db).get_version(project_id, number))
