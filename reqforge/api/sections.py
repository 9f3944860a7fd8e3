"""Section authoring, completion and document endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.section import (
    AnswersResponse,
    AnswersUpdate,
    AssembledDocumentResponse,
    CompletionResponse,
    GeneratedContentResponse,
    SectionKeyResponse,
    SectionRecordResponse,
    SectionSave,
    SectionSaveResponse,
)
from ..schemas.version import ChainStateResponse, CommitRequest
from ..services import ProjectService, SectionService, VersionService
from ..services.assembler import Completion
from ..services.export import export_document, export_filename
from ..services.generation import LiteLLMSectionContentAdapter
from ..services.section_service import unanswered_questions
from .deps import get_section_content_adapter
from .versions import chain_state

router = APIRouter(prefix="/api/projects/{project_id}", tags=["sections"])


def _completion_response(c: Completion) -> CompletionResponse:
    return CompletionResponse(
        completed_count=c.completed_count,
        total_count=c.total_count,
        percentage=c.percentage,
        can_export=c.can_export,
    )


def _answers_response(section_id: str, subsection_id: str, qa_pairs) -> AnswersResponse:
    return AnswersResponse(
        section_id=section_id,
        subsection_id=subsection_id,
        qa_pairs=qa_pairs,
        complete=not unanswered_questions(qa_pairs),
    )


@router.get("/sections/{section_id}/{subsection_id}/answers", response_model=AnswersResponse)
def get_answers(project_id: str, section_id: str, subsection_id: str, db: Session = Depends(get_db)):
    qa_pairs = SectionService(db).get_qa_pairs(project_id, section_id, subsection_id)
    return _answers_response(section_id, subsection_id, qa_pairs)


@router.put("/sections/{section_id}/{subsection_id}/answers", response_model=AnswersResponse)
def save_answers(
    project_id: str,
    section_id: str,
    subsection_id: str,
    update: AnswersUpdate,
    db: Session = Depends(get_db),
):
    """Create or overwrite answers by question index."""
    qa_pairs = SectionService(db).save_answers(project_id, section_id, subsection_id, update.answers)
    return _answers_response(section_id, subsection_id, qa_pairs)


@router.post("/sections/{section_id}/{subsection_id}/generate", response_model=GeneratedContentResponse)
async def generate_section(
    project_id: str,
    section_id: str,
    subsection_id: str,
    db: Session = Depends(get_db),
    adapter: LiteLLMSectionContentAdapter = Depends(get_section_content_adapter),
):
    """Draft subsection prose from its answers. The draft is returned, not saved."""
    content = await SectionService(db).generate_section_content(
        project_id, section_id, subsection_id, adapter
    )
    return GeneratedContentResponse(section_id=section_id, subsection_id=subsection_id, content=content)


@router.put("/sections/{section_id}/{subsection_id}", response_model=SectionSaveResponse)
def save_section(
    project_id: str,
    section_id: str,
    subsection_id: str,
    section: SectionSave,
    db: Session = Depends(get_db),
):
    """Save (upsert) a subsection's content."""
    result = SectionService(db).upsert_section(
        project_id, section_id, subsection_id, section.content, section.status
    )
    return SectionSaveResponse(
        record=SectionRecordResponse.model_validate(result.record),
        saved_keys=[
            SectionKeyResponse(section_id=key.section_id, subsection_id=key.subsection_id)
            for key in sorted(result.saved_keys)
        ],
    )


@router.get("/sections", response_model=List[SectionRecordResponse])
def list_sections(project_id: str, db: Session = Depends(get_db)):
    """Saved subsection records in outline order."""
    return SectionService(db).list_sections(project_id)


@router.get("/status", response_model=CompletionResponse)
def get_status(project_id: str, db: Session = Depends(get_db)):
    return _completion_response(SectionService(db).completion(project_id))


@router.get("/document", response_model=AssembledDocumentResponse)
def get_document(project_id: str, db: Session = Depends(get_db)):
    """Assemble the document from approved sections. Nothing is stored."""
    service = SectionService(db)
    return AssembledDocumentResponse(
        content=service.assemble(project_id),
        completion=_completion_response(service.completion(project_id)),
    )


@router.post("/document/commit", response_model=ChainStateResponse, status_code=201)
def commit_document(project_id: str, request: CommitRequest, db: Session = Depends(get_db)):
    """Append the assembled document to the version chain."""
    chain = SectionService(db).commit_document(project_id, request.expected_head)
    return chain_state(chain)


@router.get("/export")
def export(
    project_id: str,
    version: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """Download the document as Markdown.

    Without ``version`` the freshly assembled document is exported;
    otherwise the committed version with that number.
    """
    project = ProjectService(db).get_project(project_id)
    if version is None:
        text = SectionService(db).assemble(project_id)
    else:
        text = VersionService(db).get_version(project_id, version).content

    filename = export_filename(project.title, version or 0)
    return Response(
        content=export_document(text),
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
