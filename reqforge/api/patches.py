"""Selection-scoped patch endpoints.

Suggesting and applying are separate calls. ``suggest`` never writes:
it returns the model's replacement for the selected span. ``apply``
splices a replacement at the explicit offset into the freshest content
and appends the result as a new version.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.patch import (
    AmbiguousMatchResponse,
    ApplyPatchRequest,
    ApplyPatchResponse,
    SuggestionResponse,
    SuggestRequest,
)
from ..services import VersionService
from ..services.generation import LiteLLMSuggestionAdapter
from .deps import get_suggestion_adapter
from .versions import version_response

router = APIRouter(prefix="/api/projects/{project_id}/patches", tags=["patches"])


@router.post("/suggest", response_model=SuggestionResponse)
async def suggest_patch(
    project_id: str,
    request: SuggestRequest,
    db: Session = Depends(get_db),
    adapter: LiteLLMSuggestionAdapter = Depends(get_suggestion_adapter),
):
    """Ask for a rewrite of ``[selection_start, selection_end)`` in the viewed version."""
    session, based_on = await VersionService(db).request_suggestion(
        project_id,
        request.selection_start,
        request.selection_end,
        request.instruction,
        adapter,
    )
    return SuggestionResponse(
        selected_text=session.request.selected_text,
        selection_start=session.request.selection_start,
        selection_end=session.request.selection_end,
        instruction=session.instruction,
        suggestion_text=session.suggestion.suggestion_text,
        explanation=session.suggestion.explanation,
        confidence=session.suggestion.confidence,
        based_on_version=based_on,
    )


@router.post("/apply", response_model=ApplyPatchResponse, status_code=201)
def apply_patch(project_id: str, request: ApplyPatchRequest, db: Session = Depends(get_db)):
    """Apply a replacement at the explicit offset and append the new version."""
    outcome = VersionService(db).apply_patch(
        project_id,
        request.selected_text,
        request.replacement_text,
        request.selection_start,
        instruction=request.instruction,
        expected_head=request.expected_head,
        author=request.author,
    )
    ambiguous = outcome.result.ambiguous_match
    return ApplyPatchResponse(
        version=version_response(outcome.version),
        occurrences=outcome.result.occurrences,
        ambiguous_match=AmbiguousMatchResponse(
            selected_text=ambiguous.selected_text,
            occurrences=ambiguous.occurrences,
            applied_at=ambiguous.applied_at,
        ) if ambiguous else None,
        warning_count=outcome.result.warning_count,
    )
