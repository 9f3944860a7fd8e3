"""Patch engine - selection-scoped replacement over explicit character spans.

The pure functions here never look anything up by text alone: a patch is
always applied at the caller's explicit offset. Text matching is used only
to (a) count occurrences so the caller can be warned when the selection is
ambiguous, and (b) confirm that the span at the offset still holds the
selected text in the freshest content.

``PatchSession`` is the per-edit state machine::

    Idle -> Selected -> AwaitingSuggestion -> SuggestionReady -> Idle
                              |
                              +-> Idle  (GenerationFailed or cancellation)

Discarding returns to Idle from any state. Nothing in this module touches
the version chain; applying a ready patch hands a ``PendingPatch`` to the
caller, who appends it.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from ..exceptions import (
    GenerationFailedError,
    OutOfRangeSelectionError,
    StaleSelectionError,
    ValidationError,
)
from .generation import Suggestion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatchRequest:
    selected_text: str
    selection_start: int
    selection_end: int


@dataclass(frozen=True)
class AmbiguousMatch:
    """Advisory, never an error: the selected text occurs more than once."""
    selected_text: str
    occurrences: int
    applied_at: int


@dataclass(frozen=True)
class PatchResult:
    content: str
    changed_span: tuple[int, int]
    occurrences: int
    ambiguous_match: Optional[AmbiguousMatch] = None

    @property
    def warning_count(self) -> int:
        return 1 if self.ambiguous_match else 0


def count_occurrences(content: str, selected_text: str) -> int:
    """Non-overlapping occurrences of *selected_text* in *content*. Empty text counts 0."""
    if not selected_text:
        return 0
    return content.count(selected_text)


def request_patch(selection_start: int, selection_end: int, content_snapshot: str) -> PatchRequest:
    """Extract ``content_snapshot[selection_start:selection_end]``.

    Offsets must satisfy 0 <= start < end <= len(content); an empty
    selection is rejected because there is nothing to rewrite.
    """
    if selection_start < 0 or selection_end > len(content_snapshot) or selection_start > selection_end:
        raise OutOfRangeSelectionError(selection_start, selection_end, len(content_snapshot))
    if selection_start == selection_end:
        raise ValidationError("Selection is empty", field="selection_end")
    return PatchRequest(
        selected_text=content_snapshot[selection_start:selection_end],
        selection_start=selection_start,
        selection_end=selection_end,
    )


def apply_patch(
    selected_text: str,
    replacement_text: str,
    selection_start: int,
    current_full_content: str,
) -> PatchResult:
    """Splice *replacement_text* over ``[selection_start, selection_start + len(selected_text))``.

    Occurrences are counted against *current_full_content*, which must be
    the freshest content rather than the snapshot the suggestion was made
    from. More than one occurrence yields an ``AmbiguousMatch`` advisory;
    the splice still happens at the explicit offset.

    Raises:
        ValidationError: *selected_text* is empty.
        OutOfRangeSelectionError: the span is not inside the content.
        StaleSelectionError: the span no longer holds *selected_text*.
    """
    if not selected_text:
        raise ValidationError("Selected text is empty", field="selected_text")

    occurrences = count_occurrences(current_full_content, selected_text)

    selection_end = selection_start + len(selected_text)
    if selection_start < 0 or selection_end > len(current_full_content):
        raise OutOfRangeSelectionError(selection_start, selection_end, len(current_full_content))

    found = current_full_content[selection_start:selection_end]
    if found != selected_text:
        raise StaleSelectionError(selection_start, expected=selected_text, found=found)

    ambiguous = None
    if occurrences > 1:
        ambiguous = AmbiguousMatch(
            selected_text=selected_text,
            occurrences=occurrences,
            applied_at=selection_start,
        )

    content = current_full_content[:selection_start] + replacement_text + current_full_content[selection_end:]
    return PatchResult(
        content=content,
        changed_span=(selection_start, selection_start + len(replacement_text)),
        occurrences=occurrences,
        ambiguous_match=ambiguous,
    )


class SuggestionAdapter(Protocol):
    async def suggest(self, selected_text: str, instruction: str, full_content: str) -> Suggestion:
        ...


class PatchState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    AWAITING_SUGGESTION = "awaiting_suggestion"
    SUGGESTION_READY = "suggestion_ready"


@dataclass(frozen=True)
class PendingPatch:
    selected_text: str
    replacement_text: str
    selection_start: int
    instruction: str


class PatchSession:
    """One selection-scoped edit, from selection to apply or discard."""

    def __init__(self) -> None:
        self.state = PatchState.IDLE
        self.request: Optional[PatchRequest] = None
        self.snapshot: Optional[str] = None
        self.instruction: Optional[str] = None
        self.suggestion: Optional[Suggestion] = None

    def _require(self, *states: PatchState) -> None:
        if self.state not in states:
            raise ValidationError(
                f"Patch session is {self.state.value}; expected {' or '.join(s.value for s in states)}",
                field="state",
            )

    def _reset(self) -> None:
        self.state = PatchState.IDLE
        self.request = None
        self.snapshot = None
        self.instruction = None
        self.suggestion = None

    def select(self, selection_start: int, selection_end: int, content_snapshot: str) -> PatchRequest:
        self._require(PatchState.IDLE, PatchState.SELECTED, PatchState.SUGGESTION_READY)
        request = request_patch(selection_start, selection_end, content_snapshot)
        self._reset()
        self.request = request
        self.snapshot = content_snapshot
        self.state = PatchState.SELECTED
        return request

    async def resolve(self, adapter: SuggestionAdapter, instruction: str) -> Suggestion:
        """Ask *adapter* for a replacement. The only suspension point of an edit.

        On GenerationFailedError or cancellation the session drops back to
        Idle and the error propagates; nothing has been written anywhere.
        """
        self._require(PatchState.SELECTED)
        if not instruction or not instruction.strip():
            raise ValidationError("Instruction is required", field="instruction")

        self.state = PatchState.AWAITING_SUGGESTION
        self.instruction = instruction.strip()
        try:
            suggestion = await adapter.suggest(self.request.selected_text, self.instruction, self.snapshot)
        except GenerationFailedError:
            logger.warning("Suggestion failed; edit discarded")
            self._reset()
            raise
        except asyncio.CancelledError:
            logger.info("Suggestion cancelled; edit discarded")
            self._reset()
            raise

        self.suggestion = suggestion
        self.state = PatchState.SUGGESTION_READY
        return suggestion

    def take(self) -> PendingPatch:
        """Hand the ready suggestion over for applying and return to Idle."""
        self._require(PatchState.SUGGESTION_READY)
        pending = PendingPatch(
            selected_text=self.request.selected_text,
            replacement_text=self.suggestion.suggestion_text,
            selection_start=self.request.selection_start,
            instruction=self.instruction,
        )
        self._reset()
        return pending

    def discard(self) -> None:
        self._reset()
