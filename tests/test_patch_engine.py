"""Tests for selection-scoped patching and the edit session state machine."""

import asyncio

import pytest

from reqforge.exceptions import (
    ConcurrencyConflictError,
    GenerationFailedError,
    OutOfRangeSelectionError,
    StaleSelectionError,
    ValidationError,
)
from reqforge.services.patch_engine import (
    PatchSession,
    PatchState,
    apply_patch,
    count_occurrences,
    request_patch,
)
from tests.conftest import FakeSuggestionAdapter, generation_failure


class TestCountOccurrences:

    def test_counts(self):
        assert count_occurrences("foo bar foo", "foo") == 2

    def test_non_overlapping(self):
        assert count_occurrences("aaaa", "aa") == 2

    def test_empty_text_counts_zero(self):
        assert count_occurrences("anything", "") == 0


class TestRequestPatch:

    def test_extracts_selection(self):
        request = request_patch(6, 11, "Hello world")
        assert request.selected_text == "world"

    def test_end_past_content(self):
        with pytest.raises(OutOfRangeSelectionError) as exc_info:
            request_patch(6, 12, "Hello world")
        assert exc_info.value.status_code == 422

    def test_start_after_end(self):
        with pytest.raises(OutOfRangeSelectionError):
            request_patch(5, 2, "Hello world")

    def test_empty_selection(self):
        with pytest.raises(ValidationError):
            request_patch(3, 3, "Hello world")


class TestApplyPatch:

    def test_applies_at_explicit_offset_and_warns(self):
        result = apply_patch("foo", "baz", 8, "foo bar foo")
        assert result.content == "foo bar baz"
        assert result.changed_span == (8, 11)
        assert result.occurrences == 2
        assert result.ambiguous_match.applied_at == 8
        assert result.warning_count == 1

    def test_single_occurrence_has_no_advisory(self):
        result = apply_patch("world", "Earth", 6, "Hello world")
        assert result.content == "Hello Earth"
        assert result.ambiguous_match is None
        assert result.warning_count == 0

    def test_changed_span_tracks_replacement_length(self):
        result = apply_patch("world", "wide world", 6, "Hello world")
        assert result.changed_span == (6, 16)

    def test_empty_replacement_deletes(self):
        result = apply_patch(" world", "", 5, "Hello world")
        assert result.content == "Hello"
        assert result.changed_span == (5, 5)

    def test_out_of_range(self):
        with pytest.raises(OutOfRangeSelectionError):
            apply_patch("world", "Earth", 7, "Hello world")

    def test_stale_selection(self):
        with pytest.raises(StaleSelectionError) as exc_info:
            apply_patch("world", "Earth", 0, "Hello world")
        assert isinstance(exc_info.value, ConcurrencyConflictError)
        assert exc_info.value.details["found"] == "Hello"

    def test_empty_selected_text(self):
        with pytest.raises(ValidationError):
            apply_patch("", "x", 0, "Hello")


class TestPatchSession:

    def test_full_cycle(self):
        session = PatchSession()
        session.select(6, 11, "Hello world")
        assert session.state == PatchState.SELECTED

        adapter = FakeSuggestionAdapter("Earth")
        suggestion = asyncio.run(session.resolve(adapter, "Replace with Earth"))
        assert suggestion.suggestion_text == "Earth"
        assert session.state == PatchState.SUGGESTION_READY
        assert adapter.calls == [("world", "Replace with Earth", "Hello world")]

        pending = session.take()
        assert (pending.selected_text, pending.replacement_text, pending.selection_start) == ("world", "Earth", 6)
        assert session.state == PatchState.IDLE

    def test_generation_failure_returns_to_idle(self):
        session = PatchSession()
        session.select(0, 5, "Hello world")
        with pytest.raises(GenerationFailedError):
            asyncio.run(session.resolve(FakeSuggestionAdapter(error=generation_failure()), "Shout"))
        assert session.state == PatchState.IDLE
        assert session.request is None

    def test_cancellation_returns_to_idle(self):
        class SlowAdapter:
            async def suggest(self, selected_text, instruction, full_content):
                await asyncio.sleep(10)

        session = PatchSession()
        session.select(0, 5, "Hello world")

        async def _cancel():
            task = asyncio.create_task(session.resolve(SlowAdapter(), "Shout"))
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(_cancel())
        assert session.state == PatchState.IDLE

    def test_resolve_requires_selection(self):
        with pytest.raises(ValidationError):
            asyncio.run(PatchSession().resolve(FakeSuggestionAdapter(), "Shout"))

    def test_blank_instruction(self):
        session = PatchSession()
        session.select(0, 5, "Hello world")
        with pytest.raises(ValidationError):
            asyncio.run(session.resolve(FakeSuggestionAdapter(), "   "))
        assert session.state == PatchState.SELECTED

    def test_take_before_ready(self):
        session = PatchSession()
        session.select(0, 5, "Hello world")
        with pytest.raises(ValidationError):
            session.take()

    def test_discard(self):
        session = PatchSession()
        session.select(0, 5, "Hello world")
        session.discard()
        assert session.state == PatchState.IDLE
