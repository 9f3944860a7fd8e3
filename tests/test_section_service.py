"""Tests for ProjectService outlines and SectionService authoring."""

import asyncio

import pytest

from reqforge.core.project_locks import project_locks
from reqforge.exceptions import (
    ConcurrencyConflictError,
    GenerationFailedError,
    OutlineNotFoundError,
    ValidationError,
)
from reqforge.schemas.outline import OutlineTree
from reqforge.schemas.project import ProjectCreate
from reqforge.schemas.section import SectionStatus
from reqforge.services import ProjectService, SectionService, VersionService
from reqforge.services.outline_registry import SectionKey
from tests.conftest import FakeOutlineAdapter, FakeSectionContentAdapter, generation_failure, make_outline


@pytest.fixture()
def project_id(db):
    return ProjectService(db).create_project(
        ProjectCreate(title="Inventory", description="Tracks stock levels.")
    ).id


@pytest.fixture()
def outlined(db, project_id):
    ProjectService(db).register_outline(project_id, make_outline(questions=2))
    return project_id


class TestOutlineRegistration:

    def test_register_and_reload(self, db, project_id):
        ProjectService(db).register_outline(project_id, make_outline())
        outline = ProjectService(db).get_outline(project_id)
        assert outline.leaf_count() == 4
        assert outline.require_leaf("2", "2.1").subsection_title == "Subsection 2.1"

    def test_outline_is_immutable(self, db, outlined):
        with pytest.raises(ValidationError):
            ProjectService(db).register_outline(outlined, make_outline(sections=1))

    def test_invalid_outline_stores_nothing(self, db, project_id):
        bad = make_outline()
        bad.sections[0].subsections[0].questions = []
        with pytest.raises(ValidationError):
            ProjectService(db).register_outline(project_id, bad)
        assert not ProjectService(db).has_outline(project_id)

    def test_missing_outline(self, db, project_id):
        with pytest.raises(OutlineNotFoundError):
            ProjectService(db).get_outline(project_id)

    def test_empty_outline_can_be_registered(self, db, project_id):
        ProjectService(db).register_outline(project_id, OutlineTree(sections=[]))
        assert ProjectService(db).get_outline(project_id).leaf_count() == 0
        assert SectionService(db).completion(project_id).percentage == 0

    def test_default_outline(self, db, project_id):
        outline = ProjectService(db).register_default_outline(project_id)
        assert outline.require_leaf("1", "1.1").subsection_title == "Purpose"

    def test_generated_outline(self, db, project_id):
        adapter = FakeOutlineAdapter()
        outline = asyncio.run(ProjectService(db).generate_outline(project_id, adapter))
        assert outline.leaf_count() == 4
        assert adapter.calls == ["Tracks stock levels."]

    def test_generated_outline_failure(self, db, project_id):
        adapter = FakeOutlineAdapter(error=generation_failure("outline_questions"))
        with pytest.raises(GenerationFailedError):
            asyncio.run(ProjectService(db).generate_outline(project_id, adapter))
        assert not ProjectService(db).has_outline(project_id)

    def test_generated_outline_needs_description(self, db):
        pid = ProjectService(db).create_project(ProjectCreate(title="Bare")).id
        with pytest.raises(ValidationError):
            asyncio.run(ProjectService(db).generate_outline(pid, FakeOutlineAdapter()))


class TestAnswers:

    def test_unanswered_questions_are_blank(self, db, outlined):
        pairs = SectionService(db).get_qa_pairs(outlined, "1", "1.1")
        assert [p.answer for p in pairs] == ["", ""]
        assert pairs[0].question == "Question 1 for 1.1?"

    def test_save_and_overwrite(self, db, outlined):
        service = SectionService(db)
        service.save_answers(outlined, "1", "1.1", {0: "first"})
        pairs = service.save_answers(outlined, "1", "1.1", {0: "changed", 1: "second"})
        assert [p.answer for p in pairs] == ["changed", "second"]

    def test_index_out_of_range(self, db, outlined):
        with pytest.raises(ValidationError):
            SectionService(db).save_answers(outlined, "1", "1.1", {5: "nope"})

    def test_unknown_subsection(self, db, outlined):
        with pytest.raises(ValidationError):
            SectionService(db).save_answers(outlined, "1", "7.7", {0: "nope"})


class TestGenerateSectionContent:

    def test_generates_from_answers(self, db, outlined):
        service = SectionService(db)
        service.save_answers(outlined, "1", "1.2", {0: "Warehouse staff", 1: "Barcode scanners"})
        adapter = FakeSectionContentAdapter("Staff scan barcodes.")
        content = asyncio.run(service.generate_section_content(outlined, "1", "1.2", adapter))

        assert content == "Staff scan barcodes."
        section_title, subsection_title, qa_pairs = adapter.calls[0]
        assert (section_title, subsection_title) == ("Section 1", "Subsection 1.2")
        assert qa_pairs[1].answer == "Barcode scanners"
        # Nothing is saved until the user approves it
        assert service.saved_keys(outlined) == set()

    def test_requires_every_answer(self, db, outlined):
        service = SectionService(db)
        service.save_answers(outlined, "1", "1.1", {0: "only one"})
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(service.generate_section_content(outlined, "1", "1.1", FakeSectionContentAdapter()))
        assert exc_info.value.details["unanswered"] == [1]

    def test_failure_leaves_store_untouched(self, db, outlined):
        service = SectionService(db)
        service.save_answers(outlined, "1", "1.1", {0: "a", 1: "b"})
        adapter = FakeSectionContentAdapter(error=generation_failure("section_content"))
        with pytest.raises(GenerationFailedError):
            asyncio.run(service.generate_section_content(outlined, "1", "1.1", adapter))
        assert service.saved_keys(outlined) == set()


class TestSectionStore:

    def test_upsert_overwrites(self, db, outlined):
        service = SectionService(db)
        service.upsert_section(outlined, "1", "1.1", "First draft")
        result = service.upsert_section(outlined, "1", "1.1", "Final text")
        assert result.record.content == "Final text"
        assert result.saved_keys == {SectionKey("1", "1.1")}
        assert len(service.list_sections(outlined)) == 1

    def test_saved_keys_grow(self, db, outlined):
        service = SectionService(db)
        service.upsert_section(outlined, "2", "2.1", "B")
        result = service.upsert_section(outlined, "1", "1.1", "A")
        assert result.saved_keys == {SectionKey("1", "1.1"), SectionKey("2", "2.1")}

    def test_list_in_outline_order(self, db, outlined):
        service = SectionService(db)
        service.upsert_section(outlined, "2", "2.2", "late")
        service.upsert_section(outlined, "1", "1.1", "early")
        assert [r.subsection_id for r in service.list_sections(outlined)] == ["1.1", "2.2"]

    def test_blank_content_rejected(self, db, outlined):
        with pytest.raises(ValidationError):
            SectionService(db).upsert_section(outlined, "1", "1.1", "   ")

    def test_unknown_key_rejected(self, db, outlined):
        with pytest.raises(ValidationError):
            SectionService(db).upsert_section(outlined, "9", "9.1", "text")

    def test_locked_project_rejects_write(self, db, outlined):
        with project_locks.hold(outlined):
            with pytest.raises(ConcurrencyConflictError):
                SectionService(db).upsert_section(outlined, "1", "1.1", "text")


class TestCompletionAndAssembly:

    def test_completion_counts_saved_leaves(self, db, outlined):
        service = SectionService(db)
        for sub in ("1.1", "1.2"):
            service.upsert_section(outlined, "1", sub, f"Text {sub}")
        service.upsert_section(outlined, "2", "2.1", "Draft", SectionStatus.DRAFT)
        c = service.completion(outlined)
        assert (c.completed_count, c.total_count, c.percentage) == (3, 4, 75)

    def test_assemble_uses_project_metadata(self, db, outlined):
        service = SectionService(db)
        service.upsert_section(outlined, "1", "1.1", "Approved text")
        text = service.assemble(outlined)
        assert text.startswith("Software Requirements Specification\nProject: Inventory\n")
        assert "Tracks stock levels." in text
        assert "Approved text" in text
        assert text == service.assemble(outlined)

    def test_commit_seeds_and_extends_chain(self, db, outlined):
        service = SectionService(db)
        first = service.commit_document(outlined)
        assert first.length == 1
        assert first.current.author.value == "assistant"

        service.upsert_section(outlined, "1", "1.1", "New content")
        second = service.commit_document(outlined, expected_head=1)
        assert second.length == 2
        assert "New content" in VersionService(db).get_version(outlined, 2).content

    def test_commit_with_stale_head(self, db, outlined):
        service = SectionService(db)
        service.commit_document(outlined)
        with pytest.raises(ConcurrencyConflictError):
            service.commit_document(outlined, expected_head=0)
