"""Section service - answers, approved section content, completion and assembly.

Covers the authoring phase: answers are collected per leaf subsection,
handed to the Section Content Generator Adapter, and the content the user
approves is upserted into the Section Content Store. The Document
Assembler then renders the store in outline order, and committing the
assembly seeds (or extends) the project's version chain.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.project_locks import ProjectLockRegistry, project_locks
from ..exceptions import ValidationError
from ..models import SectionRecord
from ..repositories.answer_repository import AnswerRepository
from ..repositories.section_repository import SectionRepository
from ..schemas.section import QAPair, SectionStatus
from ..schemas.version import Author
from .assembler import Completion, assemble, completion
from .outline_registry import OutlineLeaf, SectionKey
from .project_service import ProjectService
from .version_chain import VersionChain
from .version_service import VersionService

logger = logging.getLogger(__name__)

ASSEMBLY_INSTRUCTION = "Assembled from approved sections"


class SectionContentAdapter(Protocol):
    async def generate(self, section_title: str, subsection_title: str, qa_pairs: Sequence[QAPair]) -> str:
        ...


@dataclass(frozen=True)
class SectionSaveResult:
    record: SectionRecord
    saved_keys: frozenset


def unanswered_questions(qa_pairs: Sequence[QAPair]) -> List[int]:
    """Indexes of questions whose answer is blank."""
    return [i for i, qa in enumerate(qa_pairs) if not qa.answer.strip()]


class SectionService:
    """Deep module for the authoring phase of a project."""

    def __init__(self, db: Session, locks: ProjectLockRegistry = project_locks):
        self.db = db
        self.locks = locks
        self.projects = ProjectService(db, locks)
        self.answer_repo = AnswerRepository(db)
        self.section_repo = SectionRepository(db)

    def _leaf(self, project_id: str, section_id: str, subsection_id: str) -> OutlineLeaf:
        return self.projects.get_outline(project_id).require_leaf(section_id, subsection_id)

    # ------------------------------------------------------------------
    # Answer Store
    # ------------------------------------------------------------------

    def get_qa_pairs(self, project_id: str, section_id: str, subsection_id: str) -> List[QAPair]:
        """One pair per outline question, in question order. Missing answers are ''."""
        leaf = self._leaf(project_id, section_id, subsection_id)
        stored = {
            a.question_index: a.answer
            for a in self.answer_repo.get_for_subsection(project_id, section_id, subsection_id)
        }
        return [
            QAPair(question=question, answer=stored.get(i, ""))
            for i, question in enumerate(leaf.questions)
        ]

    def save_answers(
        self,
        project_id: str,
        section_id: str,
        subsection_id: str,
        answers: Dict[int, str],
    ) -> List[QAPair]:
        """Create or overwrite answers by question index."""
        leaf = self._leaf(project_id, section_id, subsection_id)
        bad = sorted(i for i in answers if not 0 <= i < len(leaf.questions))
        if bad:
            raise ValidationError(
                f"Question index out of range for {subsection_id}: {bad}",
                field="answers",
                question_count=len(leaf.questions),
            )

        with self.locks.hold(project_id):
            self.answer_repo.upsert_many(
                project_id, section_id, subsection_id, list(leaf.questions), answers
            )
            self.db.commit()
        return self.get_qa_pairs(project_id, section_id, subsection_id)

    async def generate_section_content(
        self,
        project_id: str,
        section_id: str,
        subsection_id: str,
        adapter: SectionContentAdapter,
    ) -> str:
        """Draft prose for a subsection from its answers. Nothing is saved.

        Raises:
            ValidationError: some required question is unanswered.
            GenerationFailedError: the adapter failed; stores are untouched.
        """
        leaf, qa_pairs = await asyncio.to_thread(self._answered_leaf, project_id, section_id, subsection_id)
        return await adapter.generate(leaf.section_title, leaf.subsection_title, qa_pairs)

    def _answered_leaf(self, project_id: str, section_id: str, subsection_id: str) -> tuple[OutlineLeaf, List[QAPair]]:
        leaf = self._leaf(project_id, section_id, subsection_id)
        qa_pairs = self.get_qa_pairs(project_id, section_id, subsection_id)
        missing = unanswered_questions(qa_pairs)
        if missing:
            raise ValidationError(
                f"Answer all questions of {subsection_id} before generating content",
                field="answers",
                unanswered=missing,
            )
        return leaf, qa_pairs

    # ------------------------------------------------------------------
    # Section Content Store
    # ------------------------------------------------------------------

    def upsert_section(
        self,
        project_id: str,
        section_id: str,
        subsection_id: str,
        content: str,
        status: SectionStatus = SectionStatus.APPROVED,
    ) -> SectionSaveResult:
        """Overwrite-or-insert the record for (section_id, subsection_id).

        Returns the record and the set of keys saved so far, which only
        ever grows.
        """
        self._leaf(project_id, section_id, subsection_id)
        if not content or not content.strip():
            raise ValidationError("Section content cannot be empty", field="content")

        with self.locks.hold(project_id):
            record = self.section_repo.upsert(
                project_id, section_id, subsection_id, content, SectionStatus(status).value
            )
            self.db.commit()
            keys = self.saved_keys(project_id)

        logger.info(
            "Saved section",
            extra={"section": section_id, "subsection": subsection_id, "status": record.status},
        )
        return SectionSaveResult(record=record, saved_keys=frozenset(keys))

    def saved_keys(self, project_id: str) -> set:
        return {
            SectionKey(r.section_id, r.subsection_id)
            for r in self.section_repo.get_all(project_id)
        }

    def list_sections(self, project_id: str) -> List[SectionRecord]:
        """Saved records in outline order."""
        outline = self.projects.get_outline(project_id)
        by_key = {
            SectionKey(r.section_id, r.subsection_id): r
            for r in self.section_repo.get_all(project_id)
        }
        return [by_key[key] for key in outline.leaf_keys() if key in by_key]

    # ------------------------------------------------------------------
    # Completion and assembly
    # ------------------------------------------------------------------

    def completion(self, project_id: str) -> Completion:
        outline = self.projects.get_outline(project_id)
        return completion(outline, self.saved_keys(project_id))

    def assemble(self, project_id: str) -> str:
        """Current full text assembled from approved records, in outline order."""
        project = self.projects.get_project(project_id)
        outline = self.projects.get_outline(project_id)
        records = {
            SectionKey(r.section_id, r.subsection_id): r
            for r in self.section_repo.get_all(project_id)
        }
        return assemble(
            outline,
            records,
            title=settings.document_title,
            project_title=project.title,
            project_description=project.description,
            pending_placeholder=settings.pending_placeholder,
        )

    def commit_document(self, project_id: str, expected_head: Optional[int] = None) -> VersionChain:
        """Append the assembled document to the version chain.

        The first commit creates version 1. Later commits append after the
        current tail like any other edit.
        """
        content = self.assemble(project_id)
        return VersionService(self.db, self.locks).append_version(
            project_id,
            content,
            Author.ASSISTANT,
            instruction=ASSEMBLY_INSTRUCTION,
            expected_head=expected_head,
        )
