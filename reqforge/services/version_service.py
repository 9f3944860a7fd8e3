"""Version service - persistence and concurrency around the version chain.

The pure ``VersionChain`` and ``patch_engine`` functions decide what a new
version looks like; this service decides whether it may be written.

Writes are serialized per project two ways:

1. ``project_locks`` rejects a second in-process writer immediately.
2. ``ProjectRepository.advance_head`` is a compare-and-set on the stored
   chain length, and the versions table refuses duplicate numbers, so a
   writer in another process loses cleanly too.

Either way the loser gets ``ConcurrencyConflictError`` and nothing is
written. Generation never runs under the lock: the suggestion is awaited
first and applied against freshly re-read content afterwards.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.project_locks import ProjectLockRegistry, project_locks
from ..exceptions import ChainIntegrityError, ConcurrencyConflictError, ValidationError
from ..models import Version
from ..repositories.project_repository import ProjectRepository
from ..repositories.version_repository import VersionRepository
from ..schemas.version import Author
from .patch_engine import PatchResult, PatchSession, SuggestionAdapter, apply_patch
from .version_chain import Snapshot, VersionChain

logger = logging.getLogger(__name__)


def snapshot_from_row(row: Version) -> Snapshot:
    span = None
    if row.changed_start is not None and row.changed_end is not None:
        span = (row.changed_start, row.changed_end)
    return Snapshot(
        number=row.number,
        content=row.content,
        author=Author(row.author),
        instruction=row.instruction,
        replacement_text=row.replacement_text,
        changed_span=span,
        created_at=row.created_at,
    )


@dataclass(frozen=True)
class PatchOutcome:
    chain: VersionChain
    result: PatchResult

    @property
    def version(self) -> Snapshot:
        return self.chain.current


class VersionService:
    """Version chain reads, appends, selection and patching for one session."""

    def __init__(self, db: Session, locks: ProjectLockRegistry = project_locks):
        self.db = db
        self.locks = locks
        self.project_repo = ProjectRepository(db)
        self.version_repo = VersionRepository(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_chain(self, project_id: str) -> VersionChain:
        """Rebuild the chain from storage.

        Raises:
            ProjectNotFoundError: unknown project.
            ChainIntegrityError: stored rows violate the chain invariants.
        """
        project = self.project_repo.get_by_id(project_id)
        rows = self.version_repo.get_all(project_id)
        try:
            for row in rows:
                snapshot = snapshot_from_row(row)
                if snapshot.content_hash != row.content_hash:
                    raise ChainIntegrityError(
                        project_id, f"content hash mismatch on version {row.number}"
                    )
            return VersionChain.restore(
                project_id,
                (snapshot_from_row(row) for row in rows),
                project.current_version,
                head=project.head_version,
            )
        except ChainIntegrityError as e:
            logger.critical("Version chain integrity violated: %s", e.message, extra={"project": project_id})
            raise

    def get_current(self, project_id: str) -> VersionChain:
        chain = self.load_chain(project_id)
        chain.current  # raises VersionNotFoundError on an empty chain
        return chain

    def get_version(self, project_id: str, number: int) -> Snapshot:
        return self.load_chain(project_id).get(number)

    def list_versions(self, project_id: str, skip: int = 0, limit: int = 50) -> List[Snapshot]:
        """Version metadata, newest first."""
        self.project_repo.get_by_id(project_id)
        return [snapshot_from_row(row) for row in self.version_repo.get_page(project_id, skip, limit)]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _check_expected_head(self, chain: VersionChain, expected_head: Optional[int]) -> None:
        if expected_head is not None and expected_head != chain.length:
            raise ConcurrencyConflictError(
                chain.project_id,
                f"Expected head version {expected_head}, but the chain is at {chain.length}; reload and retry",
                expected_head=expected_head,
                actual_head=chain.length,
            )

    def _persist_append(self, chain: VersionChain, new_chain: VersionChain) -> VersionChain:
        """Write the tail snapshot of *new_chain*. Caller holds the project lock."""
        project_id = chain.project_id
        if not self.project_repo.advance_head(project_id, chain.length):
            self.db.rollback()
            raise ConcurrencyConflictError(
                project_id, "Version chain advanced concurrently; reload and retry"
            )
        try:
            row = self.version_repo.create(project_id, new_chain.head)
            self.db.commit()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            logger.warning("Duplicate version number rejected: %s", e.orig)
            raise ConcurrencyConflictError(
                project_id, "Version number already taken by a concurrent writer; reload and retry"
            ) from e

        stored = snapshot_from_row(row)
        logger.info(
            "Appended version",
            extra={"version": stored.number, "author": stored.author.value, "hash": stored.content_hash[:12]},
        )
        return VersionChain(
            project_id=project_id,
            versions=new_chain.versions[:-1] + (stored,),
            current_pointer=stored.number,
        )

    def append_version(
        self,
        project_id: str,
        content: str,
        author: Author,
        instruction: Optional[str] = None,
        expected_head: Optional[int] = None,
        replacement_text: Optional[str] = None,
        changed_span: Optional[tuple[int, int]] = None,
    ) -> VersionChain:
        """Append *content* as version n+1 and point the view at it."""
        with self.locks.hold(project_id):
            chain = self.load_chain(project_id)
            self._check_expected_head(chain, expected_head)
            new_chain = chain.append(
                content,
                author,
                instruction=instruction,
                replacement_text=replacement_text,
                changed_span=changed_span,
            )
            return self._persist_append(chain, new_chain)

    def select_version(self, project_id: str, number: int) -> VersionChain:
        """Move the view pointer to *number*. Never adds or removes versions."""
        with self.locks.hold(project_id):
            chain = self.load_chain(project_id).select(number)
            self.project_repo.set_current(project_id, number)
            self.db.commit()
        logger.info("Selected version", extra={"version": number})
        return chain

    # ------------------------------------------------------------------
    # Patching
    # ------------------------------------------------------------------

    async def request_suggestion(
        self,
        project_id: str,
        selection_start: int,
        selection_end: int,
        instruction: str,
        adapter: SuggestionAdapter,
    ) -> tuple[PatchSession, int]:
        """Select a span of the viewed version and resolve a suggestion for it.

        Returns the ready session and the version number the selection was
        taken from. A failed or cancelled generation leaves the chain as it was.
        """
        snapshot = (await asyncio.to_thread(self.get_current, project_id)).current
        session = PatchSession()
        session.select(selection_start, selection_end, snapshot.content)
        await session.resolve(adapter, instruction)
        return session, snapshot.number

    def apply_patch(
        self,
        project_id: str,
        selected_text: str,
        replacement_text: str,
        selection_start: int,
        instruction: Optional[str] = None,
        expected_head: Optional[int] = None,
        author: Author = Author.ASSISTANT,
    ) -> PatchOutcome:
        """Splice a replacement into the viewed version and append the result.

        The content is re-read under the lock, so occurrences and the span
        check always run against the freshest state.
        """
        with self.locks.hold(project_id):
            chain = self.load_chain(project_id)
            if not chain.length:
                raise ValidationError("Commit a first version before patching", field="selection_start")
            self._check_expected_head(chain, expected_head)

            result = apply_patch(selected_text, replacement_text, selection_start, chain.content)
            if result.ambiguous_match:
                logger.warning(
                    "Selected text is ambiguous; applied at explicit offset",
                    extra={
                        "occurrences": result.occurrences,
                        "applied_at": result.ambiguous_match.applied_at,
                    },
                )

            new_chain = chain.append(
                result.content,
                author,
                instruction=instruction,
                replacement_text=replacement_text,
                changed_span=result.changed_span,
            )
            stored = self._persist_append(chain, new_chain)
        return PatchOutcome(chain=stored, result=result)

    def apply_session(
        self,
        project_id: str,
        session: PatchSession,
        expected_head: Optional[int] = None,
    ) -> PatchOutcome:
        pending = session.take()
        return self.apply_patch(
            project_id,
            pending.selected_text,
            pending.replacement_text,
            pending.selection_start,
            instruction=pending.instruction,
            expected_head=expected_head,
        )
