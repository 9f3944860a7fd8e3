"""Version chain - append-only sequence of immutable document snapshots.

``VersionChain`` is a value: every mutating operation returns a new chain
and leaves the receiver untouched. The persistence layer rebuilds a chain
from stored rows with ``VersionChain.restore``, which refuses anything that
is not a contiguous 1..n sequence.

History is linear. ``select`` only moves the view pointer; ``append``
always writes number ``n + 1`` after the tail, wherever the pointer is.
"""

import hashlib
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional

from ..exceptions import ChainIntegrityError, ValidationError, VersionNotFoundError
from ..schemas.version import Author


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()


@dataclass(frozen=True)
class Snapshot:
    number: int
    content: str
    author: Author
    instruction: Optional[str] = None
    replacement_text: Optional[str] = None
    changed_span: Optional[tuple[int, int]] = None
    created_at: Optional[datetime] = None

    @property
    def content_hash(self) -> str:
        return content_hash(self.content)


@dataclass(frozen=True)
class VersionChain:
    project_id: str = ""
    versions: tuple[Snapshot, ...] = field(default_factory=tuple)
    current_pointer: int = 0

    @classmethod
    def restore(
        cls,
        project_id: str,
        snapshots: Iterable[Snapshot],
        current_pointer: int,
        head: Optional[int] = None,
    ) -> "VersionChain":
        """Rebuild a chain from storage, verifying its invariants.

        Raises ChainIntegrityError on gaps, duplicates, a head that
        disagrees with the stored rows, or a pointer outside 1..n.
        """
        ordered = tuple(sorted(snapshots, key=lambda s: s.number))
        for expected, snap in enumerate(ordered, start=1):
            if snap.number != expected:
                raise ChainIntegrityError(
                    project_id, f"expected version {expected}, found {snap.number}"
                )
        if head is not None and head != len(ordered):
            raise ChainIntegrityError(
                project_id, f"head says {head} versions, {len(ordered)} stored"
            )
        if ordered and not 1 <= current_pointer <= len(ordered):
            raise ChainIntegrityError(
                project_id, f"view pointer {current_pointer} outside 1..{len(ordered)}"
            )
        if not ordered and current_pointer != 0:
            raise ChainIntegrityError(project_id, "view pointer set on an empty chain")
        return cls(project_id=project_id, versions=ordered, current_pointer=current_pointer)

    @property
    def length(self) -> int:
        return len(self.versions)

    @property
    def head(self) -> Optional[Snapshot]:
        return self.versions[-1] if self.versions else None

    def get(self, number: int) -> Snapshot:
        if not 1 <= number <= self.length:
            raise VersionNotFoundError(self.project_id, number)
        return self.versions[number - 1]

    @property
    def current(self) -> Snapshot:
        """Snapshot under the view pointer."""
        if not self.versions:
            raise VersionNotFoundError(self.project_id, 0)
        return self.versions[self.current_pointer - 1]

    @property
    def content(self) -> str:
        return self.current.content

    def append(
        self,
        content: str,
        author: Author,
        instruction: Optional[str] = None,
        replacement_text: Optional[str] = None,
        changed_span: Optional[tuple[int, int]] = None,
    ) -> "VersionChain":
        """Return a chain with version n+1 appended and the pointer on it."""
        if changed_span is not None:
            start, end = changed_span
            if not 0 <= start <= end <= len(content):
                raise ValidationError(
                    f"Changed span {changed_span} is outside the new content",
                    field="changed_span",
                )
        snapshot = Snapshot(
            number=self.length + 1,
            content=content,
            author=Author(author),
            instruction=instruction,
            replacement_text=replacement_text,
            changed_span=changed_span,
        )
        return replace(self, versions=self.versions + (snapshot,), current_pointer=snapshot.number)

    def select(self, number: int) -> "VersionChain":
        """Return a chain viewing version *number*. No version is added or removed."""
        self.get(number)
        return replace(self, current_pointer=number)
