"""Per-project single-writer locks.

Each project gets one non-blocking lock. A writer that finds the lock held
does not queue: it fails with ConcurrencyConflictError so the caller
reloads the current state and retries. Different projects never contend.

Locks exist only while some writer is using them, so ids that never name
a real project leave nothing behind.

While held, the project id is bound into the logging context.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from ..exceptions import ConcurrencyConflictError
from .logging_config import project_id_var


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class ProjectLockRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._guard = threading.Lock()

    def _checkout(self, project_id: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(project_id)
            if entry is None:
                entry = self._entries[project_id] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, project_id: str, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[project_id]

    def is_held(self, project_id: str) -> bool:
        with self._guard:
            entry = self._entries.get(project_id)
            return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, project_id: str) -> Iterator[None]:
        entry = self._checkout(project_id)
        try:
            if not entry.lock.acquire(blocking=False):
                raise ConcurrencyConflictError(
                    project_id, "Another write to this project is in progress; reload and retry"
                )
            token = project_id_var.set(project_id)
            try:
                yield
            finally:
                project_id_var.reset(token)
                entry.lock.release()
        finally:
            self._checkin(project_id, entry)


project_locks = ProjectLockRegistry()
