"""Version repository for database operations."""

from typing import List

from ..models import Version


class VersionRepository:
    """Insert-only access to the versions table."""

    def __init__(self, db):
        self.db = db

    def create(self, project_id: str, snapshot) -> Version:
        """Insert one snapshot row. Number uniqueness is enforced by the table."""
        start, end = snapshot.changed_span if snapshot.changed_span else (None, None)
        db_version = Version(
            project_id=project_id,
            number=snapshot.number,
            content=snapshot.content,
            content_hash=snapshot.content_hash,
            author=snapshot.author.value,
            instruction=snapshot.instruction,
            replacement_text=snapshot.replacement_text,
            changed_start=start,
            changed_end=end,
        )
        self.db.add(db_version)
        self.db.flush()
        return db_version

    def get_all(self, project_id: str) -> List[Version]:
        return self.db.query(Version).filter(
            Version.project_id == project_id
        ).order_by(Version.number).all()

    def get_page(self, project_id: str, skip: int = 0, limit: int = 50) -> List[Version]:
        """Newest first."""
        return self.db.query(Version).filter(
            Version.project_id == project_id
        ).order_by(Version.number.desc()).offset(skip).limit(limit).all()
