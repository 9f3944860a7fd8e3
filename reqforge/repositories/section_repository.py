"""Section record repository (Section Content Store)."""

from typing import List, Optional

from ..models import SectionRecord


class SectionRepository:
    def __init__(self, db):
        self.db = db

    def get(self, project_id: str, section_id: str, subsection_id: str) -> Optional[SectionRecord]:
        return self.db.query(SectionRecord).filter(
            SectionRecord.project_id == project_id,
            SectionRecord.section_id == section_id,
            SectionRecord.subsection_id == subsection_id,
        ).first()

    def upsert(self, project_id: str, section_id: str, subsection_id: str, content: str, status: str) -> SectionRecord:
        """Overwrite the record for the key, or insert it. Records are never deleted."""
        record = self.get(project_id, section_id, subsection_id)
        if record is None:
            record = SectionRecord(
                project_id=project_id,
                section_id=section_id,
                subsection_id=subsection_id,
                content=content,
                status=status,
            )
            self.db.add(record)
        else:
            record.content = content
            record.status = status
        self.db.flush()
        self.db.refresh(record)
        return record

    def get_all(self, project_id: str) -> List[SectionRecord]:
        return self.db.query(SectionRecord).filter(
            SectionRecord.project_id == project_id
        ).order_by(SectionRecord.id).all()
