"""Answer repository."""

from typing import Dict, List

from ..models import Answer


class AnswerRepository:
    def __init__(self, db):
        self.db = db

    def get_for_subsection(self, project_id: str, section_id: str, subsection_id: str) -> List[Answer]:
        return self.db.query(Answer).filter(
            Answer.project_id == project_id,
            Answer.section_id == section_id,
            Answer.subsection_id == subsection_id,
        ).order_by(Answer.question_index).all()

    def upsert_many(
        self,
        project_id: str,
        section_id: str,
        subsection_id: str,
        questions: List[str],
        answers: Dict[int, str],
    ) -> None:
        """Insert or overwrite the answers for the given question indexes."""
        existing = {
            a.question_index: a
            for a in self.get_for_subsection(project_id, section_id, subsection_id)
        }
        for index, text in answers.items():
            row = existing.get(index)
            if row is None:
                self.db.add(Answer(
                    project_id=project_id,
                    section_id=section_id,
                    subsection_id=subsection_id,
                    question_index=index,
                    question=questions[index],
                    answer=text,
                ))
            else:
                row.question = questions[index]
                row.answer = text
        self.db.flush()
