from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.exam import Exam
from app.schemas.exam import ExamCreate
from app.core.constants import ExamTypeEnum


class CRUDExam(CRUDBase[Exam, ExamCreate, ExamCreate]):

    def _query_active(self, db: Session):
        return db.query(Exam).filter(Exam.is_active.is_(True))

    def get_active(self, db: Session, id: str) -> Optional[Exam]:
        return self._query_active(db).filter(Exam.id == id).first()

    def get_multi_filtered(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 100,
        exam_type: Optional[ExamTypeEnum] = None,
        subject: Optional[str] = None,
        year_level: Optional[int] = None
    ) -> List[Exam]:
        query = self._query_active(db)

        if exam_type:
            query = query.filter(Exam.exam_type == exam_type)
        if subject:
            query = query.filter(Exam.subject.ilike(subject))
        if year_level is not None:
            query = query.filter(Exam.year_level == year_level)

        return (
            query.order_by(Exam.year_level, Exam.title)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_ids(self, db: Session, ids: List[str]) -> List[Exam]:
        if not ids:
            return []
        return db.query(Exam).filter(Exam.id.in_(ids)).all()

exam = CRUDExam(Exam)
