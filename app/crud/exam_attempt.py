from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.constants import ExamAttemptStatusEnum
from app.crud.base import CRUDBase
from app.models.exam_attempt import ExamAttempt
from app.schemas.exam_attempt import AttemptCreate

class CRUDExamAttempt(CRUDBase[ExamAttempt, AttemptCreate, AttemptCreate]):

    def get_all_by_user(
        self,
        db: Session,
        user_id: str,
        status: Optional[ExamAttemptStatusEnum] = None,
        skip: int = 0,
        limit: int = 500
    ) -> List[ExamAttempt]:
        query = db.query(ExamAttempt).filter(ExamAttempt.user_id == user_id)
        if status:
            query = query.filter(ExamAttempt.status == status)
        return (
            query.order_by(ExamAttempt.started_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )


exam_attempt = CRUDExamAttempt(ExamAttempt)
