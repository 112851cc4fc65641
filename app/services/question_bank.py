import logging
from typing import Callable, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.constants import ExamTypeEnum
from app.core.database import SessionLocal
from app.core.exceptions import NotFoundError
from app.crud.exam import exam as crud_exam
from app.crud.question import question as crud_question
from app.schemas.exam import Exam, ExamPaper
from app.schemas.question import Question

logger = logging.getLogger(__name__)


class QuestionBank:
    """Read-only access to exams and their ordered question sets."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def _get_exam(self, exam_id: str) -> Optional[Exam]:
        with self.session_factory() as db:
            db_exam = crud_exam.get_active(db, id=exam_id)
            return Exam.model_validate(db_exam) if db_exam else None

    def _get_questions(self, exam_id: str) -> List[Question]:
        with self.session_factory() as db:
            return [Question.model_validate(q) for q in crud_question.get_by_exam(db, exam_id=exam_id)]

    def _list_exams(self, exam_type, subject, year_level, skip, limit) -> List[Exam]:
        with self.session_factory() as db:
            exams = crud_exam.get_multi_filtered(
                db, skip=skip, limit=limit, exam_type=exam_type, subject=subject, year_level=year_level
            )
            return [Exam.model_validate(e) for e in exams]

    def _get_exams_by_ids(self, ids: List[str]) -> List[Exam]:
        with self.session_factory() as db:
            return [Exam.model_validate(e) for e in crud_exam.get_by_ids(db, ids)]

    async def get_exam(self, exam_id: str) -> Optional[Exam]:
        return await run_in_threadpool(self._get_exam, exam_id)

    async def get_questions(self, exam_id: str) -> List[Question]:
        return await run_in_threadpool(self._get_questions, exam_id)

    async def load_paper(self, exam_id: str) -> ExamPaper:
        exam = await self.get_exam(exam_id)
        if not exam:
            raise NotFoundError("Exam not found.", details={"exam_id": exam_id})

        questions = await self.get_questions(exam_id)
        if not questions:
            logger.warning(f"Exam {exam_id} has no questions")
            raise NotFoundError("Exam has no questions.", details={"exam_id": exam_id})

        return ExamPaper(exam=exam, questions=questions)

    async def list_exams(
        self,
        exam_type: Optional[ExamTypeEnum] = None,
        subject: Optional[str] = None,
        year_level: Optional[int] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Exam]:
        return await run_in_threadpool(self._list_exams, exam_type, subject, year_level, skip, limit)

    async def get_exams_by_ids(self, ids: List[str]) -> List[Exam]:
        return await run_in_threadpool(self._get_exams_by_ids, ids)
