import logging
from typing import Dict, List, Optional

from app.core.constants import (
    RECENT_ATTEMPTS_LIMIT, ExamAttemptStatusEnum, ExamTypeEnum, ReviewFilterEnum
)
from app.core.exceptions import (
    AccessDeniedError, AttemptStoreError, InvalidStateError, NotFoundError
)
from app.schemas.exam import Exam
from app.schemas.exam_attempt import AttemptRecord, CompletedAttempt
from app.schemas.question import Question
from app.schemas.results import AttemptHistoryItem, AttemptResults, Dashboard
from app.services import results_analytics as analytics
from app.services.attempt_store import AttemptStore
from app.services.question_bank import QuestionBank
from app.services.scoring import normalize_answer, score_attempt

logger = logging.getLogger(__name__)


class ResultsService:

    def __init__(self, question_bank: QuestionBank, store: AttemptStore):
        self.question_bank = question_bank
        self.store = store

    async def _load_attempts(self, user_id: str) -> List[AttemptRecord]:
        try:
            return await self.store.list_by_user(user_id)
        except AttemptStoreError as e:
            logger.error(f"Could not load attempts for {user_id}: {e}")
            raise NotFoundError("Your attempts could not be loaded.") from e

    async def _exams_by_id(self, exam_ids) -> Dict[str, Exam]:
        exams = await self.question_bank.get_exams_by_ids(list(set(exam_ids)))
        return {e.id: e for e in exams}

    async def get_attempt_results(
        self,
        attempt_id: str,
        user_id: str,
        review_filter: ReviewFilterEnum = ReviewFilterEnum.ALL
    ) -> AttemptResults:
        try:
            attempt = await self.store.get(attempt_id)
        except AttemptStoreError as e:
            logger.error(f"Could not load attempt {attempt_id}: {e}")
            attempt = None
        if attempt is None:
            raise NotFoundError("Attempt not found.", details={"attempt_id": attempt_id})
        if attempt.user_id != user_id:
            raise AccessDeniedError("You can only view your own results.")
        if not isinstance(attempt, CompletedAttempt):
            raise InvalidStateError("Results are available once the attempt is submitted.")

        exams = await self._exams_by_id([attempt.exam_id])
        exam = exams.get(attempt.exam_id)
        if exam is None:
            raise NotFoundError("Exam not found.", details={"exam_id": attempt.exam_id})
        questions = await self.question_bank.get_questions(attempt.exam_id)

        history = [a for a in await self._load_attempts(user_id) if isinstance(a, CompletedAttempt)]
        answered = sum(1 for q in questions if normalize_answer(attempt.answers.get(q.id)))
        topics = analytics.summarize_topics(analytics.topic_performance(questions, attempt.answers))
        strong, weak = analytics.classify_topics(topics)

        return AttemptResults(
            attempt=attempt,
            exam=exam,
            score=score_attempt(questions, attempt.answers),
            grade=analytics.grade_for(attempt.percentage),
            topics=topics,
            strong_topics=strong,
            weak_topics=weak,
            difficulty=analytics.difficulty_performance(questions, attempt.answers),
            time=analytics.time_breakdown(
                attempt.time_spent_seconds, exam.duration_minutes, len(questions), answered
            ),
            national=analytics.national_comparison(exam.year_level, attempt.percentage),
            improvement=analytics.improvement_trend(history),
            review=analytics.question_review(questions, attempt.answers, attempt.flagged, review_filter),
            integrity_events=attempt.integrity_events,
        )

    async def get_dashboard(self, user_id: str) -> Dashboard:
        attempts = await self._load_attempts(user_id)
        completed = [a for a in attempts if isinstance(a, CompletedAttempt)]
        exams = await self._exams_by_id(a.exam_id for a in completed)

        questions_by_exam: Dict[str, List[Question]] = {}
        for exam_id in exams:
            questions_by_exam[exam_id] = await self.question_bank.get_questions(exam_id)

        topics = analytics.summarize_topics(analytics.merge_topic_performance(
            analytics.topic_performance(questions_by_exam.get(a.exam_id, []), a.answers)
            for a in completed
        ))
        strong, weak = analytics.classify_topics(topics)

        recent = [
            self._history_item(a, exams.get(a.exam_id))
            for a in completed[:RECENT_ATTEMPTS_LIMIT]
        ]
        return Dashboard(
            stats=analytics.aggregate_stats(len(attempts), completed),
            recent_attempts=recent,
            strong_topics=strong,
            weak_topics=weak,
        )

    async def get_history(
        self,
        user_id: str,
        status: Optional[ExamAttemptStatusEnum] = None,
        subject: Optional[str] = None,
        exam_type: Optional[ExamTypeEnum] = None
    ) -> List[AttemptHistoryItem]:
        attempts = await self._load_attempts(user_id)
        exams = await self._exams_by_id(a.exam_id for a in attempts)

        items = []
        for attempt in attempts:
            exam = exams.get(attempt.exam_id)
            if status and attempt.status != status.value:
                continue
            if subject and (not exam or exam.subject.lower() != subject.lower()):
                continue
            if exam_type and (not exam or exam.exam_type != exam_type):
                continue
            items.append(self._history_item(attempt, exam))
        return items

    def _history_item(self, attempt: AttemptRecord, exam: Optional[Exam]) -> AttemptHistoryItem:
        completed = isinstance(attempt, CompletedAttempt)
        return AttemptHistoryItem(
            id=attempt.id,
            status=ExamAttemptStatusEnum(attempt.status),
            exam=exam,
            started_at=attempt.started_at,
            completed_at=attempt.completed_at if completed else None,
            score=attempt.score if completed else None,
            total_points=attempt.total_points,
            percentage=attempt.percentage if completed else None,
            time_spent_seconds=attempt.time_spent_seconds if completed else None,
        )
