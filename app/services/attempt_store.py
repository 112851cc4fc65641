import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import ExamAttemptStatusEnum
from app.core.database import SessionLocal
from app.core.exceptions import AttemptStoreError
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.models.exam_attempt import ExamAttempt
from app.schemas.exam_attempt import (
    AttemptCreate, AttemptRecord, InProgressAttempt, attempt_record_adapter
)
from app.services.attempt_clock import ensure_aware

logger = logging.getLogger(__name__)

RECORD_FIELDS = (
    "id", "exam_id", "user_id", "started_at", "completed_at", "answers", "flagged",
    "integrity_events", "score", "total_points", "percentage", "time_spent_seconds",
)


def to_record(db_attempt: ExamAttempt) -> AttemptRecord:
    data = {field: getattr(db_attempt, field) for field in RECORD_FIELDS}
    data["status"] = db_attempt.status.value
    data["started_at"] = ensure_aware(data["started_at"])
    if data["completed_at"] is not None:
        data["completed_at"] = ensure_aware(data["completed_at"])
    data["submit_reason"] = db_attempt.submit_reason.value if db_attempt.submit_reason else None
    data["answers"] = dict(data["answers"] or {})
    data["flagged"] = list(data["flagged"] or [])
    data["integrity_events"] = dict(data["integrity_events"] or {})
    return attempt_record_adapter.validate_python(data)


class AttemptStore:
    """
    Create/read/update of single attempt records. Rows come back as the tagged
    AttemptRecord union; every store failure surfaces as AttemptStoreError.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def _create(self, attempt_in: AttemptCreate) -> InProgressAttempt:
        with self.session_factory() as db:
            try:
                db_attempt = crud_exam_attempt.create(db, obj_in={
                    **attempt_in.model_dump(),
                    "status": ExamAttemptStatusEnum.IN_PROGRESS,
                    "answers": {},
                    "flagged": [],
                    "integrity_events": {},
                })
            except SQLAlchemyError as e:
                db.rollback()
                raise AttemptStoreError(f"Failed to create attempt: {e}") from e
            return to_record(db_attempt)

    def _get(self, attempt_id: str) -> Optional[AttemptRecord]:
        with self.session_factory() as db:
            try:
                db_attempt = crud_exam_attempt.get(db, id=attempt_id)
            except SQLAlchemyError as e:
                raise AttemptStoreError(f"Failed to load attempt {attempt_id}: {e}") from e
            return to_record(db_attempt) if db_attempt else None

    def _update(self, attempt_id: str, fields: Dict[str, Any]) -> AttemptRecord:
        with self.session_factory() as db:
            try:
                db_attempt = crud_exam_attempt.get(db, id=attempt_id)
                if not db_attempt:
                    raise AttemptStoreError(f"Attempt {attempt_id} does not exist")
                db_attempt = crud_exam_attempt.update(db, db_obj=db_attempt, obj_in=fields)
            except SQLAlchemyError as e:
                db.rollback()
                raise AttemptStoreError(f"Failed to update attempt {attempt_id}: {e}") from e
            return to_record(db_attempt)

    def _list_by_user(self, user_id: str, status: Optional[ExamAttemptStatusEnum]) -> List[AttemptRecord]:
        with self.session_factory() as db:
            try:
                attempts = crud_exam_attempt.get_all_by_user(db, user_id=user_id, status=status)
            except SQLAlchemyError as e:
                raise AttemptStoreError(f"Failed to list attempts for {user_id}: {e}") from e
            return [to_record(a) for a in attempts]

    async def create(self, attempt_in: AttemptCreate) -> InProgressAttempt:
        record = await run_in_threadpool(self._create, attempt_in)
        logger.info(f"Attempt {record.id} created for user {record.user_id} on exam {record.exam_id}")
        return record

    async def get(self, attempt_id: str) -> Optional[AttemptRecord]:
        return await run_in_threadpool(self._get, attempt_id)

    async def update(self, attempt_id: str, fields: Dict[str, Any]) -> AttemptRecord:
        return await run_in_threadpool(self._update, attempt_id, fields)

    async def list_by_user(
        self, user_id: str, status: Optional[ExamAttemptStatusEnum] = None
    ) -> List[AttemptRecord]:
        return await run_in_threadpool(self._list_by_user, user_id, status)
