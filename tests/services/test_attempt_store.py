from datetime import datetime, timezone
import pytest

from app.core.constants import ExamAttemptStatusEnum, SubmitReasonEnum
from app.core.exceptions import AttemptStoreError
from app.schemas.exam_attempt import AttemptCreate, CompletedAttempt, InProgressAttempt

STARTED = datetime(2024, 5, 14, 9, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_and_get(attempt_store, sample_exam_id):
    record = await attempt_store.create(AttemptCreate(
        exam_id=sample_exam_id, user_id="student-1", started_at=STARTED, total_points=5
    ))
    assert isinstance(record, InProgressAttempt)
    assert record.answers == {}
    assert record.flagged == []

    loaded = await attempt_store.get(record.id)
    assert loaded == record
    assert loaded.started_at.tzinfo is not None


@pytest.mark.asyncio
async def test_get_missing_returns_none(attempt_store):
    assert await attempt_store.get("missing") is None


@pytest.mark.asyncio
async def test_update_to_completed_yields_completed_variant(attempt_store, sample_exam_id):
    record = await attempt_store.create(AttemptCreate(
        exam_id=sample_exam_id, user_id="student-1", started_at=STARTED, total_points=5
    ))
    completed = await attempt_store.update(record.id, {
        "status": ExamAttemptStatusEnum.COMPLETED,
        "completed_at": STARTED,
        "answers": {"q1": "A"},
        "score": 1,
        "total_points": 5,
        "percentage": 20,
        "time_spent_seconds": 0,
        "submit_reason": SubmitReasonEnum.USER,
    })
    assert isinstance(completed, CompletedAttempt)
    assert completed.answers == {"q1": "A"}
    assert completed.submit_reason == SubmitReasonEnum.USER


@pytest.mark.asyncio
async def test_update_missing_attempt_raises(attempt_store):
    with pytest.raises(AttemptStoreError):
        await attempt_store.update("missing", {"answers": {}})


@pytest.mark.asyncio
async def test_list_by_user_newest_first(attempt_store, sample_exam_id):
    older = await attempt_store.create(AttemptCreate(
        exam_id=sample_exam_id, user_id="student-1", started_at=STARTED, total_points=5
    ))
    newer = await attempt_store.create(AttemptCreate(
        exam_id=sample_exam_id, user_id="student-1",
        started_at=STARTED.replace(hour=10), total_points=5
    ))
    await attempt_store.create(AttemptCreate(
        exam_id=sample_exam_id, user_id="student-2", started_at=STARTED, total_points=5
    ))

    records = await attempt_store.list_by_user("student-1")
    assert [r.id for r in records] == [newer.id, older.id]
    assert await attempt_store.list_by_user("student-1", ExamAttemptStatusEnum.COMPLETED) == []


@pytest.mark.asyncio
async def test_question_bank_orders_questions(question_bank, sample_exam_id):
    paper = await question_bank.load_paper(sample_exam_id)
    assert [q.question_number for q in paper.questions] == [1, 2, 3, 4]
    assert paper.total_points == 5
    assert paper.questions[0].options == ["1/2", "1/3", "1/4", "2/3"]
