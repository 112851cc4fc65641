import asyncio
import logging
from typing import Callable, Dict, List, Optional

from app.core.config import settings
from app.core.constants import (
    DEFAULT_HINT, HINT_PREVIEW_LENGTH, ErrorCodeEnum, ExamAttemptStatusEnum,
    IntegrityEventEnum, SessionStateEnum, SubmitReasonEnum
)
from app.core.exceptions import (
    AccessDeniedError, AttemptStoreError, ExamPracticeError, InvalidStateError,
    NotAuthenticatedError, NotFoundError, SaveFailedError, SubmitFailedError
)
from app.core.scheduler import remove_job_quietly
from app.schemas.exam import ExamPaper
from app.schemas.exam_attempt import AttemptCreate, AttemptRecord, CompletedAttempt
from app.schemas.question import Question, QuestionPublic
from app.schemas.session import MutationResult, SaveStatusReport, SessionView
from app.services.attempt_clock import AttemptClock, NowFn, utcnow
from app.services.attempt_store import AttemptStore
from app.services.autosave import AutosaveScheduler
from app.services.identity import IdentityProvider
from app.services.question_bank import QuestionBank
from app.services.scoring import calculate_percentage, normalize_answer, score_attempt

logger = logging.getLogger(__name__)


def hint_for(question: Question) -> str:
    if question.hint:
        return question.hint
    if question.explanation:
        return question.explanation[:HINT_PREVIEW_LENGTH] + "..."
    return DEFAULT_HINT


class ExamSession:
    """
    One user's timed run through an exam.

    States: loading -> in_progress -> submitting -> completed, with error for
    sessions that could not be loaded. Answer, flag and integrity mutations
    are applied in memory and handed to the autosave scheduler. Submit and
    autosave writes share one lock so submit is always the last write.
    """

    def __init__(
        self,
        question_bank: QuestionBank,
        store: AttemptStore,
        identity: IdentityProvider,
        now_fn: NowFn = utcnow,
        scheduler=None,
        debounce_seconds: Optional[float] = None,
        interval_seconds: Optional[float] = None,
        tick_seconds: Optional[float] = None,
        on_complete: Optional[Callable[["ExamSession"], None]] = None,
    ):
        self.question_bank = question_bank
        self.store = store
        self.identity = identity
        self.now_fn = now_fn
        self.scheduler = scheduler
        self.debounce_seconds = debounce_seconds if debounce_seconds is not None else settings.AUTOSAVE_DEBOUNCE_SECONDS
        self.interval_seconds = interval_seconds if interval_seconds is not None else settings.AUTOSAVE_INTERVAL_SECONDS
        self.tick_seconds = tick_seconds if tick_seconds is not None else settings.COUNTDOWN_TICK_SECONDS
        self.on_complete = on_complete

        self.state = SessionStateEnum.LOADING
        self.paper: Optional[ExamPaper] = None
        self.record: Optional[AttemptRecord] = None
        self.clock: Optional[AttemptClock] = None
        self.autosave: Optional[AutosaveScheduler] = None
        self.answers: Dict[str, str] = {}
        self.flagged: List[str] = []
        self.integrity_events: Dict[str, int] = {}
        self.current_index = 0
        self._write_lock = asyncio.Lock()

    @property
    def attempt_id(self) -> Optional[str]:
        return self.record.id if self.record else None

    @property
    def user_id(self) -> Optional[str]:
        return self.record.user_id if self.record else None

    @property
    def questions(self) -> List[Question]:
        return self.paper.questions if self.paper else []

    @property
    def countdown_job_id(self) -> str:
        return f"countdown:{self.attempt_id}"

    def _require_user(self) -> str:
        user_id = self.identity.current_user_id()
        if not user_id:
            raise NotAuthenticatedError("You must be signed in to take an exam.")
        return user_id

    def _fail(self, exc: ExamPracticeError):
        self.state = SessionStateEnum.ERROR
        raise exc

    async def start(self, exam_id: str) -> SessionView:
        user_id = self._require_user()
        if self.state != SessionStateEnum.LOADING:
            raise InvalidStateError("Session has already been loaded.")

        try:
            paper = await self.question_bank.load_paper(exam_id)
        except NotFoundError as e:
            self._fail(e)

        attempt_in = AttemptCreate(
            exam_id=exam_id,
            user_id=user_id,
            started_at=self.now_fn(),
            total_points=paper.total_points,
        )
        try:
            record = await self.store.create(attempt_in)
        except AttemptStoreError as e:
            logger.error(f"Could not create attempt for exam {exam_id}: {e}")
            self._fail(SaveFailedError("The attempt could not be started.", details={"exam_id": exam_id}))

        self._load(paper, record)
        logger.info(f"Attempt {record.id} started by {user_id} on exam {exam_id}")
        return self.view()

    async def resume(self, attempt_id: str) -> SessionView:
        user_id = self._require_user()
        if self.state != SessionStateEnum.LOADING:
            raise InvalidStateError("Session has already been loaded.")

        try:
            record = await self.store.get(attempt_id)
        except AttemptStoreError as e:
            logger.error(f"Could not load attempt {attempt_id}: {e}")
            record = None
        if record is None:
            self._fail(NotFoundError("Attempt not found.", details={"attempt_id": attempt_id}))
        if record.user_id != user_id:
            self._fail(AccessDeniedError("You can only open your own attempts."))
        if record.status == ExamAttemptStatusEnum.ABANDONED.value:
            self._fail(InvalidStateError("This attempt was abandoned and cannot be resumed."))

        try:
            paper = await self.question_bank.load_paper(record.exam_id)
        except NotFoundError as e:
            self._fail(e)

        self._load(paper, record)
        if self.state == SessionStateEnum.IN_PROGRESS:
            logger.info(f"Attempt {attempt_id} resumed with {self.clock.remaining()}s remaining")
            if self.clock.tick():
                logger.info(f"Attempt {attempt_id} expired while away, submitting")
                try:
                    await self._submit_on_timeout()
                except SubmitFailedError:
                    logger.warning(f"Timeout submit for attempt {attempt_id} deferred to the countdown")
        return self.view()

    def _load(self, paper: ExamPaper, record: AttemptRecord):
        self.paper = paper
        self.record = record
        self.answers = dict(record.answers)
        self.flagged = list(record.flagged)
        self.integrity_events = dict(record.integrity_events)
        self.current_index = 0
        self.clock = AttemptClock(record.started_at, paper.exam.duration_minutes, self.now_fn)

        if record.status == ExamAttemptStatusEnum.COMPLETED.value:
            self.state = SessionStateEnum.COMPLETED
            return

        self.state = SessionStateEnum.IN_PROGRESS
        self.autosave = AutosaveScheduler(
            attempt_id=record.id,
            snapshot_fn=self._snapshot,
            persist_fn=self._persist,
            is_active_fn=self._is_active,
            lock=self._write_lock,
            scheduler=self.scheduler,
            debounce_seconds=self.debounce_seconds,
            interval_seconds=self.interval_seconds,
            now_fn=self.now_fn,
            initial_snapshot=self._snapshot(),
        )
        self.autosave.start()
        self._start_countdown()

    def _start_countdown(self):
        if self.scheduler is None:
            return
        self.scheduler.add_job(
            self.tick,
            "interval",
            seconds=self.tick_seconds,
            id=self.countdown_job_id,
            replace_existing=True,
        )

    def _stop_countdown(self):
        if self.scheduler is not None and self.record is not None:
            remove_job_quietly(self.scheduler, self.countdown_job_id)

    def _snapshot(self) -> Dict:
        return {
            "answers": dict(self.answers),
            "flagged": list(self.flagged),
            "integrity_events": dict(self.integrity_events),
        }

    async def _persist(self, snapshot: Dict):
        self.record = await self.store.update(self.attempt_id, snapshot)

    def _is_active(self) -> bool:
        return self.state == SessionStateEnum.IN_PROGRESS

    def _ignored(self, action: str) -> MutationResult:
        logger.warning(f"Ignored {action} on attempt {self.attempt_id} in state {self.state.value}")
        return MutationResult(applied=False, reason=ErrorCodeEnum.INVALID_STATE)

    def _require_question(self, question_id: str) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise NotFoundError("Question is not part of this exam.", details={"question_id": question_id})

    def select_answer(self, question_id: str, value: str) -> MutationResult:
        if self.state != SessionStateEnum.IN_PROGRESS:
            return self._ignored("answer")
        self._require_question(question_id)
        self.answers[question_id] = value
        self.autosave.notify_change()
        return MutationResult(applied=True)

    def toggle_flag(self, question_id: str) -> MutationResult:
        if self.state != SessionStateEnum.IN_PROGRESS:
            return self._ignored("flag")
        self._require_question(question_id)
        if question_id in self.flagged:
            self.flagged.remove(question_id)
        else:
            self.flagged.append(question_id)
        self.autosave.notify_change()
        return MutationResult(applied=True)

    def record_integrity_event(self, kind: IntegrityEventEnum) -> MutationResult:
        if self.state != SessionStateEnum.IN_PROGRESS:
            return self._ignored("integrity event")
        key = IntegrityEventEnum(kind).value
        self.integrity_events[key] = self.integrity_events.get(key, 0) + 1
        self.autosave.notify_change()
        return MutationResult(applied=True)

    def go_to(self, index: int) -> MutationResult:
        if self.state not in (SessionStateEnum.IN_PROGRESS, SessionStateEnum.COMPLETED):
            return self._ignored("navigation")
        if index < 0 or index >= len(self.questions):
            return MutationResult(applied=False, reason=ErrorCodeEnum.NOT_FOUND)
        self.current_index = index
        return MutationResult(applied=True)

    def next(self) -> MutationResult:
        return self.go_to(self.current_index + 1)

    def previous(self) -> MutationResult:
        return self.go_to(self.current_index - 1)

    async def tick(self) -> bool:
        """Countdown step. True when this call triggered the timeout submit."""
        if self.state != SessionStateEnum.IN_PROGRESS or not self.clock.tick():
            return False
        logger.info(f"Time is up for attempt {self.attempt_id}, submitting")
        try:
            await self._submit_on_timeout()
        except SubmitFailedError:
            return False
        return True

    async def _submit_on_timeout(self):
        try:
            await self.submit(SubmitReasonEnum.TIMEOUT)
        except SubmitFailedError:
            # Let the next countdown tick retry the timeout submit
            self.clock.rearm()
            raise

    async def save(self) -> SaveStatusReport:
        if self.state != SessionStateEnum.IN_PROGRESS:
            raise InvalidStateError("Only an attempt in progress can be saved.")
        await self.autosave.flush(raise_errors=True)
        return self.autosave.report()

    async def submit(self, reason: SubmitReasonEnum = SubmitReasonEnum.USER) -> CompletedAttempt:
        async with self._write_lock:
            if self.state == SessionStateEnum.COMPLETED:
                logger.info(f"Duplicate submit ignored for attempt {self.attempt_id}")
                return self.record
            if self.state != SessionStateEnum.IN_PROGRESS:
                raise InvalidStateError("Only an attempt in progress can be submitted.")

            self.state = SessionStateEnum.SUBMITTING
            self.autosave.cancel()
            self._stop_countdown()

            timed_out = reason == SubmitReasonEnum.TIMEOUT
            result = score_attempt(self.questions, self.answers)
            fields = {
                "status": ExamAttemptStatusEnum.COMPLETED,
                "completed_at": self.now_fn(),
                "answers": dict(self.answers),
                "flagged": list(self.flagged),
                "integrity_events": dict(self.integrity_events),
                "score": result.earned,
                "total_points": result.total,
                "percentage": result.percentage,
                "time_spent_seconds": self.clock.time_spent(timed_out=timed_out),
                "submit_reason": SubmitReasonEnum(reason),
            }
            logger.info(f"Submitting attempt {self.attempt_id} ({SubmitReasonEnum(reason).value})")

            try:
                record = await self.store.update(self.attempt_id, fields)
            except AttemptStoreError as e:
                logger.error(f"Submit failed for attempt {self.attempt_id}: {e}")
                self.state = SessionStateEnum.IN_PROGRESS
                self.autosave.start()
                self._start_countdown()
                raise SubmitFailedError(
                    "Your answers could not be submitted. Please try again.",
                    details={"attempt_id": self.attempt_id},
                ) from e

            self.record = record
            self.state = SessionStateEnum.COMPLETED
            logger.info(
                f"Attempt {self.attempt_id} completed: {result.earned}/{result.total} ({result.percentage}%)"
            )
            if self.on_complete is not None:
                self.on_complete(self)
            return record

    def close(self):
        if self.autosave is not None:
            self.autosave.cancel()
        self._stop_countdown()

    def view(self) -> SessionView:
        if self.paper is None or self.record is None:
            raise InvalidStateError("Session is not loaded.")

        questions = self.questions
        current = questions[self.current_index] if questions else None
        answered = sum(1 for q in questions if normalize_answer(self.answers.get(q.id)))
        completed = self.record if self.state == SessionStateEnum.COMPLETED else None

        if completed is not None:
            remaining = max(0, self.clock.duration_seconds - completed.time_spent_seconds)
        else:
            remaining = self.clock.remaining()

        return SessionView(
            attempt_id=self.record.id,
            exam=self.paper.exam,
            state=self.state,
            current_index=self.current_index,
            total_questions=len(questions),
            current_question=QuestionPublic.model_validate(current.model_dump()) if current else None,
            current_hint=hint_for(current) if current else None,
            questions=[QuestionPublic.model_validate(q.model_dump()) for q in questions],
            answers=dict(self.answers),
            flagged=list(self.flagged),
            answered_count=answered,
            progress_percent=calculate_percentage(answered, len(questions)),
            remaining_seconds=remaining,
            duration_seconds=self.clock.duration_seconds,
            save=self.autosave.report() if self.autosave else SaveStatusReport(),
            integrity_events=dict(self.integrity_events),
            result=completed,
        )
