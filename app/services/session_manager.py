import asyncio
import logging
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import SessionStateEnum
from app.core.database import SessionLocal
from app.core.exceptions import AccessDeniedError
from app.core.scheduler import scheduler as default_scheduler
from app.services.attempt_clock import NowFn, utcnow
from app.services.attempt_store import AttemptStore
from app.services.exam_session import ExamSession
from app.services.identity import IdentityProvider
from app.services.question_bank import QuestionBank

logger = logging.getLogger(__name__)


class ExamSessionManager:
    """
    Live exam sessions of this process, keyed by attempt id.

    Only in-progress sessions are kept; a session is dropped as soon as it
    completes. Opening an attempt that is not live resumes it from the store
    under a per-attempt lock, so concurrent requests share one session.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        scheduler=None,
        now_fn: NowFn = utcnow,
        question_bank: Optional[QuestionBank] = None,
        store: Optional[AttemptStore] = None,
    ):
        self.question_bank = question_bank or QuestionBank(session_factory)
        self.store = store or AttemptStore(session_factory)
        self.scheduler = scheduler
        self.now_fn = now_fn
        self._sessions: Dict[str, ExamSession] = {}
        self._open_locks: Dict[str, asyncio.Lock] = {}
        self._open_waiters: Dict[str, int] = {}

    @classmethod
    def from_settings(cls) -> "ExamSessionManager":
        return cls(scheduler=default_scheduler if settings.SCHEDULER_ENABLED else None)

    def _new_session(self, identity: IdentityProvider) -> ExamSession:
        return ExamSession(
            question_bank=self.question_bank,
            store=self.store,
            identity=identity,
            now_fn=self.now_fn,
            scheduler=self.scheduler,
            on_complete=self._on_complete,
        )

    def _on_complete(self, session: ExamSession):
        if self._sessions.get(session.attempt_id) is session:
            self.close(session.attempt_id)
            logger.info(f"Attempt {session.attempt_id} completed, session released")

    def _keep_if_live(self, session: ExamSession):
        if session.state == SessionStateEnum.IN_PROGRESS:
            self._sessions[session.attempt_id] = session

    def _live_session(self, attempt_id: str, identity: IdentityProvider) -> Optional[ExamSession]:
        session = self._sessions.get(attempt_id)
        if session is not None and session.user_id != identity.current_user_id():
            raise AccessDeniedError("You can only open your own attempts.")
        return session

    async def start(self, exam_id: str, identity: IdentityProvider) -> ExamSession:
        session = self._new_session(identity)
        await session.start(exam_id)
        self._keep_if_live(session)
        return session

    async def open(self, attempt_id: str, identity: IdentityProvider) -> ExamSession:
        session = self._live_session(attempt_id, identity)
        if session is not None:
            return session

        lock = self._open_locks.setdefault(attempt_id, asyncio.Lock())
        self._open_waiters[attempt_id] = self._open_waiters.get(attempt_id, 0) + 1
        try:
            async with lock:
                session = self._live_session(attempt_id, identity)
                if session is not None:
                    return session

                session = self._new_session(identity)
                await session.resume(attempt_id)
                self._keep_if_live(session)
                return session
        finally:
            self._open_waiters[attempt_id] -= 1
            if not self._open_waiters[attempt_id]:
                del self._open_waiters[attempt_id]
                del self._open_locks[attempt_id]

    def get(self, attempt_id: str) -> Optional[ExamSession]:
        return self._sessions.get(attempt_id)

    def close(self, attempt_id: str):
        session = self._sessions.pop(attempt_id, None)
        if session is not None:
            session.close()

    async def shutdown(self):
        for session in list(self._sessions.values()):
            if session.autosave is not None:
                await session.autosave.flush()
            session.close()
        self._sessions.clear()
        logger.info("Exam sessions closed")
