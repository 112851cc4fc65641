import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.constants import SaveStatusEnum
from app.core.exceptions import AttemptStoreError, SaveFailedError
from app.core.scheduler import remove_job_quietly
from app.schemas.session import SaveStatusReport
from app.services.attempt_clock import NowFn, utcnow

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Any]


def serialize_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot, sort_keys=True)


class AutosaveScheduler:
    """
    Debounced plus periodic persistence of one attempt's in-progress state.

    Every mutation replaces a single `date` job, so a burst of edits collapses
    into one write. An `interval` job covers long edit-free stretches. Writes
    run under the session's write lock and are skipped once the session is no
    longer active, which keeps the final submit the last write to the record.
    """

    def __init__(
        self,
        attempt_id: str,
        snapshot_fn: Callable[[], Snapshot],
        persist_fn: Callable[[Snapshot], Awaitable[Any]],
        is_active_fn: Callable[[], bool],
        lock: asyncio.Lock,
        scheduler=None,
        debounce_seconds: float = 2.0,
        interval_seconds: float = 30,
        now_fn: NowFn = utcnow,
        initial_snapshot: Optional[Snapshot] = None,
    ):
        self.attempt_id = attempt_id
        self.snapshot_fn = snapshot_fn
        self.persist_fn = persist_fn
        self.is_active_fn = is_active_fn
        self.lock = lock
        self.scheduler = scheduler
        self.debounce_seconds = debounce_seconds
        self.interval_seconds = interval_seconds
        self.now_fn = now_fn

        self.status = SaveStatusEnum.SAVED
        self.pending = False
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.write_count = 0
        self._last_saved_payload = serialize_snapshot(initial_snapshot) if initial_snapshot is not None else None
        self._stopped = True

    @property
    def debounce_job_id(self) -> str:
        return f"autosave-debounce:{self.attempt_id}"

    @property
    def interval_job_id(self) -> str:
        return f"autosave-interval:{self.attempt_id}"

    def start(self):
        self._stopped = False
        if self.scheduler is None:
            return
        self.scheduler.add_job(
            self.flush,
            "interval",
            seconds=self.interval_seconds,
            id=self.interval_job_id,
            replace_existing=True,
        )
        if self.pending:
            self._schedule_debounce()

    def _schedule_debounce(self):
        self.scheduler.add_job(
            self.flush,
            "date",
            run_date=self.now_fn() + timedelta(seconds=self.debounce_seconds),
            id=self.debounce_job_id,
            replace_existing=True,
        )

    def notify_change(self):
        if self._stopped:
            return
        self.pending = True
        if self.scheduler is not None:
            self._schedule_debounce()

    async def flush(self, raise_errors: bool = False) -> bool:
        """Writes the current snapshot if it differs from the last saved one. True when a write happened."""
        async with self.lock:
            if self._stopped or not self.is_active_fn():
                logger.debug(f"Autosave for attempt {self.attempt_id} skipped: session not active")
                return False

            snapshot = self.snapshot_fn()
            payload = serialize_snapshot(snapshot)
            if payload == self._last_saved_payload:
                self.pending = False
                logger.debug(f"Autosave for attempt {self.attempt_id} skipped: unchanged")
                return False

            self.status = SaveStatusEnum.SAVING
            try:
                await self.persist_fn(snapshot)
            except AttemptStoreError as e:
                self.status = SaveStatusEnum.ERROR
                self.last_error = str(e)
                logger.warning(f"Autosave for attempt {self.attempt_id} failed, will retry: {e}")
                if raise_errors:
                    raise SaveFailedError("Progress could not be saved.", details={"attempt_id": self.attempt_id}) from e
                return False

            self._last_saved_payload = payload
            self.status = SaveStatusEnum.SAVED
            self.pending = self.snapshot_fn() != snapshot
            self.last_saved_at = self.now_fn()
            self.last_error = None
            self.write_count += 1
            logger.debug(f"Autosave for attempt {self.attempt_id} written ({self.write_count} writes)")
            return True

    def cancel(self):
        self._stopped = True
        if self.scheduler is None:
            return
        remove_job_quietly(self.scheduler, self.debounce_job_id)
        remove_job_quietly(self.scheduler, self.interval_job_id)

    def report(self) -> SaveStatusReport:
        return SaveStatusReport(
            status=self.status,
            pending=self.pending,
            last_saved_at=self.last_saved_at,
            last_error=self.last_error,
            write_count=self.write_count,
        )
