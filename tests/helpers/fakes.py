from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from apscheduler.jobstores.base import JobLookupError

from app.core.exceptions import AttemptStoreError


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 5, 14, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeJob:
    def __init__(self, func, trigger: str, kwargs: Dict[str, Any]):
        self.func = func
        self.trigger = trigger
        self.kwargs = kwargs


class FakeScheduler:
    """Records jobs by id the way APScheduler does; jobs only run when a test fires them."""

    def __init__(self):
        self.jobs: Dict[str, FakeJob] = {}
        self.added: List[str] = []

    def add_job(self, func, trigger, id=None, replace_existing=False, **kwargs):
        if id in self.jobs and not replace_existing:
            raise ValueError(f"Job {id} already exists")
        self.jobs[id] = FakeJob(func, trigger, kwargs)
        self.added.append(id)
        return self.jobs[id]

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    async def fire(self, job_id):
        job = self.jobs[job_id]
        if job.trigger == "date":
            del self.jobs[job_id]
        return await job.func()


class RecordingStore:
    """Wraps an AttemptStore, records update calls and can be told to fail them."""

    def __init__(self, inner):
        self.inner = inner
        self.updates: List[Dict[str, Any]] = []
        self.fail_updates = False

    async def create(self, attempt_in):
        return await self.inner.create(attempt_in)

    async def get(self, attempt_id):
        return await self.inner.get(attempt_id)

    async def list_by_user(self, user_id, status=None):
        return await self.inner.list_by_user(user_id, status)

    async def update(self, attempt_id, fields):
        if self.fail_updates:
            raise AttemptStoreError("record store unavailable")
        self.updates.append(dict(fields))
        return await self.inner.update(attempt_id, fields)
