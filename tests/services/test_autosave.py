import asyncio
from datetime import timedelta
import pytest

from app.core.constants import SaveStatusEnum
from app.core.exceptions import AttemptStoreError, SaveFailedError
from app.services.autosave import AutosaveScheduler
from tests.helpers.fakes import FakeClock, FakeScheduler


class Harness:
    def __init__(self, scheduler=None):
        self.state = {"answers": {}, "flagged": [], "integrity_events": {}}
        self.writes = []
        self.active = True
        self.fail = False
        self.clock = FakeClock()
        self.autosave = AutosaveScheduler(
            attempt_id="attempt-1",
            snapshot_fn=self.snapshot,
            persist_fn=self.persist,
            is_active_fn=lambda: self.active,
            lock=asyncio.Lock(),
            scheduler=scheduler,
            debounce_seconds=2,
            interval_seconds=30,
            now_fn=self.clock,
            initial_snapshot=self.snapshot(),
        )
        self.autosave.start()

    def snapshot(self):
        return {
            "answers": dict(self.state["answers"]),
            "flagged": list(self.state["flagged"]),
            "integrity_events": dict(self.state["integrity_events"]),
        }

    async def persist(self, snapshot):
        if self.fail:
            raise AttemptStoreError("connection reset")
        self.writes.append(snapshot)

    def answer(self, question_id, value):
        self.state["answers"][question_id] = value
        self.autosave.notify_change()


def test_start_registers_interval_job():
    scheduler = FakeScheduler()
    Harness(scheduler)
    job = scheduler.get_job("autosave-interval:attempt-1")
    assert job.trigger == "interval"
    assert job.kwargs["seconds"] == 30


@pytest.mark.asyncio
async def test_rapid_changes_collapse_into_one_write():
    scheduler = FakeScheduler()
    harness = Harness(scheduler)

    for value in ["A", "B", "C", "D", "B"]:
        harness.answer("q1", value)

    debounce_jobs = [job_id for job_id in scheduler.jobs if job_id.startswith("autosave-debounce")]
    assert debounce_jobs == ["autosave-debounce:attempt-1"]
    assert scheduler.jobs["autosave-debounce:attempt-1"].kwargs["run_date"] == harness.clock() + timedelta(seconds=2)

    await scheduler.fire("autosave-debounce:attempt-1")

    assert len(harness.writes) == 1
    assert harness.writes[0]["answers"] == {"q1": "B"}
    assert harness.autosave.status == SaveStatusEnum.SAVED
    assert harness.autosave.pending is False


@pytest.mark.asyncio
async def test_unchanged_state_is_not_written_again():
    harness = Harness()
    assert await harness.autosave.flush() is False
    assert harness.writes == []

    harness.answer("q1", "A")
    assert await harness.autosave.flush() is True
    assert await harness.autosave.flush() is False
    assert len(harness.writes) == 1


@pytest.mark.asyncio
async def test_failed_write_reports_error_and_retries_next_cycle():
    scheduler = FakeScheduler()
    harness = Harness(scheduler)
    harness.answer("q1", "A")
    harness.fail = True

    assert await scheduler.fire("autosave-debounce:attempt-1") is False
    assert harness.autosave.status == SaveStatusEnum.ERROR
    assert "connection reset" in harness.autosave.report().last_error

    harness.fail = False
    assert await scheduler.fire("autosave-interval:attempt-1") is True
    report = harness.autosave.report()
    assert report.status == SaveStatusEnum.SAVED
    assert report.write_count == 1
    assert report.last_error is None


@pytest.mark.asyncio
async def test_manual_flush_raises_save_failed():
    harness = Harness()
    harness.answer("q1", "A")
    harness.fail = True
    with pytest.raises(SaveFailedError):
        await harness.autosave.flush(raise_errors=True)
    assert harness.autosave.status == SaveStatusEnum.ERROR


@pytest.mark.asyncio
async def test_no_write_once_session_is_inactive():
    scheduler = FakeScheduler()
    harness = Harness(scheduler)
    harness.answer("q1", "A")
    harness.active = False

    await scheduler.fire("autosave-debounce:attempt-1")
    assert harness.writes == []


@pytest.mark.asyncio
async def test_cancel_removes_jobs_and_blocks_flush():
    scheduler = FakeScheduler()
    harness = Harness(scheduler)
    harness.answer("q1", "A")

    harness.autosave.cancel()
    assert scheduler.jobs == {}
    harness.answer("q2", "B")
    assert scheduler.jobs == {}
    assert await harness.autosave.flush() is False
    assert harness.writes == []


@pytest.mark.asyncio
async def test_flush_waits_for_lock_holder():
    harness = Harness()
    harness.answer("q1", "A")

    async with harness.autosave.lock:
        pending = asyncio.create_task(harness.autosave.flush())
        await asyncio.sleep(0)
        assert not pending.done()
        harness.active = False

    assert await pending is False
    assert harness.writes == []
