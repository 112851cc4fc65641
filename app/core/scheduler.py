import logging
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.config import settings

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(job_defaults={"coalesce": True, "max_instances": 1})


def remove_job_quietly(job_scheduler, job_id: str):
    try:
        job_scheduler.remove_job(job_id)
    except JobLookupError:
        pass


def start_scheduler():
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started for autosave and countdown jobs")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
