"""Periodic housekeeping for the application queue."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import QueueError
from app.models.application import ApplicationStatus
from app.services.job_queue import ApplicationJobQueue
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)

LOST_JOB_REASON = "Queue job lost"


def _now() -> datetime:
    """Get current time as UTC naive datetime for DB storage."""
    return datetime.now(UTC).replace(tzinfo=None)


class QueueMaintenanceService:
    """Cleans queue registries and fails applications whose job disappeared."""

    JOB_ID = "queue_maintenance"

    def __init__(
        self,
        store: RecordStore | None = None,
        job_queue: ApplicationJobQueue | None = None,
        interval_minutes: int | None = None,
        stale_after_minutes: int | None = None,
    ):
        self._store = store
        self._job_queue = job_queue
        self.interval_minutes = interval_minutes or settings.maintenance_interval_minutes
        self.stale_after_minutes = stale_after_minutes or settings.stale_application_minutes
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def store(self) -> RecordStore:
        if self._store is None:
            self._store = RecordStore()
        return self._store

    @property
    def job_queue(self) -> ApplicationJobQueue:
        if self._job_queue is None:
            self._job_queue = ApplicationJobQueue.from_settings()
        return self._job_queue

    async def start(self):
        """Start the maintenance scheduler."""
        if self._scheduler is not None and self._scheduler.running:
            logger.info("Queue maintenance already running")
            return

        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=self.JOB_ID,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(f"Queue maintenance scheduled every {self.interval_minutes} min")

    async def stop(self):
        """Stop the maintenance scheduler."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Queue maintenance stopped")

    async def run_once(self) -> dict:
        """One maintenance pass; failures are logged and retried next interval."""
        result: dict = {}
        try:
            result["cleaned"] = await self.cleanup_registries()
        except RedisError as e:
            logger.error(f"Queue registry cleanup failed: {e}")
        try:
            result["reconciled"] = await self.reconcile_stale_applications()
        except (QueueError, SQLAlchemyError) as e:
            logger.error(f"Stale application reconciliation failed: {e}")
        return result

    async def cleanup_registries(self) -> dict[str, int]:
        return await asyncio.to_thread(self.job_queue.cleanup_registries)

    async def reconcile_stale_applications(self) -> int:
        """Mark FAILED the queued/processing applications whose job is gone.

        Returns:
            Number of applications marked FAILED
        """
        cutoff = _now() - timedelta(minutes=self.stale_after_minutes)
        stale = await self.store.list_stale_applications(cutoff)

        failed = 0
        for application in stale:
            if await asyncio.to_thread(self.job_queue.is_live, application.job_id):
                continue
            updated = await self.store.update_application(
                application.id,
                status=ApplicationStatus.FAILED.value,
                failed_reason=LOST_JOB_REASON,
            )
            if updated:
                failed += 1
                logger.warning(
                    f"Application {application.id} stuck in {application.status}, "
                    f"job {application.job_id} is gone; marked FAILED"
                )

        if failed:
            logger.info(f"Reconciled {failed} stale applications")
        return failed

    def get_status(self) -> dict:
        if self._scheduler is None:
            return {"scheduler_running": False, "next_run": None}

        job = self._scheduler.get_job(self.JOB_ID)
        return {
            "scheduler_running": self._scheduler.running,
            "next_run": job.next_run_time.isoformat() if job and job.next_run_time else None,
        }


# Global instance
maintenance_service = QueueMaintenanceService()
