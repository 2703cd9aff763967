"""RQ-backed queue for application jobs."""

import logging

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Retry
from rq.exceptions import NoSuchJobError
from rq.job import Job

from app.core.config import settings
from app.core.exceptions import QueueError
from app.core.redis_client import get_redis
from app.schemas.applications import (
    GenerateAndApplyJob,
    QueueInfo,
    QueueStats,
    ReuseResumeJob,
)

logger = logging.getLogger(__name__)

TASK_PATH = "app.tasks.process_application_job"

# RQ job status -> lifecycle state reported to users
JOB_STATES = {
    "queued": "waiting",
    "started": "active",
    "scheduled": "delayed",
    "deferred": "delayed",
    "finished": "completed",
    "failed": "failed",
    "stopped": "failed",
    "canceled": "cancelled",
}
LIVE_STATES = {"waiting", "active", "delayed"}
REMOVABLE_STATES = {"waiting", "delayed"}


def backoff_intervals(max_attempts: int, base_seconds: int) -> list[int]:
    """Exponential delays between attempts, e.g. 3 attempts from 2s -> [2, 4]."""
    return [base_seconds * 2**i for i in range(max_attempts - 1)]


class ApplicationJobQueue:
    """Durable queue of application jobs with retry/backoff and introspection."""

    def __init__(
        self,
        queue: Queue,
        max_attempts: int = 3,
        backoff_seconds: int = 2,
        job_timeout: str | int = "10m",
        result_ttl: int = 86400 * 7,
        failure_ttl: int = 86400 * 7,
    ):
        self.queue = queue
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.job_timeout = job_timeout
        self.result_ttl = result_ttl
        self.failure_ttl = failure_ttl

    @classmethod
    def from_settings(cls, connection: Redis | None = None) -> "ApplicationJobQueue":
        queue = Queue(settings.queue_name, connection=connection or get_redis())
        return cls(
            queue,
            max_attempts=settings.queue_max_attempts,
            backoff_seconds=settings.queue_backoff_seconds,
            job_timeout=settings.queue_job_timeout,
            result_ttl=settings.queue_result_ttl,
            failure_ttl=settings.queue_failure_ttl,
        )

    @property
    def name(self) -> str:
        return self.queue.name

    def _retry_policy(self) -> Retry | None:
        if self.max_attempts <= 1:
            return None
        return Retry(
            max=self.max_attempts - 1,
            interval=backoff_intervals(self.max_attempts, self.backoff_seconds),
        )

    def enqueue(self, payload: GenerateAndApplyJob | ReuseResumeJob) -> str:
        """Enqueue a job and return its ID."""
        try:
            job = self.queue.enqueue(
                TASK_PATH,
                payload.model_dump(),
                job_timeout=self.job_timeout,
                result_ttl=self.result_ttl,
                failure_ttl=self.failure_ttl,
                retry=self._retry_policy(),
                description=f"{payload.kind} for application {payload.application_id}",
                meta={"application_id": payload.application_id, "progress": 0},
            )
        except RedisError as e:
            logger.error(f"Failed to enqueue application {payload.application_id}: {e}")
            raise QueueError(f"Job queue unavailable: {e!s}") from e

        logger.info(f"Enqueued job {job.id} ({payload.kind}) for application {payload.application_id}")
        return job.id

    def fetch_job(self, job_id: str) -> Job | None:
        try:
            return Job.fetch(job_id, connection=self.queue.connection)
        except NoSuchJobError:
            return None
        except RedisError as e:
            raise QueueError(f"Job queue unavailable: {e!s}") from e

    @staticmethod
    def job_state(job: Job) -> str:
        status = job.get_status()
        if status is None:
            return "unknown"
        return JOB_STATES.get(str(getattr(status, "value", status)), "unknown")

    def position(self, job_id: str) -> int | None:
        """1-based position among waiting jobs, None when not waiting."""
        try:
            index = self.queue.get_job_position(job_id)
        except RedisError as e:
            raise QueueError(f"Job queue unavailable: {e!s}") from e
        return index + 1 if index is not None else None

    def get_queue_info(self, job_id: str | None) -> QueueInfo | None:
        """Position, state and progress of a job that is still live."""
        if not job_id:
            return None
        job = self.fetch_job(job_id)
        if job is None:
            return None

        state = self.job_state(job)
        if state not in LIVE_STATES:
            return None

        return QueueInfo(
            job_id=job.id,
            position=self.position(job.id) if state == "waiting" else None,
            state=state,
            progress=int(job.meta.get("progress", 0)),
        )

    def is_live(self, job_id: str | None) -> bool:
        if not job_id:
            return False
        job = self.fetch_job(job_id)
        return job is not None and self.job_state(job) in LIVE_STATES

    def remove(self, job_id: str | None) -> bool:
        """Delete a job that has not started. Active jobs are left to finish."""
        if not job_id:
            return False
        job = self.fetch_job(job_id)
        if job is None:
            return False

        state = self.job_state(job)
        if state not in REMOVABLE_STATES:
            logger.info(f"Job {job_id} is {state}, not removing it")
            return False

        try:
            job.delete()
        except RedisError as e:
            raise QueueError(f"Failed to remove job {job_id}: {e!s}") from e
        logger.info(f"Job {job_id} removed from queue")
        return True

    def stats(self) -> QueueStats:
        try:
            waiting = len(self.queue)
            active = len(self.queue.started_job_registry)
            completed = len(self.queue.finished_job_registry)
            failed = len(self.queue.failed_job_registry)
            delayed = len(self.queue.scheduled_job_registry) + len(
                self.queue.deferred_job_registry
            )
        except RedisError as e:
            raise QueueError(f"Job queue unavailable: {e!s}") from e

        return QueueStats(
            waiting=waiting,
            active=active,
            completed=completed,
            failed=failed,
            delayed=delayed,
            total=waiting + active + completed + failed + delayed,
        )

    def cleanup_registries(self) -> dict[str, int]:
        """Drop expired entries from the finished, failed and started registries."""
        registries = {
            "finished": self.queue.finished_job_registry,
            "failed": self.queue.failed_job_registry,
            "started": self.queue.started_job_registry,
        }
        removed = {}
        for name, registry in registries.items():
            before = len(registry)
            registry.cleanup()
            removed[name] = before - len(registry)
        logger.info(f"Queue registries cleaned: {removed}")
        return removed
