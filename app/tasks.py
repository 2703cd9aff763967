"""Background tasks for application processing.

Application jobs are stored in an RQ (Redis Queue) queue by the queue gateway
and executed here by an RQ worker. Each job runs the submission pipeline
for one application; a failing job is re-raised so RQ retries it with
backoff.
"""

import asyncio
import logging
import os
from typing import Any

from redis.exceptions import RedisError
from rq import Queue, Worker, get_current_job
from rq.job import Job

from app.core.config import settings
from app.core.redis_client import get_redis
from app.core.storage import TokenStorage, engine
from app.schemas.applications import parse_job_payload
from app.services.hh_client import HHClient
from app.services.hh_tokens import HHTokenProvider
from app.services.llm.factory import get_llm_provider
from app.services.record_store import RecordStore
from app.services.submission_orchestrator import ProgressReporter, SubmissionOrchestrator

logger = logging.getLogger(__name__)


def build_orchestrator(hh_client: HHClient) -> SubmissionOrchestrator:
    """Wire the orchestrator with its production collaborators."""
    return SubmissionOrchestrator(
        store=RecordStore(),
        hh_client=hh_client,
        llm_provider=get_llm_provider(),
        token_provider=HHTokenProvider(hh_client, TokenStorage()),
    )


def job_progress_reporter(job: Job | None) -> ProgressReporter:
    """Progress callback storing the value in the job's meta."""

    async def report(value: int) -> None:
        if job is None:
            return
        job.meta["progress"] = value
        try:
            job.save_meta()
        except RedisError as e:
            logger.warning(f"Could not save progress of job {job.id}: {e}")

    return report


async def _run_pipeline(payload: dict[str, Any], job: Job | None) -> dict[str, Any]:
    job_payload = parse_job_payload(payload)
    final_attempt = job is None or not job.retries_left
    try:
        async with HHClient() as hh_client:
            orchestrator = build_orchestrator(hh_client)
            report = await orchestrator.run(
                job_payload,
                job_progress_reporter(job),
                final_attempt=final_attempt,
            )
            return report.to_dict()
    finally:
        # connections are bound to this event loop, which asyncio.run closes
        await engine.dispose()


def process_application_job(payload: dict[str, Any]) -> dict[str, Any]:
    """Process one application job in the worker.

    Args:
        payload: Serialized GenerateAndApplyJob or ReuseResumeJob

    Returns:
        Pipeline report as a dict, stored by RQ as the job result
    """
    job = get_current_job()
    job_id = job.id if job else "inline"
    logger.info(f"Job {job_id}: {payload.get('kind')} for application {payload.get('application_id')}")

    try:
        result = asyncio.run(_run_pipeline(payload, job))
    except Exception as e:
        retries_left = job.retries_left if job else None
        logger.error(f"Job {job_id} failed ({retries_left or 0} retries left): {e!s}")
        raise

    logger.info(f"Job {job_id} finished: {result['status']}")
    return result


# Worker Configuration
def start_worker(burst: bool = False):
    """Start an RQ worker for application jobs.

    The scheduler is enabled so that delayed retries are re-queued.

    Args:
        burst: If True, worker will exit when queue is empty
    """
    logger.info(f"Starting worker for queue '{settings.queue_name}'")

    connection = get_redis()
    worker = Worker(
        [Queue(settings.queue_name, connection=connection)],
        connection=connection,
    )

    worker.work(burst=burst, with_scheduler=True)


if __name__ == "__main__":
    import sys

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    start_worker(burst="--burst" in sys.argv)
