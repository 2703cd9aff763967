"""Application services."""

from app.services.job_queue import ApplicationJobQueue
from app.services.queue_gateway import QueueGateway
from app.services.record_store import RecordStore
from app.services.submission_orchestrator import (
    PipelineReport,
    StepOutcome,
    StepResult,
    SubmissionOrchestrator,
)

__all__ = [
    "ApplicationJobQueue",
    "PipelineReport",
    "QueueGateway",
    "RecordStore",
    "StepOutcome",
    "StepResult",
    "SubmissionOrchestrator",
]
