"""Pydantic schemas for request/response validation."""

from app.schemas.applications import (
    ApplicationDetail,
    ApplicationView,
    EnqueueResult,
    GeneratedResume,
    GenerateAndApplyJob,
    QueueStats,
    ReuseResumeJob,
)

__all__ = [
    "ApplicationDetail",
    "ApplicationView",
    "EnqueueResult",
    "GenerateAndApplyJob",
    "GeneratedResume",
    "QueueStats",
    "ReuseResumeJob",
]
