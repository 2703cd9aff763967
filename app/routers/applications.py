"""API routes for queued AI applications."""

import asyncio
import json

from fastapi import APIRouter, Depends, Header, Request, status
from sse_starlette.sse import EventSourceResponse

from app.core.config import settings
from app.core.exceptions import (
    ApplicationError,
    NotFoundError,
    to_http_exception,
    unauthorized_exception,
)
from app.models.application import ApplicationStatus
from app.schemas.applications import (
    ApplicationDetail,
    ApplicationView,
    CancelResponse,
    EnqueueResult,
    QueueApplicationRequest,
    QueueStats,
    SimpleApplyRequest,
)
from app.services.job_queue import ApplicationJobQueue
from app.services.queue_gateway import QueueGateway
from app.services.record_store import RecordStore

router = APIRouter(prefix="/ai-applications", tags=["ai-applications"])


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """User ID set by the authentication layer in front of the API."""
    if not x_user_id:
        raise unauthorized_exception("Missing X-User-Id header")
    return x_user_id


def get_queue_gateway() -> QueueGateway:
    """Create the queue gateway with its dependencies."""
    return QueueGateway(RecordStore(), ApplicationJobQueue.from_settings())


@router.post("/queue", response_model=EnqueueResult, status_code=status.HTTP_201_CREATED)
async def queue_application(
    request: QueueApplicationRequest,
    user_id: str = Depends(get_current_user_id),
    gateway: QueueGateway = Depends(get_queue_gateway),
):
    """Queue an application that generates a resume tailored to the vacancy."""
    try:
        return await gateway.enqueue_generated(
            user_id, request.vacancy_id, request.cover_letter
        )
    except ApplicationError as e:
        raise to_http_exception(e) from e


@router.post(
    "/simple-apply", response_model=EnqueueResult, status_code=status.HTTP_201_CREATED
)
async def simple_apply(
    request: SimpleApplyRequest,
    user_id: str = Depends(get_current_user_id),
    gateway: QueueGateway = Depends(get_queue_gateway),
):
    """Queue an application with one of the user's existing resumes."""
    try:
        return await gateway.enqueue_with_existing_resume(
            user_id, request.vacancy_id, request.resume_id
        )
    except ApplicationError as e:
        raise to_http_exception(e) from e


@router.get("/", response_model=list[ApplicationView])
async def list_applications(
    user_id: str = Depends(get_current_user_id),
    gateway: QueueGateway = Depends(get_queue_gateway),
):
    try:
        return await gateway.list_applications(user_id)
    except ApplicationError as e:
        raise to_http_exception(e) from e


@router.get("/queue/stats", response_model=QueueStats)
async def queue_stats(
    user_id: str = Depends(get_current_user_id),
    gateway: QueueGateway = Depends(get_queue_gateway),
):
    """Job counts per queue state."""
    try:
        return await gateway.get_queue_stats()
    except ApplicationError as e:
        raise to_http_exception(e) from e


@router.get("/{application_id}", response_model=ApplicationDetail)
async def get_application(
    application_id: str,
    user_id: str = Depends(get_current_user_id),
    gateway: QueueGateway = Depends(get_queue_gateway),
):
    try:
        return await gateway.get_application(application_id, user_id)
    except ApplicationError as e:
        raise to_http_exception(e) from e


@router.get("/{application_id}/events")
async def application_events(
    application_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    gateway: QueueGateway = Depends(get_queue_gateway),
):
    """Stream status and progress of an application via Server-Sent Events.

    The stream ends once the application is completed, failed or cancelled.
    """
    try:
        await gateway.get_application(application_id, user_id)
    except ApplicationError as e:
        raise to_http_exception(e) from e

    async def event_generator():
        last = None
        while not await request.is_disconnected():
            try:
                detail = await gateway.get_application(application_id, user_id)
            except NotFoundError:
                yield {"event": "cancelled", "data": json.dumps({"id": application_id})}
                return

            info = detail.queue_info
            snapshot = {
                "id": detail.id,
                "status": detail.status,
                "state": info.state if info else None,
                "position": info.position if info else None,
                "progress": info.progress if info else None,
                "failed_reason": detail.failed_reason,
            }
            if snapshot != last:
                yield {"event": "progress", "data": json.dumps(snapshot, ensure_ascii=False)}
                last = snapshot

            if ApplicationStatus(detail.status).is_terminal:
                yield {"event": "done", "data": json.dumps(snapshot, ensure_ascii=False)}
                return

            await asyncio.sleep(settings.progress_poll_seconds)

    return EventSourceResponse(event_generator())


@router.delete("/{application_id}", response_model=CancelResponse)
async def cancel_application(
    application_id: str,
    user_id: str = Depends(get_current_user_id),
    gateway: QueueGateway = Depends(get_queue_gateway),
):
    """Cancel a queued application and delete it."""
    try:
        return await gateway.cancel(application_id, user_id)
    except ApplicationError as e:
        raise to_http_exception(e) from e
