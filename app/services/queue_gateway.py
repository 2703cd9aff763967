"""Entry point for queueing applications and inspecting their progress."""

import asyncio
import logging

from app.core.exceptions import (
    DuplicateApplicationError,
    ForbiddenError,
    InactiveVacancyError,
    NotFoundError,
    QueueError,
)
from app.models.application import Application, ApplicationStatus
from app.models.vacancy import Vacancy
from app.schemas.applications import (
    ApplicationDetail,
    ApplicationView,
    CancelResponse,
    EnqueueResult,
    GenerateAndApplyJob,
    QueueStats,
    ReuseResumeJob,
)
from app.services.job_queue import ApplicationJobQueue
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class QueueGateway:
    """Creates applications, enqueues their jobs and reports on them.

    Enqueue only touches the database and Redis; all HH.ru and LLM work
    happens later in the worker.
    """

    def __init__(self, store: RecordStore, job_queue: ApplicationJobQueue):
        self.store = store
        self.job_queue = job_queue

    async def _active_vacancy(self, vacancy_id: str) -> Vacancy:
        vacancy = await self.store.get_vacancy(vacancy_id)
        if vacancy is None:
            raise NotFoundError("Vacancy", vacancy_id)
        if not vacancy.is_active:
            raise InactiveVacancyError(vacancy_id, vacancy.status)
        return vacancy

    async def _ensure_not_applied(self, user_id: str, vacancy_id: str) -> None:
        if await self.store.find_application(user_id, vacancy_id) is not None:
            raise DuplicateApplicationError(user_id, vacancy_id)

    async def _enqueue(
        self, application: Application, payload: GenerateAndApplyJob | ReuseResumeJob
    ) -> EnqueueResult:
        """Enqueue the job and link it, removing the application if enqueue fails."""
        try:
            job_id = await asyncio.to_thread(self.job_queue.enqueue, payload)
        except QueueError:
            await self.store.delete_application(application.id)
            logger.error(f"Application {application.id} rolled back, job was not enqueued")
            raise

        await self.store.update_application(application.id, job_id=job_id)
        position = await asyncio.to_thread(self.job_queue.position, job_id)
        logger.info(
            f"Application {application.id} queued as job {job_id} (position {position})"
        )
        return EnqueueResult(
            job_id=job_id,
            queue_position=position,
            status=ApplicationStatus.QUEUED.value,
        )

    async def enqueue_generated(
        self, user_id: str, vacancy_id: str, cover_letter: str | None = None
    ) -> EnqueueResult:
        """Queue an application that generates a tailored resume first.

        Raises:
            NotFoundError: vacancy does not exist
            ConflictError: vacancy is inactive or the user already applied
            QueueError: the queue is unavailable
        """
        await self._active_vacancy(vacancy_id)
        await self._ensure_not_applied(user_id, vacancy_id)

        application = await self.store.create_application(
            user_id=user_id, vacancy_id=vacancy_id, cover_letter=cover_letter
        )
        payload = GenerateAndApplyJob(
            application_id=application.id,
            user_id=user_id,
            vacancy_id=vacancy_id,
            cover_letter=cover_letter,
        )
        return await self._enqueue(application, payload)

    async def enqueue_with_existing_resume(
        self, user_id: str, vacancy_id: str, resume_ref: str
    ) -> EnqueueResult:
        """Queue an application that reuses one of the user's resumes.

        ``resume_ref`` may be the local resume ID or its HH.ru ID.
        """
        await self._active_vacancy(vacancy_id)

        resume = await self.store.find_resume(user_id, resume_ref)
        if resume is None:
            raise NotFoundError("Resume", resume_ref)

        await self._ensure_not_applied(user_id, vacancy_id)

        application = await self.store.create_application(
            user_id=user_id, vacancy_id=vacancy_id, resume_id=resume.id
        )
        payload = ReuseResumeJob(
            application_id=application.id,
            user_id=user_id,
            vacancy_id=vacancy_id,
            resume_ref=resume_ref,
        )
        return await self._enqueue(application, payload)

    async def list_applications(self, user_id: str) -> list[ApplicationView]:
        applications = await self.store.list_applications(user_id)
        views = []
        for application in applications:
            view = ApplicationView.model_validate(application)
            if not ApplicationStatus(application.status).is_terminal:
                view.queue_info = await asyncio.to_thread(
                    self.job_queue.get_queue_info, application.job_id
                )
            views.append(view)
        return views

    async def _owned_application(
        self, application_id: str, user_id: str, with_relations: bool = False
    ) -> Application:
        application = await self.store.get_application(
            application_id, with_relations=with_relations
        )
        if application is None:
            raise NotFoundError("Application", application_id)
        if application.user_id != user_id:
            raise ForbiddenError("Access denied to this application")
        return application

    async def get_application(self, application_id: str, user_id: str) -> ApplicationDetail:
        """Application with its vacancy, resume and live queue state.

        Raises:
            NotFoundError: no such application
            ForbiddenError: application belongs to another user
        """
        application = await self._owned_application(
            application_id, user_id, with_relations=True
        )
        detail = ApplicationDetail.model_validate(application)
        if not ApplicationStatus(application.status).is_terminal:
            detail.queue_info = await asyncio.to_thread(
                self.job_queue.get_queue_info, application.job_id
            )
        return detail

    async def get_queue_stats(self) -> QueueStats:
        return await asyncio.to_thread(self.job_queue.stats)

    async def cancel(self, application_id: str, user_id: str) -> CancelResponse:
        """Remove a pending job and delete the application."""
        application = await self._owned_application(application_id, user_id)

        removed = await asyncio.to_thread(self.job_queue.remove, application.job_id)
        if not removed and application.job_id:
            logger.info(
                f"Job {application.job_id} of application {application_id} "
                f"was not removed, leaving it to finish"
            )

        await self.store.delete_application(application_id)
        logger.info(f"Application {application_id} cancelled by user {user_id}")
        return CancelResponse(message="Application cancelled successfully")
