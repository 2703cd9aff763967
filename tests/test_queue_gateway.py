"""Tests for the queue gateway."""

import pytest

from app.core.exceptions import (
    DuplicateApplicationError,
    ForbiddenError,
    InactiveVacancyError,
    NotFoundError,
    QueueError,
)
from app.models import ApplicationStatus
from app.schemas.applications import GenerateAndApplyJob, QueueInfo, ReuseResumeJob
from app.services.queue_gateway import QueueGateway


@pytest.fixture
def gateway(store, mock_job_queue):
    return QueueGateway(store, mock_job_queue)


class TestEnqueueGenerated:
    @pytest.mark.asyncio
    async def test_creates_queued_application_and_job(
        self, gateway, store, user, vacancy, mock_job_queue
    ):
        result = await gateway.enqueue_generated(user.id, vacancy.id, "Hello")

        assert result.job_id == "job-1"
        assert result.queue_position == 1
        assert result.status == "QUEUED"

        payload = mock_job_queue.enqueue.call_args.args[0]
        assert isinstance(payload, GenerateAndApplyJob)
        assert payload.cover_letter == "Hello"

        application = await store.get_application(payload.application_id)
        assert application.status == ApplicationStatus.QUEUED
        assert application.job_id == "job-1"
        assert application.cover_letter == "Hello"

    @pytest.mark.asyncio
    async def test_second_enqueue_conflicts(self, gateway, user, vacancy, mock_job_queue):
        await gateway.enqueue_generated(user.id, vacancy.id)

        with pytest.raises(DuplicateApplicationError):
            await gateway.enqueue_generated(user.id, vacancy.id)
        assert mock_job_queue.enqueue.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_vacancy(self, gateway, user, mock_job_queue):
        with pytest.raises(NotFoundError):
            await gateway.enqueue_generated(user.id, "nope")
        mock_job_queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_inactive_vacancy(self, gateway, store, user, archived_vacancy, mock_job_queue):
        with pytest.raises(InactiveVacancyError):
            await gateway.enqueue_generated(user.id, archived_vacancy.id)
        mock_job_queue.enqueue.assert_not_called()
        assert await store.find_application(user.id, archived_vacancy.id) is None

    @pytest.mark.asyncio
    async def test_queue_failure_removes_application(
        self, gateway, store, user, vacancy, mock_job_queue
    ):
        mock_job_queue.enqueue.side_effect = QueueError("Job queue unavailable")

        with pytest.raises(QueueError):
            await gateway.enqueue_generated(user.id, vacancy.id)

        assert await store.find_application(user.id, vacancy.id) is None


class TestEnqueueWithExistingResume:
    @pytest.mark.asyncio
    async def test_links_local_resume(self, gateway, store, user, vacancy, resume, mock_job_queue):
        await gateway.enqueue_with_existing_resume(user.id, vacancy.id, "hh-res-1")

        payload = mock_job_queue.enqueue.call_args.args[0]
        assert isinstance(payload, ReuseResumeJob)
        assert payload.resume_ref == "hh-res-1"

        application = await store.get_application(payload.application_id)
        assert application.resume_id == resume.id

    @pytest.mark.asyncio
    async def test_foreign_resume_is_not_found(
        self, gateway, other_user, vacancy, resume, mock_job_queue
    ):
        with pytest.raises(NotFoundError):
            await gateway.enqueue_with_existing_resume(other_user.id, vacancy.id, resume.id)
        mock_job_queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_inactive_vacancy(self, gateway, user, archived_vacancy, resume):
        with pytest.raises(InactiveVacancyError):
            await gateway.enqueue_with_existing_resume(user.id, archived_vacancy.id, resume.id)


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_applications_with_queue_info(
        self, gateway, store, user, vacancy, local_vacancy, mock_job_queue
    ):
        await gateway.enqueue_generated(user.id, vacancy.id)
        done = await store.create_application(user.id, local_vacancy.id)
        await store.update_application(done.id, status=ApplicationStatus.COMPLETED.value)
        mock_job_queue.get_queue_info.return_value = QueueInfo(
            job_id="job-1", position=1, state="waiting", progress=0
        )

        views = await gateway.list_applications(user.id)

        assert len(views) == 2
        by_vacancy = {view.vacancy_id: view for view in views}
        assert by_vacancy[vacancy.id].queue_info.position == 1
        assert by_vacancy[vacancy.id].vacancy.title == "Backend Developer"
        assert by_vacancy[local_vacancy.id].queue_info is None
        mock_job_queue.get_queue_info.assert_called_once_with("job-1")

    @pytest.mark.asyncio
    async def test_get_application_detail(self, gateway, user, vacancy, resume):
        await gateway.enqueue_with_existing_resume(user.id, vacancy.id, resume.id)
        application_id = (await gateway.list_applications(user.id))[0].id

        detail = await gateway.get_application(application_id, user.id)

        assert detail.vacancy.id == vacancy.id
        assert detail.resume.title == "Go Developer"

    @pytest.mark.asyncio
    async def test_get_application_checks_owner(self, gateway, user, other_user, vacancy):
        await gateway.enqueue_generated(user.id, vacancy.id)
        application_id = (await gateway.list_applications(user.id))[0].id

        with pytest.raises(ForbiddenError):
            await gateway.get_application(application_id, other_user.id)
        with pytest.raises(NotFoundError):
            await gateway.get_application("missing", user.id)

    @pytest.mark.asyncio
    async def test_queue_stats_sum_to_total(self, gateway):
        stats = await gateway.get_queue_stats()
        assert stats.total == (
            stats.waiting + stats.active + stats.completed + stats.failed + stats.delayed
        )


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_queued_application(self, gateway, user, vacancy, mock_job_queue):
        await gateway.enqueue_generated(user.id, vacancy.id)
        application_id = (await gateway.list_applications(user.id))[0].id

        response = await gateway.cancel(application_id, user.id)

        assert response.message == "Application cancelled successfully"
        mock_job_queue.remove.assert_called_once_with("job-1")
        with pytest.raises(NotFoundError):
            await gateway.get_application(application_id, user.id)
        with pytest.raises(NotFoundError):
            await gateway.cancel(application_id, user.id)

    @pytest.mark.asyncio
    async def test_cancel_active_job_still_deletes_record(
        self, gateway, store, user, vacancy, mock_job_queue
    ):
        mock_job_queue.remove.return_value = False
        await gateway.enqueue_generated(user.id, vacancy.id)
        application_id = (await gateway.list_applications(user.id))[0].id

        await gateway.cancel(application_id, user.id)

        assert await store.get_application(application_id) is None

    @pytest.mark.asyncio
    async def test_cancel_foreign_application(
        self, gateway, store, user, other_user, vacancy, mock_job_queue
    ):
        await gateway.enqueue_generated(user.id, vacancy.id)
        application_id = (await gateway.list_applications(user.id))[0].id

        with pytest.raises(ForbiddenError):
            await gateway.cancel(application_id, other_user.id)

        mock_job_queue.remove.assert_not_called()
        assert await store.get_application(application_id) is not None
