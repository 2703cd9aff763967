"""Submission pipeline run by the queue worker for each application job.

Two pipelines exist:

* generate-and-apply: the LLM writes a resume tailored to the vacancy, the
  resume is created, filled and published on HH.ru, a cover letter is written
  and the application is submitted;
* reuse-resume: an existing resume is used and only the cover letter is
  generated.

Every step ends in a ``StepResult`` (ok / warning / fatal) collected in a
``PipelineReport``. A fatal step stores the error on the application and
raises ``PipelineError`` so the queue retries the whole job. The application
is marked FAILED only when the queue has no attempts left.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    InactiveVacancyError,
    NotFoundError,
    PipelineError,
    UpstreamError,
)
from app.models.application import ApplicationStatus
from app.models.user import User
from app.models.vacancy import Vacancy
from app.schemas.applications import GeneratedResume, GenerateAndApplyJob, ReuseResumeJob
from app.services.hh_client import HHClient
from app.services.hh_tokens import HHTokenProvider
from app.services.llm.base import LLMError, LLMProvider
from app.services.prompt_builder import (
    applicant_context,
    profile_context,
    resume_context,
    vacancy_context,
)
from app.services.record_store import RecordStore
from app.utils.validators import validate_cover_letter, validate_generated_resume

logger = logging.getLogger(__name__)

ProgressReporter = Callable[[int], Awaitable[None]]

# HH.ru dictionary IDs sent with every generated resume
DEFAULT_AREA_ID = "1"
DEFAULT_PROFESSIONAL_ROLE_ID = "96"  # programmer, developer
DEFAULT_SCHEDULES = [{"id": "fullDay"}]
DEFAULT_EMPLOYMENTS = [{"id": "full"}]


class StepOutcome(StrEnum):
    OK = "ok"
    WARNING = "warning"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepResult:
    step: str
    outcome: StepOutcome
    reason: str | None = None


@dataclass
class PipelineReport:
    """What happened to one job attempt."""

    application_id: str
    kind: str
    status: str = "running"
    steps: list[StepResult] = field(default_factory=list)
    current_step: str | None = None
    resume_id: str | None = None
    hh_resume_id: str | None = None

    def begin(self, step: str) -> None:
        self.current_step = step

    def ok(self, reason: str | None = None) -> None:
        self.steps.append(StepResult(self.current_step, StepOutcome.OK, reason))

    def warning(self, reason: str) -> None:
        self.steps.append(StepResult(self.current_step, StepOutcome.WARNING, reason))

    def fatal(self, reason: str) -> None:
        self.steps.append(StepResult(self.current_step, StepOutcome.FATAL, reason))

    def outcome_of(self, step: str) -> StepOutcome | None:
        for result in self.steps:
            if result.step == step:
                return result.outcome
        return None

    @property
    def warnings(self) -> list[StepResult]:
        return [r for r in self.steps if r.outcome == StepOutcome.WARNING]

    def to_dict(self) -> dict[str, Any]:
        return {
            "application_id": self.application_id,
            "kind": self.kind,
            "status": self.status,
            "resume_id": self.resume_id,
            "hh_resume_id": self.hh_resume_id,
            "steps": [
                {"step": r.step, "outcome": r.outcome.value, "reason": r.reason}
                for r in self.steps
            ],
        }


class _MonotonicProgress:
    """Forwards progress checkpoints, dropping values that would go backwards."""

    def __init__(self, reporter: ProgressReporter | None):
        self._reporter = reporter
        self.value = 0

    async def __call__(self, value: int) -> None:
        value = max(0, min(100, value))
        if value <= self.value:
            return
        self.value = value
        if self._reporter is not None:
            await self._reporter(value)


def build_resume_draft_payload(hh_vacancy_id: str | None) -> dict[str, Any]:
    """Payload for creating a resume; ties it to the vacancy when it is on HH.ru."""
    payload: dict[str, Any] = {
        "entry_point": "vacancy_response" if hh_vacancy_id else "default",
        "update_profile": True,
    }
    if hh_vacancy_id:
        payload["vacancy_id"] = int(hh_vacancy_id) if hh_vacancy_id.isdigit() else hh_vacancy_id
    return payload


def build_resume_update_payload(generated: GeneratedResume) -> dict[str, Any]:
    """Full resume content; the create call only accepts a partial profile."""
    return {
        "current_screen_id": "experience",
        "resume": {
            "title": generated.title,
            "skill_set": generated.skills,
            "experience": [
                {
                    "company": exp.company or "Не указано",
                    "position": exp.position or generated.title,
                    "description": exp.description or "Опыт работы на указанной позиции",
                    "start": exp.start,
                    "end": exp.end,
                    "area": {"id": DEFAULT_AREA_ID},
                }
                for exp in generated.experience
            ],
            "schedules": DEFAULT_SCHEDULES,
            "employments": DEFAULT_EMPLOYMENTS,
            "professional_roles": [{"id": DEFAULT_PROFESSIONAL_ROLE_ID}],
        },
        "additional_properties": {},
    }


class SubmissionOrchestrator:
    """Drives one application job through its pipeline."""

    def __init__(
        self,
        store: RecordStore,
        hh_client: HHClient,
        llm_provider: LLMProvider,
        token_provider: HHTokenProvider,
    ):
        self.store = store
        self.hh_client = hh_client
        self.llm_provider = llm_provider
        self.token_provider = token_provider

    async def run(
        self,
        payload: GenerateAndApplyJob | ReuseResumeJob,
        report_progress: ProgressReporter | None = None,
        final_attempt: bool = True,
    ) -> PipelineReport:
        """Run the pipeline for one job attempt.

        Raises:
            PipelineError: a step failed; the queue should retry the job
        """
        progress = _MonotonicProgress(report_progress)
        report = PipelineReport(application_id=payload.application_id, kind=payload.kind)

        logger.info(
            f"Processing {payload.kind} job: application={payload.application_id}, "
            f"user={payload.user_id}, vacancy={payload.vacancy_id}"
        )

        report.begin("mark_processing")
        marked = await self.store.update_application(
            payload.application_id, status=ApplicationStatus.PROCESSING.value
        )
        if not marked:
            logger.warning(
                f"Application {payload.application_id} is gone or already finished, skipping job"
            )
            report.ok("application missing or finished")
            report.status = "skipped"
            return report
        report.ok()
        await progress(10)

        try:
            match payload:
                case GenerateAndApplyJob():
                    await self._generate_and_apply(payload, report, progress)
                case ReuseResumeJob():
                    await self._reuse_resume(payload, report, progress)
        except Exception as e:
            reason = str(e) or e.__class__.__name__
            report.fatal(reason)
            report.status = "failed"
            logger.error(
                f"Application {payload.application_id} failed at step "
                f"'{report.current_step}': {reason}"
            )
            await self._record_failure(payload.application_id, reason, final_attempt)
            raise PipelineError(report.current_step, reason, report) from e

        return report

    async def _record_failure(
        self, application_id: str, reason: str, final_attempt: bool
    ) -> None:
        values: dict[str, Any] = {"failed_reason": reason}
        if final_attempt:
            values["status"] = ApplicationStatus.FAILED.value
        try:
            updated = await self.store.update_application(application_id, **values)
        except SQLAlchemyError as db_error:
            logger.error(f"Failed to store failure of application {application_id}: {db_error}")
            return

        if not updated:
            logger.info(f"Application {application_id} no longer exists, failure not stored")
        elif final_attempt:
            logger.info(f"Application {application_id} marked FAILED")
        else:
            logger.info(f"Application {application_id} will be retried")

    async def _load_vacancy(self, vacancy_id: str, require_active: bool) -> Vacancy:
        vacancy = await self.store.get_vacancy(vacancy_id)
        if vacancy is None:
            raise NotFoundError("Vacancy", vacancy_id)
        if require_active and not vacancy.is_active:
            raise InactiveVacancyError(vacancy_id, vacancy.status)
        return vacancy

    async def _load_user(self, user_id: str) -> User:
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _finalize(self, report: PipelineReport, application_id: str, **values: Any) -> None:
        values["status"] = ApplicationStatus.COMPLETED.value
        values["failed_reason"] = None
        if await self.store.update_application(application_id, **values):
            self._mark_completed(report, application_id)
        else:
            self._mark_cancelled(report, application_id)

    @staticmethod
    def _mark_completed(report: PipelineReport, application_id: str) -> None:
        report.ok()
        report.status = "completed"
        logger.info(f"Application {application_id} completed")

    @staticmethod
    def _mark_cancelled(report: PipelineReport, application_id: str) -> None:
        report.ok("application cancelled during processing")
        report.status = "cancelled"
        logger.info(f"Application {application_id} was cancelled while processing")

    async def _generate_and_apply(
        self,
        job: GenerateAndApplyJob,
        report: PipelineReport,
        progress: _MonotonicProgress,
    ) -> None:
        report.begin("load_vacancy")
        vacancy = await self._load_vacancy(job.vacancy_id, require_active=True)
        logger.info(f"Vacancy: '{vacancy.title}' at {vacancy.company}")
        report.ok()
        await progress(20)

        report.begin("load_user")
        user = await self._load_user(job.user_id)
        report.ok()
        await progress(30)

        report.begin("get_token")
        token = await self.token_provider.get_valid_access_token(job.user_id)
        report.ok()
        await progress(40)

        report.begin("load_profile")
        profile = profile_context(await self.store.get_profile(job.user_id))
        report.ok(None if profile else "no saved profile, generating from vacancy only")
        await progress(45)

        report.begin("generate_resume")
        vacancy_ctx = vacancy_context(vacancy)
        applicant = applicant_context(user)
        generated = await self.llm_provider.generate_resume(vacancy_ctx, applicant, profile)
        validation = validate_generated_resume(generated)
        if not validation.is_valid:
            raise LLMError(validation.error)
        for warning in validation.warnings:
            logger.warning(f"Generated resume: {warning}")
        logger.info(
            f"Generated resume '{generated.title}': {len(generated.skills)} skills, "
            f"{len(generated.experience)} experience entries"
        )
        report.ok()
        await progress(60)

        report.begin("create_remote_resume")
        hh_resume_id = await self.hh_client.create_resume_draft(
            token, build_resume_draft_payload(vacancy.hh_vacancy_id)
        )
        report.hh_resume_id = hh_resume_id
        report.ok()
        await progress(70)

        report.begin("update_remote_resume")
        await self.hh_client.update_resume(
            token, hh_resume_id, build_resume_update_payload(generated)
        )
        report.ok()
        await progress(75)

        report.begin("publish_resume")
        try:
            await self.hh_client.publish_resume(token, hh_resume_id)
            report.ok()
        except UpstreamError as e:
            logger.warning(f"Resume {hh_resume_id} created but not published: {e}")
            report.warning(str(e))
        await progress(80)

        report.begin("cover_letter")
        cover_letter = job.cover_letter
        if cover_letter:
            report.ok("provided by caller")
        else:
            cover_letter = await self.llm_provider.generate_cover_letter(
                vacancy_ctx,
                applicant,
                {
                    "title": generated.title,
                    "skills": generated.skills,
                    "experience": [exp.model_dump() for exp in generated.experience],
                },
            )
            validation = validate_cover_letter(cover_letter)
            if not validation.is_valid:
                raise LLMError(validation.error)
            for warning in validation.warnings:
                logger.warning(f"Cover letter: {warning}")
            report.ok()
        await progress(85)

        report.begin("submit_application")
        if vacancy.hh_vacancy_id:
            try:
                await self.hh_client.submit_application(
                    token, vacancy.hh_vacancy_id, hh_resume_id, cover_letter
                )
                report.ok()
            except UpstreamError as e:
                # the resume exists on HH.ru, the user can still apply manually
                logger.warning(f"Could not apply to vacancy {vacancy.hh_vacancy_id}: {e}")
                report.warning(str(e))
        else:
            report.ok("local vacancy, nothing to submit")
        await progress(90)

        report.begin("finalize")
        local_resume = await self.store.complete_with_resume(
            job.application_id,
            {
                "user_id": job.user_id,
                "hh_resume_id": hh_resume_id,
                "title": generated.title,
                "position": generated.title,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "email": user.email,
                "phone": user.phone or "",
                "skills": generated.skills,
                "experience": [exp.model_dump() for exp in generated.experience],
                "education": generated.education.model_dump() if generated.education else None,
                "status": "ACTIVE",
            },
            cover_letter=cover_letter,
        )
        if local_resume is None:
            # the remote resume stays on HH.ru, no local record is kept
            self._mark_cancelled(report, job.application_id)
            return

        report.resume_id = local_resume.id
        logger.info(f"Saved resume {local_resume.id} locally")
        self._mark_completed(report, job.application_id)
        await progress(100)

    async def _reuse_resume(
        self,
        job: ReuseResumeJob,
        report: PipelineReport,
        progress: _MonotonicProgress,
    ) -> None:
        report.begin("load_vacancy")
        vacancy = await self._load_vacancy(job.vacancy_id, require_active=False)
        report.ok()
        await progress(20)

        report.begin("resolve_resume")
        resume = await self.store.find_resume(job.user_id, job.resume_ref)
        if resume is None:
            raise NotFoundError("Resume", job.resume_ref)
        report.resume_id = resume.id
        report.hh_resume_id = resume.hh_resume_id
        report.ok()
        await progress(30)

        report.begin("load_user")
        user = await self._load_user(job.user_id)
        report.ok()
        await progress(40)

        report.begin("cover_letter")
        cover_letter = await self.llm_provider.generate_cover_letter(
            vacancy_context(vacancy), applicant_context(user), resume_context(resume)
        )
        validation = validate_cover_letter(cover_letter)
        if not validation.is_valid:
            raise LLMError(validation.error)
        report.ok()
        await progress(70)

        report.begin("submit_application")
        if vacancy.hh_vacancy_id and resume.hh_resume_id:
            token = await self.token_provider.get_valid_access_token(job.user_id)
            # no fallback here: without the negotiation nothing was applied
            await self.hh_client.submit_application(
                token, vacancy.hh_vacancy_id, resume.hh_resume_id, cover_letter
            )
            report.ok()
        else:
            logger.info("Vacancy or resume is not on HH.ru, skipping remote application")
            report.ok("vacancy or resume has no HH.ru ID")
        await progress(90)

        report.begin("finalize")
        await self._finalize(
            report,
            job.application_id,
            resume_id=resume.id,
            cover_letter=cover_letter,
        )
        await progress(100)
