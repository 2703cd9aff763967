"""Schemas for the application queue: job payloads, AI content and views."""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


# Queue job payloads


class GenerateAndApplyJob(BaseModel):
    """Job that generates a tailored resume before applying."""

    kind: Literal["generate_and_apply"] = "generate_and_apply"
    application_id: str
    user_id: str
    vacancy_id: str
    cover_letter: str | None = None


class ReuseResumeJob(BaseModel):
    """Job that applies with a resume the user already has."""

    kind: Literal["reuse_resume"] = "reuse_resume"
    application_id: str
    user_id: str
    vacancy_id: str
    resume_ref: str = Field(..., description="Local resume ID or HH.ru resume ID")


ApplicationJob = Annotated[
    GenerateAndApplyJob | ReuseResumeJob, Field(discriminator="kind")
]

_job_adapter: TypeAdapter[ApplicationJob] = TypeAdapter(ApplicationJob)


def parse_job_payload(data: dict[str, Any]) -> GenerateAndApplyJob | ReuseResumeJob:
    """Rebuild a job payload from its queued dict form."""
    return _job_adapter.validate_python(data)


# AI generated content


class ExperienceEntry(BaseModel):
    company: str
    position: str
    description: str = ""
    start: str
    end: str | None = None


class EducationEntry(BaseModel):
    level: str | None = None
    name: str
    organization: str | None = None
    year: int | None = None


class GeneratedResume(BaseModel):
    """Structured resume produced by the LLM for a single vacancy."""

    title: str
    skills: list[str]
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: EducationEntry | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator("skills")
    @classmethod
    def skills_not_empty(cls, value: list[str]) -> list[str]:
        skills = [skill.strip() for skill in value if skill and skill.strip()]
        if not skills:
            raise ValueError("skills must contain at least one entry")
        return skills


# Requests


class QueueApplicationRequest(BaseModel):
    vacancy_id: str
    cover_letter: str | None = None


class SimpleApplyRequest(BaseModel):
    vacancy_id: str
    resume_id: str = Field(..., description="Local resume ID or HH.ru resume ID")


# Responses


class EnqueueResult(BaseModel):
    job_id: str
    queue_position: int | None = Field(
        None, description="1-based position among waiting jobs"
    )
    status: str


class QueueInfo(BaseModel):
    job_id: str
    position: int | None = None
    state: str
    progress: int = 0


class QueueStats(BaseModel):
    waiting: int
    active: int
    completed: int
    failed: int
    delayed: int
    total: int


class VacancySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    hh_vacancy_id: str | None = None
    title: str
    company: str
    city: str | None = None
    salary_from: int | None = None
    salary_to: int | None = None
    status: str


class ResumeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    hh_resume_id: str | None = None
    title: str
    skills: list[str] = Field(default_factory=list)


class ApplicationView(BaseModel):
    """Application as listed for its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    vacancy_id: str
    resume_id: str | None = None
    cover_letter: str | None = None
    status: str
    job_id: str | None = None
    failed_reason: str | None = None
    created_at: datetime
    updated_at: datetime
    vacancy: VacancySummary | None = None
    queue_info: QueueInfo | None = None


class ApplicationDetail(ApplicationView):
    resume: ResumeSummary | None = None


class CancelResponse(BaseModel):
    message: str
