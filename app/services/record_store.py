"""Persistence for applications and the records the pipeline reads."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app.core.exceptions import DuplicateApplicationError
from app.core.storage import async_session
from app.models.application import Application, ApplicationStatus
from app.models.resume import Resume
from app.models.user import User, UserProfile
from app.models.vacancy import Vacancy

logger = logging.getLogger(__name__)


def _now() -> datetime:
    """Get current time as UTC naive datetime for DB storage."""
    return datetime.now(UTC).replace(tzinfo=None)


def _not_terminal():
    return Application.status.notin_(
        [ApplicationStatus.COMPLETED.value, ApplicationStatus.FAILED.value]
    )


class RecordStore:
    """Application record store backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory=async_session):
        self._session_factory = session_factory

    # Lookups used by the pipeline

    async def get_vacancy(self, vacancy_id: str) -> Vacancy | None:
        async with self._session_factory() as session:
            return await session.get(Vacancy, vacancy_id)

    async def get_user(self, user_id: str) -> User | None:
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def get_profile(self, user_id: str) -> UserProfile | None:
        async with self._session_factory() as session:
            return await session.get(UserProfile, user_id)

    async def find_resume(self, user_id: str, resume_ref: str) -> Resume | None:
        """Find a user's resume by local ID or HH.ru resume ID."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Resume).where(
                    Resume.user_id == user_id,
                    or_(Resume.id == resume_ref, Resume.hh_resume_id == resume_ref),
                )
            )
            return result.scalars().first()

    # Applications

    async def find_application(self, user_id: str, vacancy_id: str) -> Application | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Application).where(
                    Application.user_id == user_id,
                    Application.vacancy_id == vacancy_id,
                )
            )
            return result.scalars().first()

    async def create_application(
        self,
        user_id: str,
        vacancy_id: str,
        resume_id: str | None = None,
        cover_letter: str | None = None,
    ) -> Application:
        """Create a QUEUED application.

        Raises:
            DuplicateApplicationError: the (user, vacancy) pair already exists
        """
        async with self._session_factory() as session:
            application = Application(
                user_id=user_id,
                vacancy_id=vacancy_id,
                resume_id=resume_id,
                cover_letter=cover_letter,
                status=ApplicationStatus.QUEUED.value,
            )
            session.add(application)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning(
                    f"Duplicate application rejected by database: user={user_id}, vacancy={vacancy_id}"
                )
                raise DuplicateApplicationError(user_id, vacancy_id) from e
            await session.refresh(application)
            return application

    async def get_application(
        self, application_id: str, with_relations: bool = False
    ) -> Application | None:
        async with self._session_factory() as session:
            query = select(Application).where(Application.id == application_id)
            if with_relations:
                query = query.options(
                    selectinload(Application.vacancy), selectinload(Application.resume)
                )
            result = await session.execute(query)
            return result.scalars().first()

    async def list_applications(self, user_id: str) -> list[Application]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Application)
                .where(Application.user_id == user_id)
                .options(selectinload(Application.vacancy))
                .order_by(Application.created_at.desc())
            )
            return list(result.scalars().all())

    async def update_application(self, application_id: str, **values: Any) -> bool:
        """Update an application unless it is missing or already COMPLETED or FAILED.

        Returns False when nothing was updated.
        """
        values.setdefault("updated_at", _now())
        async with self._session_factory() as session:
            result = await session.execute(
                update(Application)
                .where(Application.id == application_id, _not_terminal())
                .values(**values)
            )
            await session.commit()
            return result.rowcount > 0

    async def complete_with_resume(
        self, application_id: str, resume_fields: dict[str, Any], **values: Any
    ) -> Resume | None:
        """Store a resume and mark the application COMPLETED with it, atomically.

        Nothing is stored when the application is gone or already terminal;
        None is returned in that case.
        """
        values.setdefault("updated_at", _now())
        async with self._session_factory() as session:
            resume = Resume(**resume_fields)
            session.add(resume)
            await session.flush()
            result = await session.execute(
                update(Application)
                .where(Application.id == application_id, _not_terminal())
                .values(
                    status=ApplicationStatus.COMPLETED.value,
                    resume_id=resume.id,
                    failed_reason=None,
                    **values,
                )
            )
            if result.rowcount == 0:
                await session.rollback()
                return None
            await session.commit()
            await session.refresh(resume)
            return resume

    async def delete_application(self, application_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(Application).where(Application.id == application_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def list_stale_applications(self, updated_before: datetime) -> list[Application]:
        """Non-terminal applications not touched since ``updated_before``."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Application).where(
                    Application.status.in_(
                        [ApplicationStatus.QUEUED.value, ApplicationStatus.PROCESSING.value]
                    ),
                    Application.updated_at < updated_before,
                )
            )
            return list(result.scalars().all())
