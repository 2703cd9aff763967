"""Custom exceptions for the application."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status

if TYPE_CHECKING:
    from app.services.submission_orchestrator import PipelineReport


class ApplicationError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a vacancy, resume, user or application does not exist."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ConflictError(ApplicationError):
    """Raised when the request conflicts with the current state."""


class DuplicateApplicationError(ConflictError):
    """Raised when attempting to apply to an already applied vacancy."""

    def __init__(self, user_id: str, vacancy_id: str):
        self.user_id = user_id
        self.vacancy_id = vacancy_id
        super().__init__(f"User {user_id} has already applied to vacancy {vacancy_id}")


class InactiveVacancyError(ConflictError):
    """Raised when a vacancy is no longer accepting applications."""

    def __init__(self, vacancy_id: str, vacancy_status: str):
        self.vacancy_id = vacancy_id
        self.vacancy_status = vacancy_status
        super().__init__(f"Vacancy {vacancy_id} is not active ({vacancy_status})")


class ForbiddenError(ApplicationError):
    """Raised when the caller does not own the referenced application."""

    def __init__(self, detail: str = "Not enough permissions"):
        self.detail = detail
        super().__init__(detail)


class UpstreamError(ApplicationError):
    """Raised when an external service fails or returns unusable data."""

    def __init__(
        self,
        service: str,
        detail: str,
        status_code: int | None = None,
    ):
        self.service = service
        self.detail = detail
        self.status_code = status_code
        if status_code is not None:
            message = f"{service} error ({status_code}): {detail}"
        else:
            message = f"{service} error: {detail}"
        super().__init__(message)


class QueueError(ApplicationError):
    """Raised when the job queue is unreachable or rejects an operation."""


class PipelineError(ApplicationError):
    """Raised by the orchestrator when a pipeline attempt fails."""

    def __init__(self, step: str, message: str, report: PipelineReport | None = None):
        self.step = step
        self.report = report
        super().__init__(message)


def not_found_exception(detail: str = "Resource not found") -> HTTPException:
    """Return a 404 Not Found exception."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def forbidden_exception(detail: str = "Not enough permissions") -> HTTPException:
    """Return a 403 Forbidden exception."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def conflict_exception(detail: str = "Conflict") -> HTTPException:
    """Return a 409 Conflict exception."""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail,
    )


def unauthorized_exception(detail: str = "Not authenticated") -> HTTPException:
    """Return a 401 Unauthorized exception."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def to_http_exception(error: ApplicationError) -> HTTPException:
    """Map an application error onto the matching HTTP error."""
    if isinstance(error, NotFoundError):
        return not_found_exception(error.message)
    if isinstance(error, ForbiddenError):
        return forbidden_exception(error.message)
    if isinstance(error, ConflictError):
        return conflict_exception(error.message)
    if isinstance(error, QueueError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error.message,
        )
    if isinstance(error, UpstreamError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=error.message,
        )
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error.message,
    )
