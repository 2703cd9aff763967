"""Tests for custom exceptions."""

from fastapi import status

from app.core.exceptions import (
    ApplicationError,
    ConflictError,
    DuplicateApplicationError,
    ForbiddenError,
    InactiveVacancyError,
    NotFoundError,
    PipelineError,
    QueueError,
    UpstreamError,
    forbidden_exception,
    not_found_exception,
    to_http_exception,
    unauthorized_exception,
)
from app.services.hh_client import HHAPIError
from app.services.llm.base import LLMError


class TestApplicationError:
    """Tests for ApplicationError base exception."""

    def test_create_error(self):
        """Test creating ApplicationError."""
        error = ApplicationError("Test error message")
        assert error.message == "Test error message"
        assert str(error) == "Test error message"

    def test_inheritance(self):
        """Test that ApplicationError inherits from Exception."""
        assert isinstance(ApplicationError("Test"), Exception)


class TestConflicts:
    """Tests for conflict errors."""

    def test_duplicate_application(self):
        error = DuplicateApplicationError(user_id="u1", vacancy_id="v1")
        assert error.user_id == "u1"
        assert error.vacancy_id == "v1"
        assert "already applied" in error.message
        assert isinstance(error, ConflictError)

    def test_inactive_vacancy(self):
        error = InactiveVacancyError("v1", "ARCHIVED")
        assert error.message == "Vacancy v1 is not active (ARCHIVED)"
        assert isinstance(error, ConflictError)


class TestUpstreamError:
    """Tests for errors of external services."""

    def test_message_with_status(self):
        error = UpstreamError("HH", "Bad gateway", status_code=502)
        assert str(error) == "HH error (502): Bad gateway"
        assert error.detail == "Bad gateway"
        assert error.status_code == 502

    def test_message_without_status(self):
        assert str(UpstreamError("LLM", "timeout")) == "LLM error: timeout"

    def test_subclasses(self):
        assert isinstance(HHAPIError(400, "bad"), UpstreamError)
        assert isinstance(LLMError("empty"), UpstreamError)


class TestPipelineError:
    def test_keeps_step(self):
        error = PipelineError("publish_resume", "boom")
        assert error.step == "publish_resume"
        assert error.report is None
        assert str(error) == "boom"


class TestHTTPExceptions:
    """Tests for HTTP exception helpers."""

    def test_not_found_exception(self):
        """Test not_found_exception helper."""
        exc = not_found_exception("Vacancy not found")
        assert exc.status_code == status.HTTP_404_NOT_FOUND
        assert exc.detail == "Vacancy not found"

    def test_forbidden_exception(self):
        """Test forbidden_exception helper."""
        exc = forbidden_exception()
        assert exc.status_code == status.HTTP_403_FORBIDDEN
        assert exc.detail == "Not enough permissions"

    def test_unauthorized_exception(self):
        """Test unauthorized_exception helper."""
        exc = unauthorized_exception()
        assert exc.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc.headers == {"WWW-Authenticate": "Bearer"}

    def test_error_mapping(self):
        """Test mapping of the error taxonomy onto HTTP status codes."""
        cases = [
            (NotFoundError("Application", "a1"), 404),
            (ForbiddenError(), 403),
            (DuplicateApplicationError("u1", "v1"), 409),
            (InactiveVacancyError("v1", "ARCHIVED"), 409),
            (QueueError("Redis down"), 503),
            (HHAPIError(500, "oops"), 502),
            (ApplicationError("bad input"), 400),
        ]
        for error, expected in cases:
            exc = to_http_exception(error)
            assert exc.status_code == expected
            assert exc.detail == error.message
