"""Core application components."""

from app.core.config import settings
from app.core.exceptions import (
    ApplicationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    QueueError,
    UpstreamError,
)
from app.core.storage import Base, TokenStorage, async_session

__all__ = [
    "ApplicationError",
    "Base",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "QueueError",
    "TokenStorage",
    "UpstreamError",
    "async_session",
    "settings",
]
