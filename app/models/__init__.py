"""Database models."""

from app.models.application import Application, ApplicationStatus
from app.models.resume import Resume
from app.models.token import HHToken
from app.models.user import User, UserProfile
from app.models.vacancy import Vacancy, VacancyStatus

__all__ = [
    "Application",
    "ApplicationStatus",
    "HHToken",
    "Resume",
    "User",
    "UserProfile",
    "Vacancy",
    "VacancyStatus",
]
