"""Utility functions and classes."""

from app.utils.validators import (
    ValidationResult,
    validate_cover_letter,
    validate_generated_resume,
)

__all__ = ["ValidationResult", "validate_cover_letter", "validate_generated_resume"]
