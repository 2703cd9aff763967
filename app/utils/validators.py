"""Validation logic for AI generated application content."""

import re
from dataclasses import dataclass, field

from app.schemas.applications import GeneratedResume

PLACEHOLDER_PATTERN = re.compile(r"\[(?:your|ваш|ваше|ваша|date|дата|name|имя)[^\]]*\]", re.I)


@dataclass
class ValidationResult:
    """Result of validation process."""

    is_valid: bool
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


def validate_cover_letter(text: str | None) -> ValidationResult:
    """Validate a generated cover letter."""
    if not text or not text.strip():
        return ValidationResult(is_valid=False, error="AI returned an empty cover letter")

    warnings = []
    if len(text.strip()) < 100:
        warnings.append("Cover letter is very short")
    if PLACEHOLDER_PATTERN.search(text):
        warnings.append("Cover letter contains unfilled placeholders")

    return ValidationResult(is_valid=True, warnings=warnings)


def validate_generated_resume(resume: GeneratedResume) -> ValidationResult:
    """Validate a generated resume beyond its schema."""
    warnings = []

    if not resume.experience:
        warnings.append("Generated resume has no work experience")

    if len(resume.skills) < 3:
        warnings.append("Generated resume lists fewer than 3 skills")

    for entry in resume.experience:
        if entry.end and entry.end < entry.start:
            return ValidationResult(
                is_valid=False,
                error=f"Experience at {entry.company} ends before it starts",
            )

    return ValidationResult(is_valid=True, warnings=warnings)
