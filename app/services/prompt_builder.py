"""Prompt building utilities for LLM interactions."""

import json
import re
from typing import Any

from app.models.resume import Resume
from app.models.user import User, UserProfile
from app.models.vacancy import Vacancy

CYRILLIC = "абвгдеёжзийклмнопрстуфхцчшщъыьэюя"

RESUME_JSON_SCHEMA = """{
  "title": "string, resume headline matching the position",
  "skills": ["string", "..."],
  "experience": [
    {"company": "string", "position": "string", "description": "string",
     "start": "YYYY-MM-DD", "end": "YYYY-MM-DD or null"}
  ],
  "education": {"level": "higher", "name": "string", "organization": "string",
                "year": 2020} or null
}"""


def strip_html(text: str | None) -> str:
    if not text:
        return ""
    return re.sub(r"<[^>]+>", "", text).strip()


def is_russian(text: str) -> bool:
    lowered = text.lower()
    return any(char in lowered for char in CYRILLIC)


def vacancy_context(vacancy: Vacancy) -> dict[str, Any]:
    """Flatten a vacancy into the fields the prompts use."""
    return {
        "title": vacancy.title,
        "company": vacancy.company or "",
        "description": strip_html(vacancy.description),
        "requirements": strip_html(vacancy.requirements),
        "responsibilities": strip_html(vacancy.responsibilities),
        "skills": list(vacancy.skills or []),
    }


def applicant_context(user: User) -> dict[str, Any]:
    return {
        "first_name": user.first_name or "",
        "last_name": user.last_name or "",
        "email": user.email or "",
    }


def profile_context(profile: UserProfile | None) -> dict[str, Any] | None:
    """Return prior experience/education, or None when the user has none."""
    if profile is None or not (profile.experience or profile.education):
        return None
    return {
        "experience": profile.experience or [],
        "education": profile.education,
    }


def resume_context(resume: Resume) -> dict[str, Any]:
    return {
        "title": resume.title,
        "skills": list(resume.skills or []),
        "experience": resume.experience or [],
    }


def build_resume_prompt(
    vacancy: dict[str, Any],
    applicant: dict[str, Any],
    profile: dict[str, Any] | None = None,
) -> str:
    """Build a prompt asking for a resume tailored to the vacancy, as JSON."""
    name = f"{applicant.get('first_name', '')} {applicant.get('last_name', '')}".strip()
    skills = ", ".join(vacancy.get("skills") or []) or "Not specified"

    prompt = (
        f"You are a professional career coach. Write a resume for {name or 'the candidate'} "
        f'tailored to the position "{vacancy["title"]}" at "{vacancy.get("company") or "the company"}".\n\n'
        f"Job description:\n{vacancy.get('description', '')[:1500]}\n\n"
        f"Requirements:\n{vacancy.get('requirements') or 'Not specified'}\n\n"
        f"Responsibilities:\n{vacancy.get('responsibilities') or 'Not specified'}\n\n"
        f"Key skills listed in vacancy: {skills}\n\n"
    )

    if profile:
        prompt += (
            "Candidate's real work history and education (keep companies, dates and "
            "degrees, rewrite descriptions to match the vacancy):\n"
            f"{json.dumps(profile, ensure_ascii=False, indent=2)}\n\n"
        )
    else:
        prompt += (
            "The candidate has no saved work history. Create plausible experience "
            "(1-3 entries) and education that match the vacancy.\n\n"
        )

    if is_russian(vacancy.get("title", "") + vacancy.get("description", "")):
        prompt += "Write all text values in Russian.\n"

    prompt += (
        "Respond with ONLY a JSON object of this shape, no comments or markdown:\n"
        f"{RESUME_JSON_SCHEMA}\n"
    )
    return prompt


def build_cover_letter_prompt(
    vacancy: dict[str, Any],
    applicant: dict[str, Any],
    resume: dict[str, Any],
) -> str:
    """Build a prompt for a cover letter matching the vacancy and the resume."""
    name = f"{applicant.get('first_name', '')} {applicant.get('last_name', '')}".strip()
    experience_lines = "\n".join(
        f"- {exp.get('position', '')} at {exp.get('company', '')}: {exp.get('description', '')[:200]}"
        for exp in resume.get("experience") or []
        if isinstance(exp, dict)
    )

    prompt = (
        f"Write a concise, professional cover letter (150-250 words) for the position "
        f'"{vacancy["title"]}" at "{vacancy.get("company") or "the company"}".\n\n'
        f"Job description:\n{vacancy.get('description', '')[:800]}\n\n"
        f"Candidate: {name or 'Candidate'} ({applicant.get('email', '')})\n"
        f"Candidate skills: {', '.join(resume.get('skills') or []) or 'Not specified'}\n"
        f"Candidate experience:\n{experience_lines or 'Not specified'}\n\n"
        "IMPORTANT:\n"
        "- Do NOT use placeholders like [Your email], [Date], [Manager name]\n"
        f"- Sign with the real candidate name ({name or 'Candidate'})\n"
        "- Output ONLY the cover letter text, nothing else\n"
    )

    if is_russian(vacancy.get("title", "") + vacancy.get("description", "")):
        prompt += "- Write the letter in Russian\n"

    return prompt
