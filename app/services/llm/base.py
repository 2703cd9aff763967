"""Base class for LLM providers."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from app.core.exceptions import UpstreamError
from app.schemas.applications import GeneratedResume
from app.services.prompt_builder import build_cover_letter_prompt, build_resume_prompt

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)
_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class LLMError(UpstreamError):
    """Raised when the LLM fails or returns unusable content."""

    def __init__(self, detail: str):
        super().__init__("LLM", detail)


def parse_generated_resume(raw: str) -> GeneratedResume:
    """Parse the model's answer into a GeneratedResume.

    Tolerates reasoning blocks, markdown fences and text around the JSON.
    """
    text = _THINK_BLOCK.sub("", raw or "").strip()
    fenced = _CODE_FENCE.search(text)
    if fenced:
        text = fenced.group(1).strip()

    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise LLMError("Generated resume is not a JSON object")

    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise LLMError(f"Generated resume is not valid JSON: {e.msg}") from e

    try:
        return GeneratedResume.model_validate(data)
    except ValidationError as e:
        raise LLMError(f"Generated resume is malformed: {e.error_count()} errors") from e


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def generate(self, prompt: str, max_tokens: int = 2000) -> str:
        """Return the model's completion for a prompt."""
        pass

    async def generate_resume(
        self,
        vacancy: dict[str, Any],
        applicant: dict[str, Any],
        profile: dict[str, Any] | None = None,
    ) -> GeneratedResume:
        """Generate a resume tailored to a vacancy.

        Args:
            vacancy: Vacancy context (title, company, description, requirements,
                responsibilities, skills)
            applicant: Applicant identity (first_name, last_name, email)
            profile: Prior experience/education, if the user saved any

        Returns:
            Validated structured resume
        """
        prompt = build_resume_prompt(vacancy, applicant, profile)
        raw = await self.generate(prompt, max_tokens=3000)
        return parse_generated_resume(raw)

    async def generate_cover_letter(
        self,
        vacancy: dict[str, Any],
        applicant: dict[str, Any],
        resume: dict[str, Any],
    ) -> str:
        """Generate a cover letter; may return an empty string."""
        prompt = build_cover_letter_prompt(vacancy, applicant, resume)
        text = await self.generate(prompt, max_tokens=1000)
        return _THINK_BLOCK.sub("", text or "").strip()
