"""Tests for prompt builder utilities."""

from app.models import Resume, User, UserProfile, Vacancy
from app.services.prompt_builder import (
    applicant_context,
    build_cover_letter_prompt,
    build_resume_prompt,
    is_russian,
    profile_context,
    resume_context,
    strip_html,
    vacancy_context,
)

VACANCY = {
    "title": "Python Developer",
    "company": "Tech Corp",
    "description": "We need a backend developer",
    "requirements": "Python, FastAPI",
    "responsibilities": "Build services",
    "skills": ["Python", "FastAPI"],
}
APPLICANT = {"first_name": "John", "last_name": "Doe", "email": "john@example.com"}


class TestHelpers:
    """Tests for text helpers."""

    def test_strip_html(self):
        assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"
        assert strip_html(None) == ""

    def test_is_russian(self):
        assert is_russian("Разработчик Python") is True
        assert is_russian("Python Developer") is False


class TestContexts:
    """Tests for model to prompt context conversion."""

    def test_vacancy_context(self):
        vacancy = Vacancy(
            title="Dev", company="Acme", description="<p>Go</p>", requirements=None,
            responsibilities="<li>Code</li>", skills=["Go"],
        )
        ctx = vacancy_context(vacancy)
        assert ctx["description"] == "Go"
        assert ctx["requirements"] == ""
        assert ctx["responsibilities"] == "Code"
        assert ctx["skills"] == ["Go"]

    def test_applicant_context(self):
        user = User(email="a@b.c", first_name="Anna", last_name="Smirnova")
        assert applicant_context(user) == {
            "first_name": "Anna",
            "last_name": "Smirnova",
            "email": "a@b.c",
        }

    def test_empty_profile_is_none(self):
        assert profile_context(None) is None
        assert profile_context(UserProfile(user_id="u1", experience=[], education=None)) is None

    def test_profile_context(self):
        profile = UserProfile(user_id="u1", experience=[{"company": "Acme"}], education=None)
        assert profile_context(profile) == {"experience": [{"company": "Acme"}], "education": None}

    def test_resume_context(self):
        resume = Resume(title="Go Dev", skills=["Go"], experience=None)
        assert resume_context(resume) == {"title": "Go Dev", "skills": ["Go"], "experience": []}


class TestResumePrompt:
    """Tests for resume generation prompts."""

    def test_includes_vacancy_and_schema(self):
        prompt = build_resume_prompt(VACANCY, APPLICANT)
        assert "Python Developer" in prompt
        assert "Tech Corp" in prompt
        assert "Python, FastAPI" in prompt
        assert "John Doe" in prompt
        assert '"skills"' in prompt
        assert "no saved work history" in prompt

    def test_includes_profile(self):
        profile = {"experience": [{"company": "Acme Corp"}], "education": None}
        prompt = build_resume_prompt(VACANCY, APPLICANT, profile)
        assert "Acme Corp" in prompt
        assert "no saved work history" not in prompt

    def test_russian_vacancy(self):
        vacancy = {**VACANCY, "title": "Разработчик Python"}
        assert "Russian" in build_resume_prompt(vacancy, APPLICANT)


class TestCoverLetterPrompt:
    """Tests for cover letter prompts."""

    def test_includes_resume(self):
        resume = {
            "title": "Python Dev",
            "skills": ["Python", "Django"],
            "experience": [{"company": "Acme", "position": "Developer", "description": "APIs"}],
        }
        prompt = build_cover_letter_prompt(VACANCY, APPLICANT, resume)
        assert "Python, Django" in prompt
        assert "Developer at Acme" in prompt
        assert "John Doe" in prompt
        assert "placeholders" in prompt

    def test_handles_empty_resume(self):
        prompt = build_cover_letter_prompt(VACANCY, {}, {"skills": [], "experience": []})
        assert "Not specified" in prompt
