"""Pytest configuration and fixtures."""

import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add the app directory to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables before importing app modules
os.environ.setdefault("HH_CLIENT_ID", "test_client_id")
os.environ.setdefault("HH_CLIENT_SECRET", "test_client_secret")
os.environ.setdefault("HH_REDIRECT_URI", "http://localhost:8000/auth/callback")
os.environ["OLLAMA_BASE_URL"] = "http://localhost:11434"
os.environ["OLLAMA_MODEL"] = "qwen3:14b"
os.environ["LLM_PROVIDER"] = "ollama"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ["MAINTENANCE_ENABLED"] = "false"

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.storage import Base, TokenStorage, init_models  # noqa: E402
from app.models import Resume, User, UserProfile, Vacancy  # noqa: E402
from app.schemas.applications import (  # noqa: E402
    ExperienceEntry,
    GeneratedResume,
    QueueStats,
)
from app.services.record_store import RecordStore  # noqa: E402


@pytest.fixture
async def session_factory():
    """In-memory SQLite database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return RecordStore(session_factory)


@pytest.fixture
def token_storage(session_factory):
    return TokenStorage(session_factory)


@pytest.fixture
async def user(session_factory):
    async with session_factory() as session:
        user = User(
            id="user-1",
            email="ivan@example.com",
            first_name="Иван",
            last_name="Петров",
            phone="+79990000000",
        )
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def other_user(session_factory):
    async with session_factory() as session:
        user = User(id="user-2", email="anna@example.com", first_name="Anna", last_name="Smirnova")
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def vacancy(session_factory):
    async with session_factory() as session:
        vacancy = Vacancy(
            id="vac-1",
            hh_vacancy_id="12345",
            title="Backend Developer",
            company="Test Company",
            description="<p>We are looking for a <b>Go</b> developer.</p>",
            requirements="Go, PostgreSQL",
            responsibilities="Develop backend services",
            skills=["Go", "PostgreSQL"],
            city="Moscow",
        )
        session.add(vacancy)
        await session.commit()
        return vacancy


@pytest.fixture
async def local_vacancy(session_factory):
    """Vacancy that exists only locally (no HH.ru ID)."""
    async with session_factory() as session:
        vacancy = Vacancy(
            id="vac-local",
            title="Python Developer",
            company="Local Corp",
            description="Python developer wanted",
            skills=["Python"],
        )
        session.add(vacancy)
        await session.commit()
        return vacancy


@pytest.fixture
async def archived_vacancy(session_factory):
    async with session_factory() as session:
        vacancy = Vacancy(
            id="vac-old",
            hh_vacancy_id="99999",
            title="Old Position",
            company="Old Company",
            status="ARCHIVED",
        )
        session.add(vacancy)
        await session.commit()
        return vacancy


@pytest.fixture
async def resume(session_factory, user):
    async with session_factory() as session:
        resume = Resume(
            id="res-1",
            user_id=user.id,
            hh_resume_id="hh-res-1",
            title="Go Developer",
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            skills=["Go", "Docker"],
            experience=[{"company": "Acme", "position": "Developer", "description": "APIs"}],
        )
        session.add(resume)
        await session.commit()
        return resume


@pytest.fixture
async def local_resume(session_factory, user):
    """Resume with no HH.ru counterpart."""
    async with session_factory() as session:
        resume = Resume(
            id="res-local",
            user_id=user.id,
            title="Python Developer",
            skills=["Python"],
        )
        session.add(resume)
        await session.commit()
        return resume


@pytest.fixture
async def profile(session_factory, user):
    async with session_factory() as session:
        profile = UserProfile(
            user_id=user.id,
            experience=[
                {
                    "company": "Acme",
                    "position": "Developer",
                    "description": "Built APIs",
                    "start": "2020-01-01",
                    "end": None,
                }
            ],
            education={"level": "higher", "name": "Computer Science", "organization": "MSU", "year": 2019},
        )
        session.add(profile)
        await session.commit()
        return profile


@pytest.fixture
def generated_resume():
    """Resume as returned by the LLM."""
    return GeneratedResume(
        title="Backend Dev",
        skills=["Go", "PostgreSQL", "Docker"],
        experience=[
            ExperienceEntry(
                company="Acme",
                position="Go Developer",
                description="Built payment APIs",
                start="2020-01-01",
            )
        ],
        education=None,
    )


@pytest.fixture
def mock_hh_client():
    """Mock HH client for testing."""
    client = MagicMock()
    client.create_resume_draft = AsyncMock(return_value="R1")
    client.update_resume = AsyncMock(return_value={"status": "success"})
    client.publish_resume = AsyncMock(return_value={"status": "success"})
    client.submit_application = AsyncMock(return_value={"status": "success"})
    client.refresh_token = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_llm_provider(generated_resume):
    """Mock LLM provider for testing."""
    provider = MagicMock()
    provider.generate_resume = AsyncMock(return_value=generated_resume)
    provider.generate_cover_letter = AsyncMock(
        return_value="Здравствуйте! Меня заинтересовала ваша вакансия Backend Developer. "
        "У меня есть опыт разработки на Go и PostgreSQL в продакшене."
    )
    return provider


@pytest.fixture
def mock_token_provider():
    provider = MagicMock()
    provider.get_valid_access_token = AsyncMock(return_value="access-token")
    return provider


@pytest.fixture
def mock_job_queue():
    """Mock ApplicationJobQueue."""
    queue = MagicMock()
    queue.enqueue.return_value = "job-1"
    queue.position.return_value = 1
    queue.get_queue_info.return_value = None
    queue.remove.return_value = True
    queue.is_live.return_value = False
    queue.stats.return_value = QueueStats(
        waiting=2, active=1, completed=5, failed=1, delayed=1, total=10
    )
    queue.cleanup_registries.return_value = {"finished": 0, "failed": 0, "started": 0}
    return queue
