"""Database connection and storage utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.core.config import settings

if TYPE_CHECKING:
    from app.models.token import HHToken

engine: AsyncEngine = create_async_engine(
    str(settings.database_url),
    echo=False,
    pool_pre_ping=True,
)

async_session = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create all tables that do not exist yet."""
    import app.models  # noqa: F401  registers the mappers

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class TokenStorage:
    """Per-user HH token operations."""

    def __init__(self, session_factory=async_session):
        self._session_factory = session_factory

    async def save(self, user_id: str, token_data: dict) -> HHToken:
        """Save a token for the user, replacing any existing one."""
        from app.models.token import HHToken

        async with self._session_factory() as session:
            await session.execute(delete(HHToken).where(HHToken.user_id == user_id))
            values = {k: v for k, v in token_data.items() if v is not None}
            tok = HHToken(user_id=user_id, **values)
            session.add(tok)
            await session.commit()
            await session.refresh(tok)
            return tok

    async def get_for_user(self, user_id: str) -> HHToken | None:
        """Get the most recent token of the user."""
        from app.models.token import HHToken

        async with self._session_factory() as session:
            result = await session.execute(
                select(HHToken)
                .where(HHToken.user_id == user_id)
                .order_by(HHToken.obtained_at.desc())
                .limit(1)
            )
            return result.scalars().first()
