"""SQLAlchemy database session and engine configuration (PostgreSQL + asyncpg)."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from techassist.config import get_settings


def _get_async_url(url: str) -> str:
    """Convert a sync PostgreSQL URL to the asyncpg dialect."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


settings = get_settings()
_async_url = _get_async_url(settings.database_url)

engine = create_async_engine(
    _async_url,
    echo=(settings.app_env == "development"),
    future=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency — the shared session factory.

    Repositories open one short-lived session per query, so concurrent
    retrieval sources never share a session.
    """
    return async_session_factory
