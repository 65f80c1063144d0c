from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from event_scope import models
from event_scope.config import get_settings


settings = get_settings()
engine: AsyncEngine = create_async_engine(settings.database_url, echo=False, future=True)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    """Create the events table on startup if it does not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()


async def get_session() -> AsyncIterator[AsyncSession]:
    """One session per request; archive queries are read-only."""
    async with AsyncSessionLocal() as session:
        yield session
