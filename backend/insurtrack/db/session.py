"""
Async SQLAlchemy session factory.

`get_db` backs the API dependency (commit on success, rollback on error).
`worker_session` builds a fresh engine per call for Celery tasks, which
run each job under `asyncio.run()` and must not share a pool across loops.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from insurtrack.core.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=(settings.APP_ENV == "development"),
    pool_size=20,
    max_overflow=10,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency that yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def worker_session() -> AsyncIterator[AsyncSession]:
    """Session on a throwaway engine; commits when the block exits cleanly."""
    worker_engine = create_async_engine(settings.DATABASE_URL, echo=False)
    factory = async_sessionmaker(worker_engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            async with session.begin():
                yield session
    finally:
        await worker_engine.dispose()
