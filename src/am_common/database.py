"""Async engine and session factory.

Repositories issue raw ``text()`` SQL through the request-scoped session.
The ORM classes registered on ``Base`` only document table shapes; the schema
itself is owned by the Alembic migrations.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    # a settlement waiting on a pooled connection counts against its timeout
    pool_timeout=settings.SETTLEMENT_TIMEOUT_SECONDS,
    pool_pre_ping=True,
)

# expire_on_commit=False: services return domain objects read before commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; services own commit and rollback."""
    async with async_session_factory() as session:
        yield session
