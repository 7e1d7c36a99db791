import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings
from src.mk_common.errors import StorageFailureError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

# expire_on_commit=False: services return domain objects built from RETURNING rows
# after commit, never lazy ORM attributes.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one AsyncSession per request, auto-closed afterwards.

    Each lifecycle operation commits or rolls back exactly once on this session.
    """
    async with async_session_factory() as session:
        yield session


async def run_atomic(db: AsyncSession, work: Callable[[], Awaitable[T]]) -> T:
    """Run `work` and COMMIT, or ROLLBACK everything it did and re-raise.

    Driver/database errors surface as StorageFailureError; AppErrors pass through.
    """
    try:
        result = await work()
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Atomic unit failed, rolled back", exc_info=True)
        raise StorageFailureError() from exc
    except Exception:
        await db.rollback()
        raise
    return result


async def run_read(db: AsyncSession, work: Callable[[], Awaitable[T]]) -> T:
    """Run a read outside any commit unit; driver errors surface as StorageFailureError."""
    try:
        return await work()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Read failed, rolled back", exc_info=True)
        raise StorageFailureError() from exc
