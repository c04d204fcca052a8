from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass

from ..config.settings import settings


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Pool options only apply to server databases; SQLite manages its own pool."""
    options: Dict[str, Any] = {"echo": False, "future": True}
    if database_url.startswith("postgresql"):
        options["pool_size"] = settings.POSTGRES_POOL_SIZE
        options["max_overflow"] = settings.POSTGRES_MAX_OVERFLOW
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

local_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase, MappedAsDataclass):
    """Base class for all database models.

    Combines SQLAlchemy's DeclarativeBase with MappedAsDataclass so every
    model gets a generated ``__init__`` from its ``Mapped`` columns.
    Documents, context documents, note sets and memberships all inherit
    from it.
    """

    pass


async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for database session management.

    Every service in the application receives its session explicitly, which
    lets tests swap in a session bound to an in-memory database.

    Yields:
        AsyncSession: A configured async database session.
    """
    async_get_db = local_session
    async with async_get_db() as db:
        yield db


async def create_tables() -> None:
    """Create all tables in the database if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
