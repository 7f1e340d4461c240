"""
Database engine, session factory and declarative base.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from carhub.config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    """Declarative base shared by every model."""


def build_engine(url: str):
    """Create an async engine; SQLite files get one connection per checkout."""
    if url.startswith("sqlite"):
        return create_async_engine(url, poolclass=NullPool)
    return create_async_engine(url, pool_pre_ping=True)


engine = build_engine(settings.database_url)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """Yield a database session for the duration of a request."""
    async with SessionLocal() as session:
        yield session


async def init_db(bind=None):
    """Create all tables that do not exist yet."""
    # Models must be imported so their tables are registered on Base.metadata
    import carhub.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
