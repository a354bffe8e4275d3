"""
Database engine, session factory and declarative base.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from garage_admin.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict:
    # SQLite connections must not outlive the event loop that opened them
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    """Yield a database session for the duration of one request."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_db():
    """Create all tables."""
    # Import models so they register on Base.metadata
    import garage_admin.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db():
    """Drop all tables."""
    import garage_admin.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
