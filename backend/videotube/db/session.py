"""Async SQLAlchemy engine and session helpers.

Provides a configured async engine, sessionmaker and the helper that
creates the tables on startup.
"""

from config.config import settings
from core.logging import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base


def _engine_options(url: str) -> dict:
    # NOTE: SQLite uses a file/static pool that does not accept sizing args.
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


engine = create_async_engine(
    settings.DATABASE_URL_ASYNC,
    echo=settings.DATABASE_ECHO,
    **_engine_options(settings.DATABASE_URL_ASYNC),
)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()


async def initialize_database(bind=None):
    """Create metadata tables defined on the declarative `Base`.

    Args:
        bind: Optional async engine; defaults to the application engine.

    Raises:
        Exception: Re-raises any exception encountered while initializing.
    """
    # NOTE: import models so their tables are registered on Base.metadata.
    import models.users  # noqa: F401

    logger.info("Initializing database tables")
    async with (bind or engine).begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database initialization complete")
        except Exception:
            logger.exception("Database initialization failed")
            raise
