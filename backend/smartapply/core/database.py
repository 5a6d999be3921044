"""Async database engine and session management.

The remote store is Postgres with pgvector; search, hybrid scoring and
recommendations run in its stored functions (``semantic_job_search``,
``hybrid_job_search``, ``find_similar_jobs`` and friends). Every connection
carries a statement timeout so a slow vector scan surfaces as a store error
the search services can degrade on, instead of holding the request open.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from smartapply.core.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.environment == "development",
    pool_pre_ping=True,
    connect_args={
        "timeout": settings.database_connect_timeout_seconds,
        "server_settings": {
            "application_name": "smartapply-search",
            "statement_timeout": str(settings.database_statement_timeout_ms),
        },
    },
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for one request.

    JobSearchRepository commits its own writes; anything still pending when
    the request ends is committed here, and rolled back on error.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
