"""
NearMatch — Async database engine and session factory.

The engine is built once at import time.  With
``CLOUD_SQL_USE_UNIX_SOCKET`` set and an instance connection name, the
Cloud SQL connector is used; otherwise ``DATABASE_URL`` is used as is
(``asyncpg`` in deployments, ``aiosqlite`` for throwaway databases).
``SqlProfileStore`` is bound to the session yielded by ``get_db``.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from nearmatch.config import get_settings

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
# Declarative base for all ORM models
# ------------------------------------------------------------------ #

class Base(DeclarativeBase):
    """Declarative base for the profiles, swipes, temp_skips and matches tables."""


# ------------------------------------------------------------------ #
# Pool configuration (server databases only)
# ------------------------------------------------------------------ #

_POOL_KWARGS = {
    "pool_size": 10,
    "max_overflow": 5,
    "pool_timeout": 30,
    "pool_recycle": 1800,
    "pool_pre_ping": True,
}


# ------------------------------------------------------------------ #
# Engine construction helpers
# ------------------------------------------------------------------ #

def _build_cloud_sql_engine() -> AsyncEngine:
    """Engine over the Cloud SQL connector, authenticating with IAM."""
    from google.cloud.sql.connector import Connector

    settings = get_settings()

    connector = Connector()

    async def _get_connection():
        return await connector.connect_async(
            settings.CLOUD_SQL_INSTANCE_CONNECTION,
            "asyncpg",
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            db=settings.DB_NAME,
            enable_iam_auth=True,
        )

    engine = create_async_engine(
        "postgresql+asyncpg://",
        async_creator=_get_connection,
        echo=(settings.LOG_LEVEL == "DEBUG"),
        **_POOL_KWARGS,
    )

    logger.info(
        "Database engine created via Cloud SQL Connector (%s)",
        settings.CLOUD_SQL_INSTANCE_CONNECTION,
    )
    return engine


def build_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for ``postgresql[+asyncpg]://`` or ``sqlite+aiosqlite://`` URLs."""
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    # SQLite uses a single-connection pool that rejects sizing arguments.
    pool_kwargs = {} if url.startswith("sqlite") else _POOL_KWARGS

    return create_async_engine(url, echo=echo, **pool_kwargs)


def _build_local_engine() -> AsyncEngine:
    settings = get_settings()
    engine = build_engine_from_url(
        settings.DATABASE_URL,
        echo=(settings.LOG_LEVEL == "DEBUG"),
    )
    logger.info("Database engine created from DATABASE_URL (%s)", engine.dialect.name)
    return engine


def _create_engine() -> AsyncEngine:
    """Select the appropriate engine builder based on configuration."""
    settings = get_settings()

    use_cloud_sql = (
        settings.CLOUD_SQL_USE_UNIX_SOCKET
        and settings.CLOUD_SQL_INSTANCE_CONNECTION
    )

    if use_cloud_sql:
        return _build_cloud_sql_engine()

    return _build_local_engine()


# ------------------------------------------------------------------ #
# Module-level engine & session factory
# ------------------------------------------------------------------ #

engine = _create_engine()

async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ------------------------------------------------------------------ #
# FastAPI dependency
# ------------------------------------------------------------------ #

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: committed on success, rolled back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
