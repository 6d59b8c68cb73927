"""
Database session management for PostgreSQL.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.exceptions import ConfigurationError, ErrorCode

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from core.config import Settings

logger = logging.getLogger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    """
    PostgreSQL 엔진 생성.

    Args:
        settings: Settings carrying DATABASE_URL and pool options

    Returns:
        AsyncEngine instance
    """
    if not settings.DATABASE_URL:
        raise ConfigurationError(
            "DATABASE_URL not configured",
            field_name="DATABASE_URL",
            error_code=ErrorCode.CONFIG_MISSING_REQUIRED,
        )

    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_pre_ping=True,  # Verify connections before using
    )
    logger.info("PostgreSQL engine created")
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    세션 메이커 생성.

    Returns:
        async_sessionmaker instance
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    데이터베이스 초기화.

    Creates the registry tables when missing; no migrations are run.
    """
    from database.base import Base
    from database.models import ModuleRecord, ProviderRecord, PublisherRecord  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")


async def close_db(engine: AsyncEngine) -> None:
    """데이터베이스 연결 종료."""
    await engine.dispose()
    logger.info("Database connections closed")
