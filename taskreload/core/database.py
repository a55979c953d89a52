"""
Database connection and session management
Uses SQLAlchemy async engine (aiosqlite by default, asyncpg for PostgreSQL)
Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html
"""
import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


# Base class for all database models
# Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
class Base(DeclarativeBase):
    """Base class for SQLAlchemy declarative models"""
    pass


def _connect_args(database_url: str) -> dict:
    """Driver-specific connection arguments"""
    if database_url.startswith("postgresql+asyncpg"):
        # Reference: https://magicstack.github.io/asyncpg/current/api/index.html#connection
        return {
            "command_timeout": 60,
            "server_settings": {"application_name": "taskreload"},
        }
    return {}


class Database:
    """
    Database handle owning the engine and the session factory.

    Created once at application startup and stored on ``app.state.database``.
    Request handlers reach it through the ``get_db`` dependency, never via a
    module-level global.
    """

    def __init__(self, database_url: str, echo: bool = False):
        if not database_url:
            raise ValueError(
                "DATABASE_URL is not set. "
                "Please set it in your .env file or environment variables."
            )
        self.url = database_url
        self.engine: AsyncEngine = create_async_engine(
            database_url,
            echo=echo,
            connect_args=_connect_args(database_url),
        )
        # Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html#session-basics
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Keep objects accessible after commit
            autoflush=False,
        )

    async def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable"""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_tables(self) -> None:
        """Create any missing tables for the registered models"""
        # Import models so they register on Base.metadata
        from taskreload import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    async def dispose(self) -> None:
        """Close all pooled connections"""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """Return the database handle attached to the running application"""
    return request.app.state.database


# Dependency to get database session
# Used in FastAPI route handlers via dependency injection
# Reference: https://fastapi.tiangolo.com/tutorial/dependencies/dependencies-with-yield/
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency function that provides a database session
    Automatically closes the session after the request completes

    The task store commits each mutation itself; anything left open when the
    request fails is rolled back here.
    """
    database = get_database(request)
    async with database.session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
