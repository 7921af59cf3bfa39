"""
MySQL Database Connection Module

Provides the async SQLAlchemy engine and sessions behind every route.
Uses the aiomysql driver for async operations.

The storage handle is constructed once at startup and stored on
`app.state.database`; routes receive it through FastAPI dependencies.
"""

import asyncio
import logging
from typing import AsyncGenerator, Optional, Union

from fastapi import Depends, Request
from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker

import config

logger = logging.getLogger(__name__)


class DatabaseUnavailableError(RuntimeError):
    """Raised when no connection could be established at startup."""


def build_database_url() -> Union[str, URL]:
    """
    Build the SQLAlchemy URL from config.

    `DATABASE_URL` wins when set; otherwise the DB_* settings are
    combined into a `mysql+aiomysql` URL.
    """
    if config.DATABASE_URL:
        return config.DATABASE_URL
    return URL.create(
        "mysql+aiomysql",
        username=config.DB_USER,
        password=config.DB_PASSWORD or None,
        host=config.DB_HOST,
        port=config.DB_PORT,
        database=config.DB_DATABASE,
        query={"charset": "utf8mb4"},
    )


class Database:
    """
    Storage handle owning the engine and its connection pool.

    Attributes:
        engine: Async SQLAlchemy engine
        session_factory: Factory for per-request sessions
    """

    def __init__(
        self,
        url: Union[str, URL],
        pool_size: int = 10,
        pool_timeout: float = 30,
        echo: bool = False,
    ):
        self.url = make_url(url)

        engine_kwargs = {"echo": echo}
        if self.url.get_backend_name() != "sqlite":
            # Fixed-size pool; callers beyond pool_size wait up to pool_timeout
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=0,
                pool_timeout=pool_timeout,
                pool_recycle=1800,  # Recycle connections after 30 minutes
                pool_pre_ping=True,
            )

        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(f"🔌 Database engine created: {self.url.render_as_string(hide_password=True)}")

    @classmethod
    def from_config(cls) -> "Database":
        """Create the handle from environment settings."""
        return cls(
            build_database_url(),
            pool_size=config.DB_POOL_SIZE,
            pool_timeout=config.DB_POOL_TIMEOUT,
        )

    async def connect_with_retry(
        self,
        retries: int = config.DB_CONNECT_RETRIES,
        delay: float = config.DB_RETRY_DELAY,
    ) -> None:
        """
        Acquire one connection from the pool to prove the database is reachable.

        Args:
            retries: Number of attempts before giving up
            delay: Seconds to wait between attempts

        Raises:
            DatabaseUnavailableError: If every attempt failed
        """
        for attempt in range(1, retries + 1):
            try:
                async with self.engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                logger.info("✅ Database connection established")
                return
            except (SQLAlchemyError, OSError) as e:
                remaining = retries - attempt
                logger.error(f"Database connection failed ({remaining} retries left): {e}")
                if remaining > 0:
                    await asyncio.sleep(delay)

        raise DatabaseUnavailableError(f"Failed to connect to database after {retries} attempts")

    async def init_schema(self) -> None:
        """Create tables if not exist."""
        from .models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables initialized")

    def session(self) -> AsyncSession:
        """Open a new session; use as an async context manager."""
        return self.session_factory()

    async def close(self) -> None:
        """Dispose the engine and close pooled connections."""
        await self.engine.dispose()
        logger.info("🔌 Database connection closed")


def get_database(request: Request) -> Database:
    """Dependency returning the storage handle attached at startup."""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialized")
    return database


async def get_session(database: Database = Depends(get_database)) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting an async database session.

    Usage in FastAPI:
        @router.get("/")
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...

    Write operations commit explicitly in the services; anything left
    uncommitted is rolled back when the session closes.
    """
    async with database.session() as session:
        yield session
