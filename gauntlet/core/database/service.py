"""
DatabaseService: async SQLAlchemy engine and session management.

Purpose
-------
Own the async engine and session factory backing `DatabaseStateStore`,
exposing session and transaction context managers with consistent
commit/rollback semantics and structured logging.

Responsibilities
----------------
- Create and dispose the async engine (`create_async_engine`).
- Provide `get_session()` for reads and `get_transaction()` for writes.
- Create the schema for every model registered on `Base`.
- Lightweight `SELECT 1` health check.

Design Decisions
----------------
- Instance-based: tests create an isolated service against a temporary
  SQLite file (aiosqlite); production passes a Postgres URL.
- Configuration comes from `Config.DATABASE_URL` / `Config.DATABASE_ECHO`
  unless explicitly supplied.
- `get_transaction()` commits on success, rolls back and re-raises on error.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gauntlet.core.config.config import Config
from gauntlet.core.database.base import Base
from gauntlet.core.logging.logger import get_logger

logger = get_logger(__name__)


class DatabaseInitializationError(RuntimeError):
    """Raised when the engine cannot be created."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when sessions are requested before `initialize()`."""


class DatabaseService:
    """
    Async engine/session owner.

    Examples
    --------
    >>> db = DatabaseService("sqlite+aiosqlite:///gauntlet.db")
    >>> await db.initialize()
    >>> await db.create_schema()
    >>> async with db.get_transaction() as session:
    ...     session.add(row)
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None) -> None:
        self._url = url or Config.DATABASE_URL
        self._echo = Config.DATABASE_ECHO if echo is None else echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._init_lock = asyncio.Lock()

    @property
    def url_scheme(self) -> str:
        if not self._url:
            return "unset"
        return self._url.split("://", 1)[0]

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self) -> None:
        """Create the engine and session factory. Idempotent."""
        async with self._init_lock:
            if self._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            if not self._url:
                raise DatabaseInitializationError(
                    "DATABASE_URL is not configured for DatabaseService"
                )

            try:
                self._engine = create_async_engine(self._url, echo=self._echo)
                self._session_factory = async_sessionmaker(
                    bind=self._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )
            except Exception as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={
                        "url_scheme": self.url_scheme,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

            logger.info(
                "DatabaseService initialized",
                extra={"url_scheme": self.url_scheme, "echo": self._echo},
            )

    async def create_schema(self) -> None:
        """Create every table registered on the declarative Base."""
        engine = self._require_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database schema ensured",
            extra={"tables": sorted(Base.metadata.tables.keys())},
        )

    async def shutdown(self) -> None:
        async with self._init_lock:
            if self._engine is None:
                return
            try:
                await self._engine.dispose()
                logger.info("DatabaseService shutdown complete")
            finally:
                self._engine = None
                self._session_factory = None

    async def health_check(self) -> bool:
        """Return True when `SELECT 1` succeeds; never raises."""
        if self._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        start = time.perf_counter()
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, DBAPIError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False
        finally:
            logger.debug(
                "Database health check completed",
                extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
            )

    # ========================================================================
    # Sessions
    # ========================================================================

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseNotInitializedError(
                "DatabaseService.initialize() must be awaited before use"
            )
        return self._engine

    def _require_factory(self) -> async_sessionmaker[AsyncSession]:
        self._require_engine()
        assert self._session_factory is not None
        return self._session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session without automatic commit, for reads."""
        factory = self._require_factory()
        async with factory() as session:
            yield session

    @asynccontextmanager
    async def get_transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in an atomic transaction.

        Commits on success. On any exception rolls back, logs and re-raises.
        """
        factory = self._require_factory()
        start = time.perf_counter()
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as exc:
                await session.rollback()
                logger.error(
                    "Database transaction rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise

    def get_status(self) -> dict[str, Any]:
        return {
            "initialized": self.is_initialized,
            "url_scheme": self.url_scheme,
            "echo": self._echo,
        }
