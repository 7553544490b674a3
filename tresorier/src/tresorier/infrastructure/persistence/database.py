"""
Async engine and session lifecycle.

PostgreSQL (asyncpg) in deployed environments, SQLite (aiosqlite) for
tests and local runs. On SQLite every session shares one connection so an
in-memory database lives as long as the engine.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.persistence.models import Base

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Verification attempts cascade with their bank account
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and hands out unit-of-work sessions.

    Created and disposed by the DI container.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 5,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
    ):
        """
        Args:
            database_url: PostgreSQL (asyncpg) or SQLite (aiosqlite) URL
            echo: Log SQL statements
            pool_size: Persistent connections (PostgreSQL only)
            max_overflow: Extra connections under load (PostgreSQL only)
            pool_timeout: Seconds to wait for a free connection
            pool_recycle: Seconds before a connection is replaced
        """
        self.database_url = database_url
        self.echo = echo
        self.pool_options = {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_timeout": pool_timeout,
            "pool_recycle": pool_recycle,
        }
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    def _engine_options(self) -> Dict[str, Any]:
        if self.is_sqlite:
            return {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {
            **self.pool_options,
            "pool_pre_ping": True,
            "connect_args": {"server_settings": {"application_name": "tresorier"}},
        }

    async def connect(self) -> None:
        """Create the engine and session factory once."""
        if self._engine is not None:
            return

        self._engine = create_async_engine(
            self.database_url, echo=self.echo, **self._engine_options()
        )
        if self.is_sqlite:
            event.listen(
                self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys
            )

        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.info(
            "Database engine created",
            extra={"dialect": self._engine.dialect.name},
        )

    async def create_tables(self) -> None:
        """Create the wallet schema without migrations (dev and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def disconnect(self) -> None:
        if self._engine is None:
            return

        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One transaction per block.

        Commits when the block exits normally and rolls back when it raises.
        Use cases may commit earlier themselves; a withdrawal commits its
        reservation before calling the payout gateway.

        Yields:
            AsyncSession bound to the engine
        """
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """Return True when a trivial query succeeds."""
        if self._engine is None:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Database health check failed")
            return False
        return True
