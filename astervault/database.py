"""Backing store adapter — engine lifecycle, guarded lazy connect, bounded execution."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from .config import AsterVaultConfig
from .errors import BackingStoreError, ConflictError, ValidationError
from .models import Base
from .utils.logging import get_logger

logger = get_logger("astervault.database")


def _is_unique_violation(exc: IntegrityError) -> bool:
    """SQLite reports "UNIQUE constraint failed", PostgreSQL drivers "unique constraint"."""
    return "unique constraint" in str(exc.orig).lower()


class BackingStore:
    """Owns the single engine shared by every registry, ledger and index.

    The engine is created lazily on first use. ``connect`` is guarded by a
    lock so callers racing to connect all observe the same connection.
    """

    def __init__(self, config: AsterVaultConfig):
        self._config = config
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._connected = False
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def timeout(self) -> float:
        return self._config.db_timeout_seconds

    @property
    def engine(self) -> AsyncEngine | None:
        return self._engine

    def _create_engine(self) -> AsyncEngine:
        url = self._config.database_url
        kwargs: dict = {
            "echo": self._config.debug,
            "future": True,
            "pool_pre_ping": True,
        }
        if self._config.is_sqlite:
            connect_args: dict = {"timeout": self._config.db_connect_timeout}
            if ":memory:" in url:
                # One shared connection, otherwise each checkout sees an empty database
                kwargs["poolclass"] = StaticPool
                connect_args["check_same_thread"] = False
            kwargs["connect_args"] = connect_args
        return create_async_engine(url, **kwargs)

    async def connect(self) -> None:
        """Connect once; later and concurrent calls reuse the same engine."""
        if self._connected:
            return
        async with self._lock:
            if self._connected:
                return

            engine = self._create_engine()
            try:
                async with engine.begin() as conn:
                    await asyncio.wait_for(conn.execute(text("SELECT 1")), timeout=self.timeout)
                    if self._config.auto_create_schema:
                        await conn.run_sync(Base.metadata.create_all)
                await self._apply_pragmas(engine)
            except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
                await engine.dispose()
                logger.error("backing_store_connect_failed", error=str(exc))
                raise BackingStoreError("connect", f"cannot reach backing store: {exc}") from exc

            self._engine = engine
            self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
            self._connected = True
            logger.info(
                "backing_store_connected",
                dialect=engine.dialect.name,
                schema_created=self._config.auto_create_schema,
            )

    async def _apply_pragmas(self, engine: AsyncEngine) -> None:
        """Enable WAL journal mode and performance PRAGMAs for file-backed SQLite."""
        if not self._config.is_sqlite or not self._config.db_wal_mode:
            return
        if ":memory:" in self._config.database_url:
            return
        async with engine.begin() as conn:
            await conn.execute(text("PRAGMA journal_mode=WAL"))
            await conn.execute(text(f"PRAGMA busy_timeout={self._config.db_busy_timeout}"))
            await conn.execute(text(f"PRAGMA synchronous={self._config.db_synchronous}"))
        logger.info(
            "sqlite_pragmas_applied",
            busy_timeout=self._config.db_busy_timeout,
            synchronous=self._config.db_synchronous,
        )

    async def disconnect(self) -> None:
        """Dispose the engine. A later operation reconnects."""
        async with self._lock:
            if self._engine is not None:
                await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._connected = False
        logger.info("backing_store_disconnected")

    async def create_tables(self) -> None:
        """Create every table and index if missing."""
        await self.connect()
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise BackingStoreError("create_tables", str(exc)) from exc

    @asynccontextmanager
    async def session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Yield a session for one operation, translating driver failures.

        Anything raised inside the block rolls the session back, so a
        failing operation never leaves a partial record behind.
        """
        await self.connect()
        async with self._session_factory() as session:
            try:
                yield session
            except IntegrityError as exc:
                await session.rollback()
                if _is_unique_violation(exc):
                    logger.warning("unique_constraint_violated", operation=operation, error=str(exc.orig))
                    raise ConflictError(operation, "record with the same unique key already exists") from exc
                logger.warning("integrity_constraint_violated", operation=operation, error=str(exc.orig))
                raise ValidationError(operation, f"record rejected by the store: {exc.orig}") from exc
            except asyncio.TimeoutError as exc:
                await session.rollback()
                logger.error("backing_store_timeout", operation=operation, timeout=self.timeout)
                raise BackingStoreError(
                    operation, f"backing store did not answer within {self.timeout}s"
                ) from exc
            except (SQLAlchemyError, OSError) as exc:
                await session.rollback()
                logger.error("backing_store_query_failed", operation=operation, error=str(exc))
                raise BackingStoreError(operation, f"backing store query failed: {exc}") from exc

    async def execute(self, session: AsyncSession, statement):
        """Run one statement with the configured timeout."""
        return await asyncio.wait_for(session.execute(statement), timeout=self.timeout)

    async def commit(self, session: AsyncSession) -> None:
        """Commit with the configured timeout."""
        await asyncio.wait_for(session.commit(), timeout=self.timeout)

    async def health_check(self) -> dict:
        """Report connection state and round-trip a trivial query."""
        status = {"connected": self._connected, "healthy": False}
        if not self._connected:
            return status
        try:
            async with self.session("health_check") as session:
                await self.execute(session, text("SELECT 1"))
            status["healthy"] = True
            status["dialect"] = self._engine.dialect.name
        except BackingStoreError as exc:
            status["error"] = exc.reason
        return status
