"""
SQLAlchemy async engine and session management

This module provides:
1. Base: declarative base for all ORM models
2. UtcDateTime: timezone-aware datetime column that always stores UTC
3. Database: engine/session owner with an explicit connect/disconnect lifecycle

The process entry point owns the lifecycle:

    database = Database(url=settings.DATABASE_URL_ASYNC)
    await database.connect()
    ...
    await database.disconnect()

SQLite (tests, local runs) gets `BEGIN IMMEDIATE` transactions so concurrent
writers serialize on the database lock instead of failing on lock upgrade.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional, cast

from sqlalchemy import DateTime, event
from sqlalchemy.engine import CursorResult, Dialect
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


# =============================================================================
# Base Model
# =============================================================================


class Base(DeclarativeBase):
    pass


class UtcDateTime(TypeDecorator[datetime]):
    """Aware datetimes in, aware UTC datetimes out (sqlite drops the offset on storage)"""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f'Naive datetime is not allowed: {value!r}')
        return value.astimezone(timezone.utc)

    def process_result_value(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# =============================================================================
# Database Class (for DI)
# =============================================================================


class Database:
    """
    Owns the async engine and session factory.

    Nothing is opened at construction time; `connect()` creates the engine and
    `disconnect()` disposes it.
    """

    def __init__(self, *, url: Optional[str] = None, echo: bool = False) -> None:
        self.url = url or settings.DATABASE_URL_ASYNC
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError('Database is not connected; call connect() first')
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError('Database is not connected; call connect() first')
        return self._session_factory

    async def connect(self) -> None:
        if self._engine is not None:
            return

        engine_kwargs: dict[str, Any] = {'echo': self.echo}
        if self.is_sqlite:
            # Writers wait on the file lock instead of failing immediately
            engine_kwargs['connect_args'] = {'timeout': 30}
        else:
            engine_kwargs |= {
                'pool_size': settings.DB_POOL_SIZE,
                'max_overflow': settings.DB_POOL_MAX_OVERFLOW,
                'pool_timeout': settings.DB_POOL_TIMEOUT,
                'pool_recycle': settings.DB_POOL_RECYCLE,
                'pool_pre_ping': settings.DB_POOL_PRE_PING,
            }

        self._engine = create_async_engine(self.url, **engine_kwargs)
        if self.is_sqlite:
            _use_immediate_transactions(self._engine)

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        Logger.base.info(f'🔗 [DB] Connected ({self._engine.url.get_backend_name()})')

    async def disconnect(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        Logger.base.info('🔌 [DB] Disconnected')

    async def create_all(self) -> None:
        """Create tables if they don't exist"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for database sessions

        Note: Automatically handles rollback on exception
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    # https://docs.sqlalchemy.org/en/20/dialects/sqlite.html#serializable-isolation-savepoints-transactional-ddl
    @event.listens_for(engine.sync_engine, 'connect')
    def _disable_pysqlite_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, 'begin')
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql('BEGIN IMMEDIATE')


def affected_rows(result: Any) -> int:
    """Rows matched by an UPDATE / DELETE executed through a session"""
    return cast(CursorResult[Any], result).rowcount
