"""
Vida Mais Backend — Storage Adapter
===================================

What:  Owns the single async SQLAlchemy engine for the process and exposes
       parameterized execute / query_one / query_all operations.
How:   `Database` wraps `create_async_engine`. The pool is capped at one
       connection (a StaticPool for in-memory SQLite), so concurrent request
       handlers share that connection and wait on the pool while it is busy.
       SQLAlchemy failures are mapped onto the StorageError family.
Who:   Constructed once by the app lifespan and handed to routes through
       the `get_database` dependency. The record store is its only caller.
When:  connect() + bootstrap_schema() on startup, disconnect() on shutdown.

Connection lifecycle:
    Database(url) ──connect()──▶ connected ──disconnect()──▶ closed
                        │
                        └─ bootstrap_schema(): CREATE TABLE IF NOT EXISTS,
                           then each CREATE INDEX IF NOT EXISTS on its own
                           (an index failure is logged, not raised)
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from sqlalchemy.schema import CreateIndex, CreateTable
from sqlalchemy.sql import Executable

from vidamais.exceptions import (
    ConstraintViolationError,
    DatabaseConnectionError,
    StorageError,
)

logger = logging.getLogger(__name__)

_MEMORY_DATABASES = {None, "", ":memory:"}

# Largest value an SQLite INTEGER (signed 64-bit) can hold
SQLITE_MAX_INTEGER = 2**63 - 1


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    bootstrap_schema() creates every table registered on this metadata.
    """
    pass


class ExecuteResult(NamedTuple):
    """Outcome of a mutating statement."""

    inserted_id: Optional[int]
    rows_affected: int


class Database:
    """
    Process-wide handle on the patient store.

    Attributes:
        database_url: Async SQLAlchemy URL (e.g. sqlite+aiosqlite:///./database/clinica.db)
        echo:         Log every statement through sqlalchemy.engine
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    # ── Lifecycle ─────────────────────────────────────────────────────────
    async def connect(self) -> None:
        """
        Open the store and verify it answers a trivial query.

        Calling connect() on an already connected adapter is a no-op.

        Raises:
            DatabaseConnectionError: URL is invalid, the directory cannot be
                created, or the store refuses the connection.
        """
        if self._engine is not None:
            return

        try:
            url = make_url(self.database_url)
            self._ensure_directory(url)
            engine = create_async_engine(url, echo=self.echo, **self._pool_options(url))
        except (SQLAlchemyError, OSError) as e:
            logger.error("Invalid database configuration: %s", e)
            raise DatabaseConnectionError(
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            logger.error("Could not connect to the database: %s", e)
            raise DatabaseConnectionError(
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

        self._engine = engine
        logger.info("Connected to database %s", url.render_as_string(hide_password=True))

    async def bootstrap_schema(self) -> None:
        """
        Create the tables and their indexes if they do not exist yet.

        Table creation failures are fatal and raise StorageError. Each index
        is created in its own transaction; a failing index is logged and the
        remaining ones are still attempted.
        """
        from vidamais.models.patient import Patient  # noqa: F401  (registers the table)

        engine = self._require_engine()
        tables = Base.metadata.sorted_tables

        try:
            async with engine.begin() as conn:
                for table in tables:
                    await conn.execute(CreateTable(table, if_not_exists=True))
                    logger.info("Table %s created or already present", table.name)
        except SQLAlchemyError as e:
            logger.error("Could not create tables: %s", e, exc_info=True)
            raise StorageError(
                message="Could not initialize the database schema",
                context={"error": str(e)},
            ) from e

        for table in tables:
            for index in sorted(table.indexes, key=lambda idx: idx.name or ""):
                try:
                    async with engine.begin() as conn:
                        await conn.execute(CreateIndex(index, if_not_exists=True))
                except SQLAlchemyError as e:
                    logger.error("Could not create index %s: %s", index.name, e)

        logger.info("Database schema ready")

    async def disconnect(self) -> None:
        """Release the engine and its connection. Safe to call when never connected."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        logger.info("Disconnected from database")

    # ── Statements ────────────────────────────────────────────────────────
    async def execute(
        self, statement: Executable, params: Optional[Mapping[str, Any]] = None
    ) -> ExecuteResult:
        """
        Run a mutating statement in its own transaction.

        Returns:
            ExecuteResult with the new primary key (INSERT only) and rowcount.

        Raises:
            ConstraintViolationError: the store rejected the row
            StorageError: any other failure
        """
        engine = self._require_engine()
        try:
            async with engine.begin() as conn:
                result = await self._run(conn, statement, params)
                inserted_id = None
                if getattr(statement, "is_insert", False) and result.inserted_primary_key:
                    inserted_id = result.inserted_primary_key[0]
                return ExecuteResult(inserted_id=inserted_id, rows_affected=result.rowcount)
        except IntegrityError as e:
            detail = str(e.orig) if e.orig is not None else str(e)
            logger.warning("Constraint violation: %s", detail)
            raise ConstraintViolationError(detail=detail) from e
        except (SQLAlchemyError, OverflowError) as e:
            logger.error("Statement failed: %s", e, exc_info=True)
            raise StorageError(context={"error_type": type(e).__name__}) from e

    async def query_one(
        self, statement: Executable, params: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Run a read statement and return its first row as a dict, or None."""
        engine = self._require_engine()
        try:
            async with engine.connect() as conn:
                result = await self._run(conn, statement, params)
                row = result.mappings().first()
        except (SQLAlchemyError, OverflowError) as e:
            logger.error("Query failed: %s", e, exc_info=True)
            raise StorageError(context={"error_type": type(e).__name__}) from e
        return dict(row) if row is not None else None

    async def query_all(
        self, statement: Executable, params: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Run a read statement and return every row as a dict."""
        engine = self._require_engine()
        try:
            async with engine.connect() as conn:
                result = await self._run(conn, statement, params)
                rows = result.mappings().all()
        except (SQLAlchemyError, OverflowError) as e:
            logger.error("Query failed: %s", e, exc_info=True)
            raise StorageError(context={"error_type": type(e).__name__}) from e
        return [dict(row) for row in rows]

    async def ping(self) -> bool:
        """Lightweight connectivity probe for the health endpoint."""
        if self._engine is None:
            return False
        try:
            await self.query_one(text("SELECT 1 AS ok"))
        except StorageError:
            return False
        return True

    # ── Helpers ───────────────────────────────────────────────────────────
    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseConnectionError(
                message="Database is not connected. Call connect() first."
            )
        return self._engine

    @staticmethod
    async def _run(
        conn: AsyncConnection,
        statement: Executable,
        params: Optional[Mapping[str, Any]],
    ):
        if params:
            return await conn.execute(statement, dict(params))
        return await conn.execute(statement)

    @staticmethod
    def _pool_options(url) -> Dict[str, Any]:
        # In-memory SQLite lives inside a single DBAPI connection
        if url.get_backend_name() == "sqlite" and url.database in _MEMORY_DATABASES:
            return {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {"pool_size": 1, "max_overflow": 0, "pool_pre_ping": True}

    @staticmethod
    def _ensure_directory(url) -> None:
        if url.get_backend_name() != "sqlite" or url.database in _MEMORY_DATABASES:
            return
        if url.database.startswith("file:"):
            return
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


# ── FastAPI Dependency ────────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    """
    FastAPI dependency returning the adapter created by the app lifespan.

    Raises:
        DatabaseConnectionError: the lifespan has not attached a database.
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise DatabaseConnectionError(message="Database is not initialized")
    return database
