"""
Vida Mais Backend — Storage Adapter Tests
=========================================

What:  Tests for Database connect / bootstrap / statements / disconnect.
How:   Real aiosqlite stores (in-memory or under tmp_path); index failures
       are injected by patching CreateIndex.

What we test:
    ✅ connect verifies the store and creates the directory of a file store
    ✅ invalid configuration raises DatabaseConnectionError
    ✅ bootstrap_schema is idempotent and tolerates a failing index
    ✅ execute returns inserted id / rows affected; integrity errors are mapped
    ✅ disconnect is safe when never connected
"""

from unittest.mock import patch

import pytest
from sqlalchemy import insert, select, text
from sqlalchemy.schema import CreateIndex

from conftest import MEMORY_URL, make_patient
from vidamais.database import Database
from vidamais.exceptions import ConstraintViolationError, DatabaseConnectionError, StorageError
from vidamais.models.patient import Patient

patients = Patient.__table__


async def _schema_objects(db: Database, kind: str):
    rows = await db.query_all(
        text("SELECT name FROM sqlite_master WHERE type = :kind AND name NOT LIKE 'sqlite_%'"),
        {"kind": kind},
    )
    return {row["name"] for row in rows}


class TestConnectionLifecycle:
    """Tests for connect() and disconnect()."""

    @pytest.mark.asyncio
    async def test_connect_in_memory(self):
        db = Database(MEMORY_URL)

        await db.connect()

        assert db.is_connected is True
        assert await db.ping() is True
        await db.disconnect()
        assert db.is_connected is False

    @pytest.mark.asyncio
    async def test_connect_creates_directory_for_file_store(self, tmp_path):
        db_path = tmp_path / "nested" / "database" / "clinica.db"
        db = Database(f"sqlite+aiosqlite:///{db_path}")

        await db.connect()
        try:
            assert db_path.parent.is_dir()
        finally:
            await db.disconnect()

    @pytest.mark.asyncio
    async def test_connect_twice_keeps_same_engine(self):
        db = Database(MEMORY_URL)
        await db.connect()
        engine = db._engine

        await db.connect()

        assert db._engine is engine
        await db.disconnect()

    @pytest.mark.asyncio
    async def test_unknown_driver_raises_connection_error(self):
        db = Database("nosuchdialect+nodriver://localhost/db")

        with pytest.raises(DatabaseConnectionError):
            await db.connect()
        assert db.is_connected is False

    @pytest.mark.asyncio
    async def test_disconnect_without_connect_is_noop(self):
        await Database(MEMORY_URL).disconnect()

    @pytest.mark.asyncio
    async def test_statements_before_connect_raise(self):
        db = Database(MEMORY_URL)

        with pytest.raises(DatabaseConnectionError):
            await db.query_one(text("SELECT 1"))
        assert await db.ping() is False


class TestBootstrapSchema:
    """Tests for table and index creation."""

    @pytest.mark.asyncio
    async def test_creates_table_and_indexes(self, database):
        assert "patients" in await _schema_objects(database, "table")
        assert {"idx_patients_email", "idx_patients_phone", "idx_patients_name"} <= (
            await _schema_objects(database, "index")
        )

    @pytest.mark.asyncio
    async def test_is_idempotent(self, database):
        await database.bootstrap_schema()
        assert "patients" in await _schema_objects(database, "table")

    @pytest.mark.asyncio
    async def test_index_failure_does_not_abort(self):
        db = Database(MEMORY_URL)
        await db.connect()

        def flaky_create_index(index, **kwargs):
            if index.name == "idx_patients_name":
                return text("CREATE INDEX broken syntax (")
            return CreateIndex(index, **kwargs)

        try:
            with patch("vidamais.database.CreateIndex", side_effect=flaky_create_index):
                await db.bootstrap_schema()

            indexes = await _schema_objects(db, "index")
            assert "idx_patients_email" in indexes
            assert "idx_patients_phone" in indexes
            assert "idx_patients_name" not in indexes
        finally:
            await db.disconnect()

    @pytest.mark.asyncio
    async def test_table_failure_raises(self):
        db = Database(MEMORY_URL)
        await db.connect()
        try:
            with patch(
                "vidamais.database.CreateTable",
                side_effect=lambda table, **kwargs: text("CREATE TABLE broken ("),
            ):
                with pytest.raises(StorageError):
                    await db.bootstrap_schema()
        finally:
            await db.disconnect()


class TestStatements:
    """Tests for execute / query_one / query_all."""

    @pytest.mark.asyncio
    async def test_execute_insert_returns_id(self, database):
        result = await database.execute(insert(patients).values(**make_patient()))

        assert result.inserted_id == 1
        assert result.rows_affected == 1

    @pytest.mark.asyncio
    async def test_execute_non_insert_has_no_id(self, database):
        await database.execute(insert(patients).values(**make_patient()))

        result = await database.execute(
            patients.update().where(patients.c.id == 1).values(age=33)
        )

        assert result.inserted_id is None
        assert result.rows_affected == 1

    @pytest.mark.asyncio
    async def test_unique_violation_is_mapped(self, database):
        await database.execute(insert(patients).values(**make_patient()))

        with pytest.raises(ConstraintViolationError) as exc_info:
            await database.execute(insert(patients).values(**make_patient(phone="11911112222")))

        assert "email" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_query_one_and_all(self, database):
        await database.execute(insert(patients).values(**make_patient()))
        await database.execute(
            insert(patients).values(**make_patient(name="Joao Souza", email="joao@x.com"))
        )

        one = await database.query_one(select(patients).where(patients.c.email == "joao@x.com"))
        missing = await database.query_one(select(patients).where(patients.c.id == 42))
        every = await database.query_all(select(patients))

        assert one["name"] == "Joao Souza"
        assert missing is None
        assert len(every) == 2

    @pytest.mark.asyncio
    async def test_bad_statement_raises_storage_error(self, database):
        with pytest.raises(StorageError):
            await database.query_all(text("SELECT * FROM no_such_table"))

    @pytest.mark.asyncio
    async def test_integer_overflow_raises_storage_error(self, database):
        with pytest.raises(StorageError):
            await database.query_one(select(patients).where(patients.c.id == 2**70))
