"""
Vida Mais Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    ├── database: connected in-memory SQLite adapter with the schema bootstrapped
    ├── mock_database: adapter double whose statement methods are AsyncMocks
    ├── patient_data: valid registration payload (copy per test)
    └── test_client: HTTPX AsyncClient talking to an app bound to `database`
"""

import os
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

from vidamais.database import Database  # noqa: E402

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def make_patient(**overrides: Any) -> Dict[str, Any]:
    """Valid registration payload; keyword arguments replace fields."""
    data = {
        "name": "Maria Silva Santos",
        "age": 32,
        "gender": "feminino",
        "phone": "11987654321",
        "email": "maria@x.com",
    }
    data.update(overrides)
    return data


@pytest.fixture
def patient_data() -> Dict[str, Any]:
    return make_patient()


@pytest_asyncio.fixture
async def database():
    """
    Provides a connected adapter over a fresh in-memory SQLite database.

    Every test gets its own store; nothing leaks between tests.
    """
    db = Database(MEMORY_URL)
    await db.connect()
    await db.bootstrap_schema()
    yield db
    await db.disconnect()


@pytest.fixture
def mock_database():
    """
    Provides an adapter double for workflow tests that must prove no
    statement is issued, or that inject storage failures.

    Usage:
        mock_database.query_one.side_effect = StorageError()
    """
    db = MagicMock(spec=Database)
    db.execute = AsyncMock()
    db.query_one = AsyncMock(return_value=None)
    db.query_all = AsyncMock(return_value=[])
    return db


@pytest_asyncio.fixture
async def test_client(database):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport does not run the lifespan, so the already connected
    `database` fixture is attached to the app directly.
    """
    from vidamais.main import create_app

    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
