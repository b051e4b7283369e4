"""Shared fixtures: fresh DuckDB per test, a store over it, and an API client."""

import pytest
from httpx import AsyncClient, ASGITransport

from diffreview.main import app
from diffreview.api.v1 import conversations
from diffreview.db import DatabaseConnection
from diffreview.services import ConversationStore


ATTEMPT_ID = "attempt-1"


@pytest.fixture
def db_path(tmp_path):
    """Provide a temporary database path."""
    return str(tmp_path / "diffreview.db")


@pytest.fixture
def db(db_path):
    """Open a fresh database and close it after the test."""
    conn = DatabaseConnection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def store(db):
    """Conversation store over the fresh database."""
    return ConversationStore(db, max_message_length=200)


@pytest.fixture
async def client(store):
    """Create async HTTP client wired to a fresh store."""
    conversations.store = store
    conversations.default_user = "anonymous"

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    conversations.store = None
    conversations.default_user = None
