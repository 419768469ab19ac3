"""Shared fixtures and mocks for unit tests."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from couch_session.core.models import IndexRow
from couch_session.core.store import SessionStore
from couch_session.errors import NotFoundError
from couch_session.storage.base import DocumentDatabase, InMemoryDatabase

NOW_MS = 1_700_000_000_000


@pytest.fixture
def mock_database():
    """Mock document database: empty, reachable, every write succeeds."""
    db = AsyncMock(spec=DocumentDatabase)
    db.get = AsyncMock(side_effect=NotFoundError("missing"))
    db.head = AsyncMock(side_effect=NotFoundError("missing"))
    db.insert = AsyncMock(return_value="1-new")
    db.delete = AsyncMock(return_value="2-deleted")
    db.bulk_write = AsyncMock(return_value=[])
    db.query_index = AsyncMock(return_value=[])
    db.put_design = AsyncMock(return_value=None)
    db.info = AsyncMock(return_value={"db_name": "sessions"})
    db.close = AsyncMock(return_value=None)
    return db


@pytest.fixture
def memory_database():
    return InMemoryDatabase(clock=lambda: NOW_MS)


@pytest.fixture
def make_store(mock_database):
    """Factory for stores over `mock_database` with a fixed clock."""

    def _make(database=None, **options):
        options.setdefault("check_on_init", False)
        options.setdefault("clock", lambda: NOW_MS)
        return SessionStore(database if database is not None else mock_database, **options)

    return _make


def _stored_document(doc_id="sess:key", rev="1-abc", ttl=4567, modified=NOW_MS, **payload):
    doc = {"_id": doc_id, "_rev": rev, "session_ttl": ttl, "session_modified": modified}
    doc.update(payload or {"data": "data"})
    return doc


def _index_rows(count: int):
    return [IndexRow(id=f"sess:{i}", revision=f"1-{i}") for i in range(count)]


async def _drain(store: SessionStore) -> None:
    while store._tasks:
        await asyncio.gather(*list(store._tasks), return_exceptions=True)


@pytest.fixture
def stored_document():
    """Factory for documents as the database returns them."""
    return _stored_document


@pytest.fixture
def index_rows():
    return _index_rows


@pytest.fixture
def drain():
    """Wait for a store's background tasks (lazy destroys, connection checks)."""
    return _drain
