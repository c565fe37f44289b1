"""Fixtures for document store tests."""

from datetime import datetime, timezone

import pytest_asyncio

from config.database import DatabaseSettings
from datastore import InMemoryDocumentStore
from datastore.sql import SQLDocumentStore

STORE_NOW = datetime(2026, 3, 10, 7, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    settings = DatabaseSettings(backend="sql", sqlite_path=tmp_path / "documents.db")
    store = SQLDocumentStore(settings=settings)
    yield store
    await store.close()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def document_store(request, tmp_path):
    """Every document store implementation, in turn."""
    if request.param == "memory":
        yield InMemoryDocumentStore(clock=lambda: STORE_NOW)
        return

    store = SQLDocumentStore(settings=DatabaseSettings(backend="sql", sqlite_path=tmp_path / "contract.db"))
    yield store
    await store.close()
