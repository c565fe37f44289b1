"""
Document Store

Hierarchical document storage used by the notification engine.

Usage:
    from datastore import get_document_store, FieldFilter

    store = get_document_store()
    snapshot = await store.get("users", "u1")
    tasks = await store.query(
        "tenants/t1/projects/p1/tasks",
        [FieldFilter("status", "!=", "done")],
    )
"""

import logging
from typing import Optional

from config.database import get_database_settings

from .base import (
    SERVER_TIMESTAMP,
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    DocumentStoreError,
    FieldFilter,
    collection_path,
)
from .memory import InMemoryDocumentStore

logger = logging.getLogger(__name__)

_document_store: Optional[DocumentStore] = None


def get_document_store() -> DocumentStore:
    """
    Get the configured document store.

    DB_BACKEND=sql selects the SQL store, anything else the in-memory one.
    """
    global _document_store

    if _document_store is not None:
        return _document_store

    settings = get_database_settings()
    if settings.backend == "sql":
        from .sql import SQLDocumentStore
        _document_store = SQLDocumentStore(settings=settings)
        logger.info("Document store: SQL")
    else:
        logger.warning(
            "Using the in-memory document store. Documents are not persisted; "
            "set DB_BACKEND=sql for a real deployment."
        )
        _document_store = InMemoryDocumentStore()
    return _document_store


def set_document_store(store: Optional[DocumentStore]) -> None:
    """Set a custom document store (for testing)."""
    global _document_store
    _document_store = store


__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentNotFoundError",
    "DocumentSnapshot",
    "DocumentStore",
    "DocumentStoreError",
    "FieldFilter",
    "InMemoryDocumentStore",
    "collection_path",
    "get_document_store",
    "set_document_store",
]
