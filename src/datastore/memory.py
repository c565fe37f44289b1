"""
In-memory document store.

Used by the test-suite and for local development. Thread-safe but not
persistent. Documents are copied on the way in and out so callers never
share mutable state with the store.
"""

import copy
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from .base import (
    SERVER_TIMESTAMP,
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    apply_filters,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed document store."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        self._clock = clock or _utcnow

    def _resolve(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = self._clock()
        return {
            key: (now if value is SERVER_TIMESTAMP else copy.deepcopy(value))
            for key, value in fields.items()
        }

    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return DocumentSnapshot(id=doc_id, collection=collection, data=copy.deepcopy(data))

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
    ) -> List[DocumentSnapshot]:
        with self._lock:
            documents = list(self._collections.get(collection, {}).items())
            return [
                DocumentSnapshot(id=doc_id, collection=collection, data=copy.deepcopy(data))
                for doc_id, data in documents
                if apply_filters(data, filters)
            ]

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            documents = self._collections.get(collection, {})
            if doc_id not in documents:
                raise DocumentNotFoundError(collection, doc_id)
            documents[doc_id].update(self._resolve(fields))
        logger.debug(f"Updated {collection}/{doc_id}: {sorted(fields)}")

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = self._resolve(data)

    def dump(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Snapshot of a whole collection (for inspection in tests)."""
        with self._lock:
            return copy.deepcopy(self._collections.get(collection, {}))
