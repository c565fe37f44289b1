"""
Document Store Interface

The notification engine reads tenants, projects, tasks, comments, invites and
users from a hierarchical document store and writes delivery state back onto
invite documents. Collections are addressed by slash-separated paths, e.g.
``tenants/t1/projects/p1/tasks``.

Implementations:
- InMemoryDocumentStore (tests and local development)
- SQLDocumentStore (SQLAlchemy, one JSON document per row)
"""

import operator
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence


class _ServerTimestamp:
    """Sentinel replaced by the store's clock when a write is applied."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentStoreError(Exception):
    """Base error for document store operations."""


class DocumentNotFoundError(DocumentStoreError):
    """Raised when updating a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document not found: {collection}/{doc_id}")


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class FieldFilter:
    """A single field comparison used in collection queries."""
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported query operator: {self.op}")

    def matches(self, data: Dict[str, Any]) -> bool:
        """
        Evaluate the filter against a document.

        Documents that lack the field, or hold a value that cannot be
        compared with the filter value, never match.
        """
        if self.field not in data or data[self.field] is None:
            return False
        try:
            return bool(_OPERATORS[self.op](data[self.field], self.value))
        except TypeError:
            return False


@dataclass
class DocumentSnapshot:
    """A document read from the store."""
    id: str
    collection: str
    data: Optional[Dict[str, Any]] = field(default=None)

    @property
    def exists(self) -> bool:
        return self.data is not None

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"


def collection_path(*segments: str) -> str:
    """
    Build a collection path from alternating collection/document segments.

    collection_path("tenants", "t1", "projects") -> "tenants/t1/projects"
    """
    if not segments or len(segments) % 2 == 0:
        raise ValueError("A collection path needs an odd number of segments")
    for segment in segments:
        if not segment or "/" in segment:
            raise ValueError(f"Invalid path segment: {segment!r}")
    return "/".join(segments)


def apply_filters(data: Dict[str, Any], filters: Sequence[FieldFilter]) -> bool:
    """Return True when a document satisfies every filter."""
    return all(f.matches(data) for f in filters)


class DocumentStore(ABC):
    """Abstract async document store."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        """
        Point lookup of one document.

        Args:
            collection: Collection path
            doc_id: Document identifier

        Returns:
            The snapshot if the document exists, None otherwise
        """
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
    ) -> List[DocumentSnapshot]:
        """
        Return every document of a collection matching all filters.

        Args:
            collection: Collection path
            filters: Field comparisons, combined with AND

        Returns:
            Matching snapshots (no ordering guarantee)
        """
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        SERVER_TIMESTAMP values are replaced with the store's current time.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        pass

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or replace a document."""
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
