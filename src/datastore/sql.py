"""SQL-backed document store.

Stores every document as one row of a ``documents`` table keyed by
(collection path, document id) with a JSON payload. Works with PostgreSQL
(asyncpg) in production and SQLite (aiosqlite) in development.

Datetimes are not native JSON values, so they are written as
``{"$datetime": "<iso-8601>"}`` and decoded on read. Field filters are
evaluated after loading the collection, which keeps query semantics
identical to the in-memory store.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import JSON, Column, DateTime, MetaData, String, Table, select, update
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from config.database import DatabaseSettings, get_database_settings

from .base import (
    SERVER_TIMESTAMP,
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    apply_filters,
)

logger = logging.getLogger(__name__)

_DATETIME_KEY = "$datetime"

metadata = MetaData()

documents_table = Table(
    "documents",
    metadata,
    Column("collection", String(512), primary_key=True),
    Column("doc_id", String(255), primary_key=True),
    Column("data", JSON, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


def encode_value(value: Any) -> Any:
    """Convert a document value into its JSON representation."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {_DATETIME_KEY: value.isoformat()}
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def decode_value(value: Any) -> Any:
    """Inverse of encode_value."""
    if isinstance(value, dict):
        if set(value) == {_DATETIME_KEY}:
            return datetime.fromisoformat(value[_DATETIME_KEY])
        return {key: decode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    return value


def create_engine(settings: Optional[DatabaseSettings] = None) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine for the document table.

    Args:
        settings: Database settings. If None, loads from environment.

    Returns:
        AsyncEngine: Configured async engine instance.
    """
    settings = settings or get_database_settings()

    logger.info(
        "Creating document store engine",
        extra={"extra_data": {"driver": settings.driver}},
    )

    if settings.is_sqlite:
        settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        # SQLite doesn't support connection pooling in the traditional sense
        return create_async_engine(
            settings.async_url,
            echo=settings.echo_sql,
            poolclass=NullPool,
            connect_args=settings.get_connect_args(),
        )

    return create_async_engine(
        settings.async_url,
        echo=settings.echo_sql,
        pool_size=settings.pool_size,
        pool_pre_ping=settings.pool_pre_ping,
        connect_args=settings.get_connect_args(),
    )


class SQLDocumentStore(DocumentStore):
    """Document store on top of an async SQLAlchemy engine."""

    def __init__(self, engine: Optional[AsyncEngine] = None, settings: Optional[DatabaseSettings] = None):
        self._engine = engine or create_engine(settings)
        self._schema_ready = False

    async def init_schema(self) -> None:
        """Create the documents table if it does not exist."""
        if self._schema_ready:
            return
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        self._schema_ready = True

    @staticmethod
    def _snapshot(collection: str, row) -> DocumentSnapshot:
        return DocumentSnapshot(id=row.doc_id, collection=collection, data=decode_value(row.data))

    @staticmethod
    def _resolve(fields: Dict[str, Any], now: datetime) -> Dict[str, Any]:
        return {key: (now if value is SERVER_TIMESTAMP else value) for key, value in fields.items()}

    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        await self.init_schema()
        stmt = select(documents_table.c.doc_id, documents_table.c.data).where(
            documents_table.c.collection == collection,
            documents_table.c.doc_id == doc_id,
        )
        async with self._engine.connect() as conn:
            row = (await conn.execute(stmt)).first()
        return self._snapshot(collection, row) if row is not None else None

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
    ) -> List[DocumentSnapshot]:
        await self.init_schema()
        stmt = select(documents_table.c.doc_id, documents_table.c.data).where(
            documents_table.c.collection == collection,
        )
        async with self._engine.connect() as conn:
            rows = (await conn.execute(stmt)).all()
        snapshots = [self._snapshot(collection, row) for row in rows]
        return [snap for snap in snapshots if apply_filters(snap.data, filters)]

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        await self.init_schema()
        now = datetime.now(timezone.utc)
        async with self._engine.begin() as conn:
            row = (
                await conn.execute(
                    select(documents_table.c.data).where(
                        documents_table.c.collection == collection,
                        documents_table.c.doc_id == doc_id,
                    )
                )
            ).first()
            if row is None:
                raise DocumentNotFoundError(collection, doc_id)

            data = dict(row.data)
            data.update(encode_value(self._resolve(fields, now)))
            await conn.execute(
                update(documents_table)
                .where(
                    documents_table.c.collection == collection,
                    documents_table.c.doc_id == doc_id,
                )
                .values(data=data, updated_at=now)
            )
        logger.debug(f"Updated {collection}/{doc_id}: {sorted(fields)}")

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self.init_schema()
        now = datetime.now(timezone.utc)
        payload = encode_value(self._resolve(data, now))
        async with self._engine.begin() as conn:
            exists = (
                await conn.execute(
                    select(documents_table.c.doc_id).where(
                        documents_table.c.collection == collection,
                        documents_table.c.doc_id == doc_id,
                    )
                )
            ).first()
            if exists is None:
                await conn.execute(
                    documents_table.insert().values(
                        collection=collection, doc_id=doc_id, data=payload, updated_at=now
                    )
                )
            else:
                await conn.execute(
                    update(documents_table)
                    .where(
                        documents_table.c.collection == collection,
                        documents_table.c.doc_id == doc_id,
                    )
                    .values(data=payload, updated_at=now)
                )

    async def close(self) -> None:
        await self._engine.dispose()
