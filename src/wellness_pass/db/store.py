"""JSON document store over SQLite.

Documents are grouped in named collections and addressed by opaque string
ids. Updates are partial and understand two sentinels: ``DELETE_FIELD``
removes a field and ``SERVER_TIMESTAMP`` is replaced with the store's
current UTC time.
"""

import json
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

import aiosqlite

from ..errors import DocumentNotFoundError, StoreError, StoreUnavailableError
from .engine import get_db_path

logger = logging.getLogger(__name__)


class _Sentinel:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


DELETE_FIELD = _Sentinel("DELETE_FIELD")
SERVER_TIMESTAMP = _Sentinel("SERVER_TIMESTAMP")

Filter = tuple[str, str, Any]

_FILTER_OPS = {
    "==": lambda left, right: left == right,
    "!=": lambda left, right: left != right,
    "<": lambda left, right: left < right,
    "<=": lambda left, right: left <= right,
    ">": lambda left, right: left > right,
    ">=": lambda left, right: left >= right,
}


def server_time() -> str:
    """Current store time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def new_document_id() -> str:
    """Generate an opaque 20-character document id."""
    return uuid4().hex[:20]


def _resolve(fields: dict, base: dict | None = None) -> dict:
    """Apply field values and sentinels on top of ``base``."""
    result = dict(base or {})
    now = server_time()
    for key, value in fields.items():
        if value is DELETE_FIELD:
            result.pop(key, None)
        elif value is SERVER_TIMESTAMP:
            result[key] = now
        else:
            result[key] = value
    return result


def _matches(document: dict, filters: Iterable[Filter]) -> bool:
    for field_name, op, value in filters:
        if field_name not in document:
            return False
        try:
            if not _FILTER_OPS[op](document[field_name], value):
                return False
        except TypeError:
            return False
    return True


class DocumentStore:
    """Async CRUD over JSON documents."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection, mapping SQLite failures to store errors."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.OperationalError as e:
            raise StoreUnavailableError(str(e)) from e
        except aiosqlite.Error as e:
            raise StoreError(str(e)) from e

    async def insert(self, collection: str, fields: dict) -> str:
        """Insert a new document and return its id.

        ``createdAt`` and ``updatedAt`` default to the server time.
        """
        document_id = new_document_id()
        data = _resolve(
            {"createdAt": SERVER_TIMESTAMP, "updatedAt": SERVER_TIMESTAMP, **fields}
        )
        async with self._connect() as db:
            await db.execute(
                "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                (collection, document_id, json.dumps(data)),
            )
            await db.commit()
        logger.debug("Inserted %s/%s", collection, document_id)
        return document_id

    async def update(self, collection: str, document_id: str, fields: dict) -> None:
        """Merge ``fields`` into an existing document.

        Raises:
            DocumentNotFoundError: if the document does not exist
        """
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            )
            row = await cursor.fetchone()
            if row is None:
                raise DocumentNotFoundError(collection, document_id)
            data = _resolve(fields, json.loads(row["data"]))
            await db.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
                (json.dumps(data), collection, document_id),
            )
            await db.commit()
        logger.debug("Updated %s/%s", collection, document_id)

    async def get(self, collection: str, document_id: str) -> dict | None:
        """Get a document (with its ``id``) or None."""
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_document(row)

    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: tuple[str, str] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Query a collection.

        Args:
            collection: Collection name
            filters: ``(field, op, value)`` tuples, all of which must hold;
                documents missing the field never match
            order_by: ``(field, "asc" | "desc")``; documents missing the
                field are left out
            limit: Maximum number of documents returned

        Returns:
            Matching documents, each including its ``id``
        """
        filters = list(filters)
        for _, op, _ in filters:
            if op not in _FILTER_OPS:
                raise ValueError(f"Unsupported filter operator '{op}'")

        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, data FROM documents WHERE collection = ?", (collection,)
            )
            rows = await cursor.fetchall()

        documents = [self._row_to_document(row) for row in rows]
        documents = [doc for doc in documents if _matches(doc, filters)]

        if order_by is not None:
            field_name, direction = order_by
            documents = [doc for doc in documents if field_name in doc]
            documents.sort(key=lambda doc: doc[field_name], reverse=direction == "desc")

        if limit is not None:
            documents = documents[:limit]
        return documents

    async def delete(self, collection: str, document_id: str) -> None:
        """Hard-delete a document. Missing documents are ignored."""
        async with self._connect() as db:
            await db.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            )
            await db.commit()
        logger.debug("Deleted %s/%s", collection, document_id)

    def _row_to_document(self, row: aiosqlite.Row) -> dict:
        """Convert a database row to a document dict."""
        return {**json.loads(row["data"]), "id": row["id"]}
