"""Data access layer for wellness-pass."""

from datetime import datetime, timezone
from pathlib import Path

from ..models.client import DELETED_STATUS, ClientRecord
from .store import DELETE_FIELD, SERVER_TIMESTAMP, DocumentStore

CLIENTS_COLLECTION = "clients"


class ClientRepository:
    """Repository for client documents."""

    def __init__(self, store: DocumentStore | None = None, db_path: Path | None = None):
        self.store = store or DocumentStore(db_path)

    async def create(self, data: dict) -> str:
        """Create a new client document."""
        return await self.store.insert(
            CLIENTS_COLLECTION,
            {**data, "createdAt": SERVER_TIMESTAMP, "updatedAt": SERVER_TIMESTAMP},
        )

    async def update(self, client_id: str, data: dict) -> None:
        """Update an existing client document."""
        await self.store.update(
            CLIENTS_COLLECTION, client_id, {**data, "updatedAt": SERVER_TIMESTAMP}
        )

    async def soft_delete(self, client_id: str) -> None:
        """Move a client to the recycle bin."""
        await self.store.update(
            CLIENTS_COLLECTION,
            client_id,
            {"deletedAt": SERVER_TIMESTAMP, "syncStatus": DELETED_STATUS},
        )

    async def undelete(self, client_id: str) -> None:
        """Take a client out of the recycle bin."""
        await self.store.update(
            CLIENTS_COLLECTION,
            client_id,
            {"deletedAt": DELETE_FIELD, "syncStatus": DELETE_FIELD},
        )

    async def hard_delete(self, client_id: str) -> None:
        """Permanently delete a client."""
        await self.store.delete(CLIENTS_COLLECTION, client_id)

    async def get(self, client_id: str) -> ClientRecord | None:
        """Get a client by ID."""
        document = await self.store.get(CLIENTS_COLLECTION, client_id)
        if document is None:
            return None
        return ClientRecord.from_dict(document)

    async def list_all(self) -> list[ClientRecord]:
        """List all clients, most recently updated first."""
        documents = await self.store.query(
            CLIENTS_COLLECTION, order_by=("updatedAt", "desc")
        )
        return [ClientRecord.from_dict(doc) for doc in documents]

    async def list_for_coach(self, coach_id: str) -> list[ClientRecord]:
        """List clients assigned to a coach."""
        documents = await self.store.query(
            CLIENTS_COLLECTION, filters=[("assignedCoachId", "==", coach_id)]
        )
        return [ClientRecord.from_dict(doc) for doc in documents]

    async def purge_deleted_before(self, cutoff: datetime, batch_limit: int = 500) -> int:
        """Hard-delete clients soft-deleted at or before ``cutoff``.

        Works through the matches in batches of ``batch_limit``, oldest
        first.

        Returns:
            Number of clients deleted
        """
        if cutoff.tzinfo is None:
            cutoff = cutoff.replace(tzinfo=timezone.utc)
        threshold = cutoff.astimezone(timezone.utc).isoformat()

        total = 0
        while True:
            batch = await self.store.query(
                CLIENTS_COLLECTION,
                filters=[("deletedAt", "<=", threshold)],
                order_by=("deletedAt", "asc"),
                limit=batch_limit,
            )
            if not batch:
                break
            for document in batch:
                await self.store.delete(CLIENTS_COLLECTION, document["id"])
            total += len(batch)
        return total
