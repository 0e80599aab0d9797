"""Client roster read model.

The roster is what the session currently believes about client documents:
the last list loaded from the store, plus optimistic intents for
mutations that are still sitting in the offline queue.
"""

import json
import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from ..db.local_cache import LocalCache
from ..models.client import ClientRecord, parse_timestamp
from ..models.offline import QueueAction, QueueItem

logger = logging.getLogger(__name__)

ROSTER_KEY = "wellness-roster-v1"
LOCAL_ID_PREFIX = "local-"


class Role(str, Enum):
    ADMIN = "admin"
    COACH = "coach"


@dataclass
class CoachSession:
    """Who is using the app. Coaches only see their own clients."""

    role: Role = Role.COACH
    coach_id: str = ""
    coach_name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_access(self, client: ClientRecord) -> bool:
        return self.is_admin or client.assigned_coach_id == self.coach_id


class ClientRoster:
    """In-memory list of clients, snapshotted to the local cache."""

    def __init__(self, cache: LocalCache | None = None):
        self.cache = cache
        self._clients: list[ClientRecord] = self._load()

    def _load(self) -> list[ClientRecord]:
        if self.cache is None:
            return []
        raw = self.cache.get(ROSTER_KEY)
        if not raw:
            return []
        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise ValueError("Roster snapshot must be a list")
            return [ClientRecord.from_dict(entry) for entry in entries if isinstance(entry, dict)]
        except ValueError as e:
            logger.warning("Ignoring malformed roster snapshot: %s", e)
            return []

    def _save(self) -> None:
        if self.cache is None:
            return
        self.cache.set(ROSTER_KEY, json.dumps([c.to_dict() for c in self._clients]))

    @property
    def clients(self) -> list[ClientRecord]:
        return list(self._clients)

    def __len__(self) -> int:
        return len(self._clients)

    def __iter__(self):
        return iter(list(self._clients))

    def get(self, client_id: str) -> ClientRecord | None:
        for client in self._clients:
            if client.id == client_id:
                return client
        return None

    def replace(self, clients: Iterable[ClientRecord]) -> None:
        """Swap in a freshly loaded list from the store."""
        self._clients = list(clients)
        self._save()

    def upsert(self, client: ClientRecord) -> None:
        for index, existing in enumerate(self._clients):
            if existing.id == client.id:
                self._clients[index] = client
                break
        else:
            self._clients.insert(0, client)
        self._save()

    def remove(self, client_ids: Collection[str]) -> None:
        self._clients = [c for c in self._clients if c.id not in client_ids]
        self._save()

    def apply(self, item: QueueItem) -> ClientRecord | None:
        """Reflect a queued mutation as if it had already happened.

        Returns:
            The affected entry, or None if it is not in the roster
        """
        if item.action == QueueAction.CREATE:
            client = ClientRecord.from_dict(
                item.data or {}, id=f"{LOCAL_ID_PREFIX}{item.timestamp}"
            )
            client.pending = True
            client.updated_at = parse_timestamp(item.timestamp)
            self._clients.insert(0, client)
            self._save()
            return client

        client = self.get(item.client_id)
        if client is None:
            return None
        if item.action == QueueAction.DELETE:
            client.mark_deleted(
                parse_timestamp(item.timestamp) or datetime.now(timezone.utc)
            )
        elif item.action == QueueAction.UNDELETE:
            client.mark_restored()
        else:
            client.apply_payload(item.data or {})
            client.updated_at = parse_timestamp(item.timestamp)
        self._save()
        return client

    def visible(
        self, session: CoachSession, pending_deleted_ids: Collection[str] = ()
    ) -> list[ClientRecord]:
        """Active clients the session may see."""
        return [
            c
            for c in self._clients
            if session.can_access(c)
            and not c.is_deleted
            and c.id not in pending_deleted_ids
        ]

    def deleted(
        self, session: CoachSession, pending_deleted_ids: Collection[str] = ()
    ) -> list[ClientRecord]:
        """Recycle bin contents the session may see."""
        return [
            c
            for c in self._clients
            if session.can_access(c)
            and (c.is_deleted or c.id in pending_deleted_ids)
        ]
