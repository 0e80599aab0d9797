"""Offline queue item model."""

import time
from dataclasses import dataclass
from enum import Enum

PENDING_STATUS = "pending"


class QueueAction(str, Enum):
    """Mutations that can be queued while offline."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    UNDELETE = "undelete"


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class QueueItem:
    """A mutation waiting to be replayed against the store.

    An empty ``client_id`` means the item creates a new document.
    """

    client_id: str
    action: QueueAction
    data: dict | None = None
    timestamp: int = 0
    sync_status: str = PENDING_STATUS

    @classmethod
    def create(cls, data: dict) -> "QueueItem":
        return cls(client_id="", action=QueueAction.CREATE, data=data, timestamp=now_ms())

    @classmethod
    def update(cls, client_id: str, data: dict) -> "QueueItem":
        return cls(
            client_id=client_id, action=QueueAction.UPDATE, data=data, timestamp=now_ms()
        )

    @classmethod
    def delete(cls, client_id: str, timestamp: int | None = None) -> "QueueItem":
        return cls(
            client_id=client_id,
            action=QueueAction.DELETE,
            timestamp=timestamp if timestamp is not None else now_ms(),
        )

    @classmethod
    def undelete(cls, client_id: str) -> "QueueItem":
        return cls(client_id=client_id, action=QueueAction.UNDELETE, timestamp=now_ms())

    def to_dict(self) -> dict:
        """Convert to dictionary for the local cache."""
        data = {
            "clientId": self.client_id,
            "action": self.action.value,
            "timestamp": self.timestamp,
            "syncStatus": self.sync_status,
        }
        if self.data is not None:
            data["data"] = self.data
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "QueueItem":
        """Create from a cached entry.

        Entries without an action are inferred from ``clientId``, so an
        item with an id replays as an update and one without as a create.

        Raises:
            ValueError: if the entry is not a well-formed queue item
        """
        if not isinstance(data, dict):
            raise ValueError("Queue item must be an object")
        client_id = data.get("clientId") or ""
        if not isinstance(client_id, str):
            raise ValueError("Queue item clientId must be a string")
        raw_action = data.get("action")
        if raw_action:
            action = QueueAction(raw_action)
        else:
            action = QueueAction.UPDATE if client_id else QueueAction.CREATE
        if action in (QueueAction.DELETE, QueueAction.UNDELETE) and not client_id:
            raise ValueError(f"Queue item '{action.value}' needs a clientId")
        payload = data.get("data")
        if payload is not None and not isinstance(payload, dict):
            raise ValueError("Queue item data must be an object")
        timestamp = data.get("timestamp") or 0
        return cls(
            client_id=client_id,
            action=action,
            data=payload,
            timestamp=int(timestamp),
            sync_status=data.get("syncStatus") or PENDING_STATUS,
        )
