"""Offline write queue with in-order replay."""

import asyncio
import json
import logging
from dataclasses import dataclass, field

from ..db.local_cache import LocalCache
from ..db.repositories import ClientRepository
from ..errors import StoreError
from ..models.offline import QueueAction, QueueItem

logger = logging.getLogger(__name__)

OFFLINE_QUEUE_KEY = "wellness-offline-queue-v1"


@dataclass
class ReplayResult:
    """Outcome of one replay pass."""

    applied: int = 0
    remaining: int = 0
    created_ids: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def completed(self) -> bool:
        return self.error is None


class OfflineQueue:
    """FIFO log of mutations made while offline.

    Items are only ever appended at the tail, and a replay pass only
    removes a prefix, so nothing is reordered or lost.
    """

    def __init__(self, cache: LocalCache):
        self.cache = cache
        self._replay_lock = asyncio.Lock()

    def load(self) -> list[QueueItem]:
        """Read the queue. A malformed queue reads as empty."""
        items = self._read()
        return items if items is not None else []

    def _read(self) -> list[QueueItem] | None:
        raw = self.cache.get(OFFLINE_QUEUE_KEY)
        if not raw:
            return []
        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise ValueError("Offline queue must be a list")
            return [QueueItem.from_dict(entry) for entry in entries]
        except (ValueError, TypeError) as e:
            logger.warning("Ignoring malformed offline queue: %s", e)
            return None

    def _write(self, items: list[QueueItem]) -> None:
        if items:
            self.cache.set(
                OFFLINE_QUEUE_KEY, json.dumps([item.to_dict() for item in items])
            )
        else:
            self.cache.remove(OFFLINE_QUEUE_KEY)

    def __len__(self) -> int:
        return len(self.load())

    def enqueue(self, *items: QueueItem) -> None:
        """Append items to the end of the queue.

        A malformed stored queue is replaced rather than extended.
        """
        queue = self._read()
        if queue is None:
            queue = []
        queue.extend(items)
        self._write(queue)
        for item in items:
            logger.info("Queued offline %s for '%s'", item.action.value, item.client_id or "new client")

    def clear(self) -> None:
        self.cache.remove(OFFLINE_QUEUE_KEY)

    def pending_deleted_ids(self) -> set[str]:
        """Clients whose last queued delete/undelete is a delete."""
        last_action: dict[str, QueueAction] = {}
        for item in self.load():
            if not item.client_id:
                continue
            if item.action in (QueueAction.DELETE, QueueAction.UNDELETE):
                last_action[item.client_id] = item.action
        return {
            client_id
            for client_id, action in last_action.items()
            if action == QueueAction.DELETE
        }

    async def replay(self, repository: ClientRepository) -> ReplayResult:
        """Apply queued items to the store, strictly in order.

        Stops at the first failure. The failing item and everything after
        it stay queued for the next pass.
        """
        async with self._replay_lock:
            queue = self.load()
            result = ReplayResult()
            if not queue:
                return result

            for item in queue:
                try:
                    created_id = await self._apply(repository, item)
                except StoreError as e:
                    result.error = str(e)
                    logger.warning(
                        "Offline replay stopped at %s for '%s': %s",
                        item.action.value,
                        item.client_id or "new client",
                        e,
                    )
                    break
                result.applied += 1
                if created_id:
                    result.created_ids.append(created_id)

            # Items may have been appended while we were awaiting the store
            remaining = self.load()[result.applied:]
            self._write(remaining)
            result.remaining = len(remaining)
            logger.info(
                "Offline replay applied %d item(s), %d remaining",
                result.applied,
                result.remaining,
            )
            return result

    async def _apply(self, repository: ClientRepository, item: QueueItem) -> str | None:
        if item.action == QueueAction.DELETE:
            await repository.soft_delete(item.client_id)
        elif item.action == QueueAction.UNDELETE:
            await repository.undelete(item.client_id)
        elif item.client_id:
            await repository.update(item.client_id, item.data or {})
        else:
            return await repository.create(item.data or {})
        return None
