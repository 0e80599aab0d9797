"""Application context and the save / delete / restore flows."""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from pathlib import Path

from ..db.engine import get_cache_path, get_db_path
from ..db.local_cache import LocalCache
from ..db.repositories import ClientRepository
from ..errors import (
    ActionNotAllowedError,
    ClientNotFoundError,
    OfflineOperationError,
    StoreUnavailableError,
)
from ..models.client import ClientRecord
from ..models.form_state import FormState, Rating
from ..models.offline import QueueItem, now_ms
from ..utils.dates import format_date_to_display
from .connectivity import Connectivity
from .duplicates import DuplicateCandidate, DuplicateMatch, find_duplicate
from .history import HistoryStore
from .offline_queue import OfflineQueue, ReplayResult
from .roster import LOCAL_ID_PREFIX, ClientRoster, CoachSession

logger = logging.getLogger(__name__)

LAST_DELETED_KEY = "wellness-last-deleted-v1"
DEFAULT_COACH_ID = "coach-test-1"
UNDO_DELETE_WINDOW = timedelta(minutes=5)
RETENTION_DAYS = 30
PURGE_BATCH_LIMIT = 500


class SaveStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    QUEUED = "queued"
    DUPLICATE = "duplicate"


@dataclass
class SaveResult:
    """Outcome of a save attempt."""

    status: SaveStatus
    client_id: str = ""
    duplicate: DuplicateMatch | None = None

    @property
    def message(self) -> str:
        if self.status == SaveStatus.QUEUED:
            return "Saved offline. Will sync when online."
        if self.status == SaveStatus.DUPLICATE and self.duplicate:
            return self.duplicate.describe()
        return "Client saved successfully"


@dataclass
class LastDeleted:
    """The most recent delete, kept so it can be undone for a while."""

    client_id: str
    client_name: str
    deleted_at_ms: int

    def is_undoable(self, now: int | None = None) -> bool:
        now = now if now is not None else now_ms()
        return now - self.deleted_at_ms <= UNDO_DELETE_WINDOW.total_seconds() * 1000

    def to_dict(self) -> dict:
        return {
            "clientId": self.client_id,
            "clientName": self.client_name,
            "deletedAtMs": self.deleted_at_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LastDeleted":
        return cls(
            client_id=str(data["clientId"]),
            client_name=str(data.get("clientName") or ""),
            deleted_at_ms=int(data["deletedAtMs"]),
        )


@dataclass
class AppContext:
    """Everything the core needs, passed explicitly."""

    cache: LocalCache
    repository: ClientRepository
    connectivity: Connectivity = field(default_factory=Connectivity)
    session: CoachSession = field(default_factory=CoachSession)

    @classmethod
    def create(
        cls,
        data_dir: Path | None = None,
        online: bool = True,
        session: CoachSession | None = None,
    ) -> "AppContext":
        """Build a context backed by the files in ``data_dir``."""
        return cls(
            cache=LocalCache(get_cache_path(data_dir)),
            repository=ClientRepository(db_path=get_db_path(data_dir)),
            connectivity=Connectivity(online),
            session=session or CoachSession(),
        )


class WellnessService:
    """Form editing, saving and client management for one session."""

    def __init__(self, context: AppContext):
        self.context = context
        self.history = HistoryStore(context.cache)
        coach_name = context.session.coach_name
        if coach_name and not self.form.page2_data.coach:
            # Starting point only, not an undoable edit
            self.history = HistoryStore(
                context.cache, initial=self.form.with_page2("coach", coach_name)
            )
        self.queue = OfflineQueue(context.cache)
        self.roster = ClientRoster(context.cache)
        self._unsubscribe = None

    @property
    def session(self) -> CoachSession:
        return self.context.session

    @property
    def repository(self) -> ClientRepository:
        return self.context.repository

    @property
    def is_online(self) -> bool:
        return self.context.connectivity.is_online

    @property
    def form(self) -> FormState:
        return self.history.present

    async def start(self) -> ReplayResult | None:
        """Listen for reconnection and flush the queue if already online."""
        if self._unsubscribe is None:
            self._unsubscribe = self.context.connectivity.subscribe(self._on_online)
        if self.is_online:
            return await self.sync()
        return None

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_online(self) -> None:
        await self.sync()

    async def sync(self) -> ReplayResult:
        """Replay the offline queue, then refresh the roster."""
        result = await self.queue.replay(self.repository)
        if result.applied and self.is_online:
            await self.load_clients()
        return result

    # Form editing

    def update_appointment(self, index: int, key: str, value: str) -> bool:
        return self.history.update(lambda f: f.with_appointment(index, key, value))

    def update_evaluation(self, key: str, value: str | Rating) -> bool:
        return self.history.update(lambda f: f.with_evaluation(key, value))

    def update_page2(self, key: str, value: str) -> bool:
        return self.history.update(lambda f: f.with_page2(key, value))

    def update_contact(self, key: str, value: str) -> bool:
        return self.history.update(lambda f: f.with_contact(key, value))

    def set_today_date(self, today: date | None = None) -> bool:
        return self.update_page2("date", format_date_to_display(today or date.today()))

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    def clear(self) -> bool:
        return self.history.clear()

    def open_client_in_form(self, client_id: str) -> FormState:
        """Load a saved client into the form.

        Raises:
            OfflineOperationError: if the client was created offline and
                has not been synced yet
        """
        client = self._require_client(client_id, for_change=True)
        self.history.update(lambda _: FormState.from_client(client))
        return self.form

    # Roster

    def pending_deleted_ids(self) -> set[str]:
        return self.queue.pending_deleted_ids()

    def visible_clients(self) -> list[ClientRecord]:
        return self.roster.visible(self.session, self.pending_deleted_ids())

    def deleted_clients(self) -> list[ClientRecord]:
        return self.roster.deleted(self.session, self.pending_deleted_ids())

    async def load_clients(self) -> list[ClientRecord]:
        """Reload the roster from the store (admins see every client)."""
        if self.session.is_admin:
            clients = await self.repository.list_all()
        else:
            clients = await self.repository.list_for_coach(self.session.coach_id)
        self.roster.replace(clients)
        # Changes still waiting in the queue stay visible
        for item in self.queue.load():
            self.roster.apply(item)
        return clients

    def find_duplicate(self, form: FormState | None = None) -> DuplicateMatch | None:
        form = form or self.form
        return find_duplicate(
            DuplicateCandidate.from_payload(form.to_payload()),
            self.roster,
            self.pending_deleted_ids(),
        )

    # Saving

    async def save(self, skip_duplicate_check: bool = False) -> SaveResult:
        """Save the current form.

        New clients are first checked against the roster; a possible
        duplicate is returned to the caller instead of being saved.
        """
        form = self.form
        if form.client_id.startswith(LOCAL_ID_PREFIX):
            raise OfflineOperationError("This client has not been synced yet")
        payload = form.to_payload()

        if not skip_duplicate_check and not form.client_id:
            match = self.find_duplicate(form)
            if match is not None:
                logger.info(
                    "Save held back: %s match with '%s'", match.reason.value, match.match.id
                )
                return SaveResult(SaveStatus.DUPLICATE, duplicate=match)

        if form.client_id:
            item = QueueItem.update(form.client_id, payload)
        else:
            assigned = self.session.coach_id or DEFAULT_COACH_ID
            item = QueueItem.create({**payload, "assignedCoachId": assigned})

        if not self.is_online:
            return self._queue_save(item)

        try:
            if form.client_id:
                await self.repository.update(form.client_id, payload)
                client_id = form.client_id
                status = SaveStatus.UPDATED
            else:
                client_id = await self.repository.create(item.data)
                self.history.update(lambda f: f.with_client_id(client_id))
                status = SaveStatus.CREATED
        except StoreUnavailableError as e:
            logger.warning("Store unavailable, queueing save: %s", e)
            return self._queue_save(item)

        await self._refresh_client(client_id)
        return SaveResult(status, client_id=client_id)

    def _queue_save(self, item: QueueItem) -> SaveResult:
        self.queue.enqueue(item)
        self.roster.apply(item)
        return SaveResult(SaveStatus.QUEUED, client_id=item.client_id)

    async def _refresh_client(self, client_id: str) -> None:
        client = await self.repository.get(client_id)
        if client is not None:
            self.roster.upsert(client)

    # Delete / restore

    async def delete_client(self, client_id: str) -> ClientRecord:
        """Move a client to the recycle bin."""
        client = self._require_client(client_id, for_change=True)
        deleted_at = now_ms()
        item = QueueItem.delete(client.id, timestamp=deleted_at)
        await self._apply_or_queue(item, self.repository.soft_delete)
        self._set_last_deleted(LastDeleted(client.id, client.display_name, deleted_at))
        return client

    async def restore_client(self, client_id: str) -> ClientRecord:
        """Take a client out of the recycle bin."""
        client = self._require_client(client_id, for_change=True)
        await self._apply_or_queue(QueueItem.undelete(client.id), self.repository.undelete)
        last = self.last_deleted
        if last is not None and last.client_id == client.id:
            self._set_last_deleted(None)
        return client

    async def restore_all_deleted(self) -> int:
        """Restore every client in the session's recycle bin."""
        deleted = [c for c in self.deleted_clients() if not c.pending]
        if not deleted:
            return 0
        if self.is_online:
            for client in deleted:
                await self._apply_or_queue(
                    QueueItem.undelete(client.id), self.repository.undelete
                )
        else:
            items = [QueueItem.undelete(client.id) for client in deleted]
            self.queue.enqueue(*items)
            for item in items:
                self.roster.apply(item)
        self._set_last_deleted(None)
        return len(deleted)

    async def undo_delete(self) -> ClientRecord | None:
        """Restore the last deleted client if it was deleted recently.

        Returns:
            The restored client, or None if there was nothing to undo
        """
        last = self.last_deleted
        if last is None or not last.is_undoable():
            return None
        client = await self.restore_client(last.client_id)
        self._set_last_deleted(None)
        return client

    async def empty_recycle_bin(self) -> int:
        """Permanently delete everything in the recycle bin."""
        if not self.is_online:
            raise OfflineOperationError("Emptying the recycle bin requires a connection")
        deleted = [c for c in self.deleted_clients() if not c.pending]
        for client in deleted:
            await self.repository.hard_delete(client.id)
        self.roster.remove({c.id for c in deleted})
        self._set_last_deleted(None)
        return len(deleted)

    async def purge_expired_deletions(
        self,
        retention_days: int = RETENTION_DAYS,
        batch_limit: int = PURGE_BATCH_LIMIT,
        now: datetime | None = None,
    ) -> int:
        """Hard-delete clients that sat in the recycle bin too long."""
        if not self.is_online:
            raise OfflineOperationError("Purging deleted clients requires a connection")
        if not self.session.is_admin:
            raise ActionNotAllowedError("Only admins can purge deleted clients")
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=retention_days)
        purged = await self.repository.purge_deleted_before(cutoff, batch_limit=batch_limit)
        logger.info("Purged %d client(s) deleted before %s", purged, cutoff.isoformat())
        if purged:
            await self.load_clients()
        return purged

    async def _apply_or_queue(
        self, item: QueueItem, operation: Callable[[str], Awaitable[None]]
    ) -> None:
        """Run ``operation`` online, or queue ``item`` when offline."""
        if self.is_online:
            try:
                await operation(item.client_id)
            except StoreUnavailableError as e:
                logger.warning("Store unavailable, queueing %s: %s", item.action.value, e)
                self.queue.enqueue(item)
        else:
            self.queue.enqueue(item)
        self.roster.apply(item)

    def _require_client(self, client_id: str, for_change: bool = False) -> ClientRecord:
        client = self.roster.get(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        if not self.session.can_access(client):
            raise ActionNotAllowedError("Action not allowed.")
        if for_change and client.pending:
            raise OfflineOperationError(
                f"{client.display_name} has not been synced yet"
            )
        return client

    # Last deleted

    @property
    def last_deleted(self) -> LastDeleted | None:
        raw = self.context.cache.get(LAST_DELETED_KEY)
        if not raw:
            return None
        try:
            return LastDeleted.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring malformed last-deleted entry: %s", e)
            return None

    def _set_last_deleted(self, last: LastDeleted | None) -> None:
        if last is None:
            self.context.cache.remove(LAST_DELETED_KEY)
        else:
            self.context.cache.set(LAST_DELETED_KEY, json.dumps(last.to_dict()))
