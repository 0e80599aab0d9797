"""Tests for the save / delete / restore flows."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from wellness_pass.db import ClientRepository
from wellness_pass.errors import (
    ActionNotAllowedError,
    ClientNotFoundError,
    OfflineOperationError,
)
from wellness_pass.models.offline import QueueAction, QueueItem, now_ms
from wellness_pass.services.connectivity import Connectivity
from wellness_pass.services.roster import LOCAL_ID_PREFIX
from wellness_pass.services.wellness import (
    UNDO_DELETE_WINDOW,
    AppContext,
    LastDeleted,
    SaveStatus,
    WellnessService,
)


def fill_form(service, name="Ana Pop", phone="0722 000 111", email=""):
    service.update_page2("name", name)
    service.update_page2("date", "07-March-2026")
    service.update_contact("phone", phone)
    service.update_contact("email", email)


def seed(repository, *docs):
    async def run():
        return [await repository.create(doc) for doc in docs]

    return asyncio.run(run())


class TestSave:
    """Tests for saving the form."""

    def test_online_create_sets_client_id(self, make_service, repository):
        service = make_service()
        fill_form(service)

        result = asyncio.run(service.save())

        assert result.status == SaveStatus.CREATED
        assert service.form.client_id == result.client_id
        stored = asyncio.run(repository.get(result.client_id))
        assert stored.client_name == "Ana Pop"
        assert stored.assigned_coach_id == service.session.coach_id
        assert service.roster.get(result.client_id) is not None

    def test_second_save_updates(self, make_service, repository):
        service = make_service()
        fill_form(service)
        created = asyncio.run(service.save())
        service.update_contact("email", "ana@example.com")

        result = asyncio.run(service.save())

        assert result.status == SaveStatus.UPDATED
        assert result.client_id == created.client_id
        assert asyncio.run(repository.get(created.client_id)).email == "ana@example.com"

    def test_duplicate_held_back(self, make_service, repository, coach_session):
        seed(
            repository,
            {"clientName": "Ana", "phone": "0722 000 111", "assignedCoachId": coach_session.coach_id},
        )
        service = make_service()
        asyncio.run(service.load_clients())
        fill_form(service, name="Someone Else")

        result = asyncio.run(service.save())

        assert result.status == SaveStatus.DUPLICATE
        assert result.duplicate.reason.value == "phone"
        assert service.form.client_id == ""
        assert len(asyncio.run(repository.list_all())) == 1

    def test_duplicate_check_can_be_skipped(self, make_service, repository, coach_session):
        seed(
            repository,
            {"clientName": "Ana", "phone": "0722 000 111", "assignedCoachId": coach_session.coach_id},
        )
        service = make_service()
        asyncio.run(service.load_clients())
        fill_form(service)

        result = asyncio.run(service.save(skip_duplicate_check=True))

        assert result.status == SaveStatus.CREATED
        assert len(asyncio.run(repository.list_all())) == 2

    def test_offline_save_is_queued(self, make_service, repository):
        service = make_service(online=False)
        fill_form(service)

        result = asyncio.run(service.save())

        assert result.status == SaveStatus.QUEUED
        assert [i.action for i in service.queue.load()] == [QueueAction.CREATE]
        pending = service.visible_clients()
        assert len(pending) == 1
        assert pending[0].pending
        assert pending[0].id.startswith(LOCAL_ID_PREFIX)
        assert asyncio.run(repository.list_all()) == []

    def test_offline_create_counts_for_duplicates(self, make_service):
        service = make_service(online=False)
        fill_form(service)
        asyncio.run(service.save())
        service.clear()
        fill_form(service, name="Other")

        assert asyncio.run(service.save()).status == SaveStatus.DUPLICATE

    def test_unavailable_store_falls_back_to_queue(self, cache, temp_data_dir, coach_session):
        context = AppContext(
            cache=cache,
            repository=ClientRepository(db_path=temp_data_dir / "gone" / "store.db"),
            connectivity=Connectivity(True),
            session=coach_session,
        )
        service = WellnessService(context)
        fill_form(service)

        result = asyncio.run(service.save())

        assert result.status == SaveStatus.QUEUED
        assert len(service.queue) == 1


class TestSync:
    """Tests for replaying offline work when the connection returns."""

    def test_reconnect_replays_queue(self, make_service, repository):
        service = make_service(online=False)

        async def run():
            await service.start()
            fill_form(service)
            await service.save()
            await service.context.connectivity.set_online(True)

        asyncio.run(run())

        stored = asyncio.run(repository.list_all())
        assert [c.client_name for c in stored] == ["Ana Pop"]
        assert len(service.queue) == 0
        assert [c.id for c in service.visible_clients()] == [stored[0].id]
        assert not service.visible_clients()[0].pending

    def test_start_when_online_flushes_queue(self, make_service, repository):
        offline = make_service(online=False)
        fill_form(offline)
        asyncio.run(offline.save())

        online = make_service()
        result = asyncio.run(online.start())

        assert result.applied == 1
        assert len(asyncio.run(repository.list_all())) == 1

    def test_close_stops_listening(self, make_service):
        service = make_service(online=False)

        async def run():
            await service.start()
            service.close()
            fill_form(service)
            await service.save()
            await service.context.connectivity.set_online(True)

        asyncio.run(run())

        assert len(service.queue) == 1


class TestDeleteRestore:
    """Tests for the recycle bin."""

    @pytest.fixture
    def loaded(self, make_service, repository, coach_session):
        (client_id,) = seed(
            repository, {"clientName": "Ana", "assignedCoachId": coach_session.coach_id}
        )

        def factory(online=True):
            service = make_service(online=online)
            if online:
                asyncio.run(service.load_clients())
            return service, client_id

        return factory

    def test_online_delete_and_restore(self, loaded, repository):
        service, client_id = loaded()

        asyncio.run(service.delete_client(client_id))

        assert asyncio.run(repository.get(client_id)).is_deleted
        assert service.visible_clients() == []
        assert [c.id for c in service.deleted_clients()] == [client_id]

        asyncio.run(service.restore_client(client_id))

        assert not asyncio.run(repository.get(client_id)).is_deleted
        assert [c.id for c in service.visible_clients()] == [client_id]

    def test_offline_delete_hides_client(self, loaded, repository):
        loaded()
        service, client_id = loaded(online=False)

        asyncio.run(service.delete_client(client_id))

        assert service.pending_deleted_ids() == {client_id}
        assert service.visible_clients() == []
        assert not asyncio.run(repository.get(client_id)).is_deleted

    def test_undo_delete_within_window(self, loaded):
        service, client_id = loaded()
        asyncio.run(service.delete_client(client_id))

        restored = asyncio.run(service.undo_delete())

        assert restored.id == client_id
        assert service.last_deleted is None
        assert asyncio.run(service.undo_delete()) is None

    def test_undo_delete_expires(self, loaded):
        service, client_id = loaded()
        asyncio.run(service.delete_client(client_id))
        expired_at = now_ms() - int(UNDO_DELETE_WINDOW.total_seconds() * 1000) - 1
        service._set_last_deleted(LastDeleted(client_id, "Ana", expired_at))

        assert asyncio.run(service.undo_delete()) is None
        assert service.deleted_clients()

    def test_restore_all(self, make_service, repository, coach_session):
        ids = seed(
            repository,
            *({"clientName": f"c{i}", "assignedCoachId": coach_session.coach_id} for i in range(3)),
        )
        service = make_service()
        asyncio.run(service.load_clients())
        for client_id in ids:
            asyncio.run(service.delete_client(client_id))

        assert asyncio.run(service.restore_all_deleted()) == 3
        assert service.deleted_clients() == []
        assert len(service.visible_clients()) == 3

    def test_empty_recycle_bin(self, loaded, repository):
        service, client_id = loaded()
        asyncio.run(service.delete_client(client_id))

        assert asyncio.run(service.empty_recycle_bin()) == 1
        assert asyncio.run(repository.get(client_id)) is None
        assert service.roster.get(client_id) is None

    def test_empty_recycle_bin_refused_offline(self, loaded):
        loaded()
        service, _ = loaded(online=False)

        with pytest.raises(OfflineOperationError):
            asyncio.run(service.empty_recycle_bin())

    def test_pending_client_cannot_be_deleted(self, make_service):
        service = make_service(online=False)
        fill_form(service)
        asyncio.run(service.save())
        local_id = service.visible_clients()[0].id

        with pytest.raises(OfflineOperationError):
            asyncio.run(service.delete_client(local_id))

    def test_unknown_client(self, loaded):
        service, _ = loaded()

        with pytest.raises(ClientNotFoundError):
            asyncio.run(service.delete_client("nope"))


class TestPermissions:
    """Tests for coach / admin scoping."""

    def test_coach_sees_only_own_clients(self, make_service, repository, coach_session):
        seed(
            repository,
            {"clientName": "Mine", "assignedCoachId": coach_session.coach_id},
            {"clientName": "Theirs", "assignedCoachId": "coach-other"},
        )
        service = make_service()
        asyncio.run(service.load_clients())

        assert [c.client_name for c in service.visible_clients()] == ["Mine"]

    def test_coach_cannot_touch_other_coach_client(self, make_service, repository, admin_session):
        (other_id,) = seed(repository, {"clientName": "Theirs", "assignedCoachId": "coach-other"})
        admin = make_service(session=admin_session)
        asyncio.run(admin.load_clients())
        coach = make_service()

        with pytest.raises(ActionNotAllowedError):
            asyncio.run(coach.delete_client(other_id))

    def test_admin_sees_everything(self, make_service, repository, admin_session):
        seed(
            repository,
            {"clientName": "A", "assignedCoachId": "coach-1"},
            {"clientName": "B", "assignedCoachId": "coach-2"},
        )
        service = make_service(session=admin_session)
        asyncio.run(service.load_clients())

        assert len(service.visible_clients()) == 2


class TestPurge:
    """Tests for purging old recycle-bin entries."""

    def test_purge_requires_admin(self, make_service):
        with pytest.raises(ActionNotAllowedError):
            asyncio.run(make_service().purge_expired_deletions())

    def test_purge_requires_connection(self, make_service, admin_session):
        with pytest.raises(OfflineOperationError):
            asyncio.run(
                make_service(online=False, session=admin_session).purge_expired_deletions()
            )

    def test_purge_removes_old_deletions(self, make_service, repository, admin_session):
        (client_id,) = seed(repository, {"clientName": "Old"})
        asyncio.run(repository.soft_delete(client_id))
        service = make_service(session=admin_session)
        future = datetime.now(timezone.utc) + timedelta(days=31)

        assert asyncio.run(service.purge_expired_deletions(now=future)) == 1
        assert asyncio.run(repository.get(client_id)) is None


class TestCoachPrefill:
    """Tests for filling the coach from the session."""

    def test_blank_coach_taken_from_session(self, make_service, coach_session):
        service = make_service()

        assert service.form.page2_data.coach == coach_session.coach_name
        assert not service.history.can_undo

    def test_existing_coach_kept(self, make_service):
        first = make_service()
        first.update_page2("coach", "Maria")

        assert make_service().form.page2_data.coach == "Maria"


class TestPendingClients:
    """Tests for clients created offline and not yet synced."""

    def test_pending_duplicate_cannot_be_opened(self, make_service, repository):
        service = make_service(online=False)
        fill_form(service)
        asyncio.run(service.save())
        service.clear()
        service.update_contact("phone", "0722 000 111")
        duplicate = asyncio.run(service.save()).duplicate

        with pytest.raises(OfflineOperationError):
            service.open_client_in_form(duplicate.match.id)

        assert service.form.client_id == ""
        assert [i.action for i in service.queue.load()] == [QueueAction.CREATE]

    def test_form_holding_local_id_is_not_queued_as_update(self, make_service):
        service = make_service(online=False)
        service.history.update(lambda f: f.with_client_id(f"{LOCAL_ID_PREFIX}123"))

        with pytest.raises(OfflineOperationError):
            asyncio.run(service.save())

        assert len(service.queue) == 0

    def test_offline_work_syncs_after_duplicate_prompt(self, make_service, repository):
        service = make_service(online=False)
        fill_form(service)
        asyncio.run(service.save())
        service.clear()
        fill_form(service, name="Somebody")
        assert asyncio.run(service.save()).status == SaveStatus.DUPLICATE

        result = asyncio.run(make_service().start())

        assert result.completed
        assert [c.client_name for c in asyncio.run(repository.list_all())] == ["Ana Pop"]


class TestRosterKeepsQueuedIntents:
    """Tests for reloading the roster while changes are still queued."""

    def test_partial_replay_keeps_pending_changes_visible(
        self, make_service, repository, coach_session
    ):
        (ana_id,) = seed(
            repository,
            {"clientName": "Ana", "phone": "0700", "assignedCoachId": coach_session.coach_id},
        )
        asyncio.run(make_service().load_clients())

        offline = make_service(online=False)
        asyncio.run(offline.delete_client(ana_id))
        offline.queue.enqueue(QueueItem.update("gone-id", {"clientName": "Gone"}))
        fill_form(offline, name="Bea", phone="0799")
        asyncio.run(offline.save())

        online = make_service()
        result = asyncio.run(online.start())

        assert result.applied == 1
        assert [i.action for i in online.queue.load()] == [
            QueueAction.UPDATE,
            QueueAction.CREATE,
        ]
        assert asyncio.run(repository.get(ana_id)).is_deleted
        visible = online.visible_clients()
        assert [c.client_name for c in visible] == ["Bea"]
        assert visible[0].pending
        assert [c.id for c in online.deleted_clients()] == [ana_id]

        online.clear()
        fill_form(online, name="Bea again", phone="0799")
        assert online.find_duplicate().match.client_name == "Bea"

    def test_queued_undelete_survives_reload(self, make_service, repository, coach_session):
        (ana_id,) = seed(
            repository,
            {"clientName": "Ana", "assignedCoachId": coach_session.coach_id},
        )
        asyncio.run(repository.soft_delete(ana_id))
        online = make_service()
        asyncio.run(online.load_clients())
        online.queue.enqueue(QueueItem.undelete(ana_id))

        asyncio.run(online.load_clients())

        assert [c.id for c in online.visible_clients()] == [ana_id]
        assert online.deleted_clients() == []
