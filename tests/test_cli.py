"""Tests for the command-line interface."""

import re

import pytest
from click.testing import CliRunner

from wellness_pass.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, temp_data_dir):
    """Run the CLI against the temporary data directory."""

    def run(*args, offline=False, admin=False, input=None):
        options = ["--data-dir", str(temp_data_dir)]
        if offline:
            options.append("--offline")
        if admin:
            options.append("--admin")
        return runner.invoke(main, [*options, *args], input=input)

    return run


@pytest.fixture
def initialized(invoke):
    result = invoke("init")
    assert result.exit_code == 0, result.output
    return invoke


def fill_form(invoke, name="Ana Pop", phone="0722000111"):
    for args in (
        ("form", "page2", "name", name),
        ("form", "page2", "coach", "Maria"),
        ("form", "set", "phone", phone),
    ):
        result = invoke(*args)
        assert result.exit_code == 0, result.output


def saved_id(output):
    match = re.search(r"ID: (\w+)", output)
    assert match, output
    return match.group(1)


class TestInit:
    """Tests for the init command."""

    def test_init_creates_store_and_cache(self, invoke, temp_data_dir):
        result = invoke("init")

        assert result.exit_code == 0
        assert "ready to use" in result.output
        assert (temp_data_dir / "wellness_pass.db").exists()
        assert (temp_data_dir / "local_cache.db").exists()

    def test_commands_require_init(self, invoke):
        result = invoke("form", "show")

        assert result.exit_code == 1
        assert "not initialized" in result.output


class TestFormCommands:
    """Tests for form editing commands."""

    def test_edits_are_kept_between_runs(self, initialized):
        fill_form(initialized)
        initialized("form", "appointment", "1", "weight", "70.5")
        initialized("form", "rate", "bodyFat", "good")

        result = initialized("form", "show")

        assert result.exit_code == 0
        assert "Ana Pop" in result.output
        assert "70.5" in result.output
        assert "bodyFat: Good" in result.output

    def test_repeated_value_is_no_change(self, initialized):
        initialized("form", "page2", "name", "Ana")

        result = initialized("form", "page2", "name", "Ana")

        assert "No change" in result.output

    def test_appointment_number_is_checked(self, initialized):
        result = initialized("form", "appointment", "27", "weight", "70")

        assert result.exit_code == 2

    def test_clear_keeps_coach(self, initialized):
        fill_form(initialized)

        initialized("form", "clear")
        result = initialized("form", "show")

        assert "(no name)" in result.output
        assert "Coach: Maria" in result.output

    def test_today(self, initialized):
        result = initialized("form", "today")

        assert result.exit_code == 0
        assert re.search(r"Date: \d{2}-[A-Z][a-z]+-\d{4}", initialized("form", "show").output)


class TestSaveAndClients:
    """Tests for saving and managing clients."""

    def test_save_and_list(self, initialized):
        fill_form(initialized)

        result = initialized("save")

        assert result.exit_code == 0, result.output
        assert "Client saved successfully" in result.output
        listing = initialized("clients", "list")
        assert "Ana Pop" in listing.output
        assert "Total: 1 client(s)" in listing.output

    def test_duplicate_cancel(self, initialized):
        fill_form(initialized)
        initialized("save")
        initialized("form", "clear")
        fill_form(initialized, name="Somebody")

        result = initialized("save", "--on-duplicate", "cancel")

        assert "Possible duplicate" in result.output
        assert "Cancelled" in result.output
        assert "Total: 1 client(s)" in initialized("clients", "list").output

    def test_duplicate_open_existing(self, initialized):
        fill_form(initialized)
        client_id = saved_id(initialized("save").output)
        initialized("form", "clear")
        fill_form(initialized, name="Somebody")

        result = initialized("save", "--on-duplicate", "open")

        assert "Opened existing client" in result.output
        assert f"Client ID: {client_id}" in initialized("form", "show").output

    def test_delete_restore_cycle(self, initialized):
        fill_form(initialized)
        client_id = saved_id(initialized("save").output)

        deleted = initialized("clients", "delete", client_id, "--force")
        assert "Client deleted." in deleted.output
        assert "No clients found." in initialized("clients", "list").output
        assert "Ana Pop" in initialized("clients", "list", "--view", "recycleBin").output

        restored = initialized("clients", "undo-delete")
        assert "Delete undone: Ana Pop" in restored.output
        assert "Ana Pop" in initialized("clients", "list").output

    def test_delete_unknown_client(self, initialized):
        result = initialized("clients", "delete", "nope", "--force")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_empty_bin_refused_offline(self, initialized):
        fill_form(initialized)
        client_id = saved_id(initialized("save").output)
        initialized("clients", "delete", client_id, "--force")

        result = initialized("clients", "empty-bin", "--force", offline=True)

        assert result.exit_code == 1
        assert "requires a connection" in result.output

    def test_empty_bin(self, initialized):
        fill_form(initialized)
        client_id = saved_id(initialized("save").output)
        initialized("clients", "delete", client_id, "--force")

        result = initialized("clients", "empty-bin", input="y\n")

        assert "Recycle bin emptied (1 client(s))" in result.output

    def test_purge_needs_admin(self, initialized):
        result = initialized("clients", "purge")

        assert result.exit_code == 1
        assert "Only admins" in result.output

        assert initialized("clients", "purge", admin=True).exit_code == 0


class TestOfflineCommands:
    """Tests for queued work and sync."""

    def test_offline_save_then_sync(self, initialized):
        fill_form(initialized)

        saved = initialized("save", offline=True)
        assert "Saved offline" in saved.output

        status = initialized("sync", "status", offline=True)
        assert "create" in status.output
        assert "Total: 1 pending change(s)" in status.output

        listing = initialized("clients", "list", offline=True)
        assert "(pending sync)" in listing.output

        synced = initialized("sync", "run")
        assert "Synced 1 offline change(s)" in synced.output
        assert "All changes synced" in synced.output
        assert "Nothing waiting to sync" in initialized("sync", "status").output

    def test_sync_run_refused_offline(self, initialized):
        result = initialized("sync", "run", offline=True)

        assert result.exit_code == 1

    def test_unsynced_duplicate_is_not_opened(self, initialized):
        fill_form(initialized)
        initialized("save", offline=True)
        initialized("form", "clear")
        fill_form(initialized, name="Somebody")

        result = initialized("save", "--on-duplicate", "open", offline=True)

        assert result.exit_code == 1
        assert "has not been synced yet" in result.output
        assert "Client ID: (new, unsaved)" in initialized("form", "show", offline=True).output
        synced = initialized("sync", "run")
        assert "All changes synced" in synced.output
