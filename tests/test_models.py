"""Tests for data models."""

from datetime import datetime, timezone

import pytest

from wellness_pass.errors import InvalidFieldError
from wellness_pass.models.client import ClientRecord, parse_timestamp
from wellness_pass.models.form_state import (
    APPOINTMENT_COUNT,
    Appointment,
    FormState,
    Page2Data,
    Rating,
    normalize_appointments,
)
from wellness_pass.models.offline import QueueAction, QueueItem


class TestFormState:
    """Tests for FormState model."""

    def test_default_has_all_appointments(self):
        form = FormState.default()

        assert len(form.appointments) == APPOINTMENT_COUNT
        assert all(a.is_blank for a in form.appointments)
        assert form.client_id == ""
        assert form.evaluation.body_fat == ""

    def test_with_appointment_returns_new_state(self):
        form = FormState.default()
        updated = form.with_appointment(0, "bodyFat", "21.5")

        assert updated is not form
        assert updated.appointments[0].body_fat == "21.5"
        assert form.appointments[0].body_fat == ""

    def test_unchanged_value_returns_same_instance(self):
        form = FormState.default().with_page2("name", "Ana")

        assert form.with_page2("name", "Ana") is form

    def test_unknown_fields_rejected(self):
        form = FormState.default()

        with pytest.raises(InvalidFieldError):
            form.with_appointment(0, "shoeSize", "42")
        with pytest.raises(InvalidFieldError):
            form.with_appointment(APPOINTMENT_COUNT, "weight", "70")
        with pytest.raises(InvalidFieldError):
            form.with_evaluation("bodyFat", "superb")
        with pytest.raises(InvalidFieldError):
            form.with_page2("nickname", "A")

    def test_rating_accepts_enum(self):
        form = FormState.default().with_evaluation("muscleMass", Rating.GOOD)

        assert form.evaluation.muscle_mass == "good"

    def test_cleared_keeps_coach(self):
        form = (
            FormState.default()
            .with_page2("coach", "Maria")
            .with_page2("name", "Ana")
            .with_contact("phone", "0722")
        )
        cleared = form.cleared()

        assert cleared.page2_data == Page2Data(coach="Maria")
        assert cleared.phone == ""
        assert cleared.appointments == FormState.default().appointments

    def test_payload_uses_page2_header(self):
        form = (
            FormState.default()
            .with_page2("name", "Ana Pop")
            .with_page2("date", "07-March-2026")
            .with_contact("email", "ana@example.com")
        )
        payload = form.to_payload()

        assert payload["clientName"] == "Ana Pop"
        assert payload["date"] == "07-March-2026"
        assert payload["email"] == "ana@example.com"
        assert payload["page2Data"]["name"] == "Ana Pop"
        assert len(payload["appointments"]) == APPOINTMENT_COUNT

    def test_from_dict_normalizes_untrusted_data(self):
        form = FormState.from_dict(
            {
                "appointments": [{"weight": 70}, "garbage"],
                "evaluation": None,
                "page2Data": {"name": "Ana", "age": 34},
                "phone": None,
            }
        )

        assert len(form.appointments) == APPOINTMENT_COUNT
        assert form.appointments[0].weight == "70"
        assert form.appointments[1] == Appointment()
        assert form.page2_data.age == "34"
        assert form.phone == ""

    def test_normalize_appointments_truncates(self):
        rows = [{"weight": str(i)} for i in range(APPOINTMENT_COUNT + 5)]

        assert len(normalize_appointments(rows)) == APPOINTMENT_COUNT

    def test_from_client_prefers_top_level_fields(self):
        client = ClientRecord.from_dict(
            {
                "clientName": "Ana Pop",
                "coach": "",
                "age": "30",
                "page2Data": {"name": "Old", "coach": "Maria", "age": "31"},
            },
            id="c1",
        )
        form = FormState.from_client(client)

        assert form.client_id == "c1"
        assert form.page2_data.name == "Ana Pop"
        assert form.page2_data.coach == "Maria"
        assert form.page2_data.age == "31"


class TestClientRecord:
    """Tests for ClientRecord model."""

    def test_round_trip_keeps_deletion(self):
        client = ClientRecord(id="c1", client_name="Ana")
        client.mark_deleted(datetime(2026, 3, 1, tzinfo=timezone.utc))
        restored = ClientRecord.from_dict(client.to_dict())

        assert restored.is_deleted
        assert restored.deleted_at == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_mark_restored(self):
        client = ClientRecord(id="c1")
        client.mark_deleted(datetime.now(timezone.utc))
        client.mark_restored()

        assert not client.is_deleted
        assert "deletedAt" not in client.to_dict()

    def test_display_name_fallback(self):
        assert ClientRecord(id="c1", client_name="  ").display_name == "Unnamed client"

    def test_apply_payload_merges(self):
        client = ClientRecord(id="c1", client_name="Ana", phone="0722")
        client.apply_payload({"phone": "0733"})

        assert client.client_name == "Ana"
        assert client.phone == "0733"

    def test_parse_timestamp(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert parse_timestamp("2026-03-07T10:00:00") == datetime(
            2026, 3, 7, 10, tzinfo=timezone.utc
        )
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(True) is None


class TestQueueItem:
    """Tests for QueueItem model."""

    def test_to_dict_from_dict(self):
        item = QueueItem.update("c1", {"phone": "0722"})
        restored = QueueItem.from_dict(item.to_dict())

        assert restored == item

    def test_missing_action_is_inferred(self):
        assert QueueItem.from_dict({"clientId": "c1", "data": {}}).action == QueueAction.UPDATE
        assert QueueItem.from_dict({"data": {}}).action == QueueAction.CREATE

    @pytest.mark.parametrize(
        "entry",
        [
            "not a dict",
            {"action": "delete"},
            {"action": "explode", "clientId": "c1"},
            {"clientId": "c1", "data": [1, 2]},
        ],
    )
    def test_malformed_entries_rejected(self, entry):
        with pytest.raises(ValueError):
            QueueItem.from_dict(entry)
