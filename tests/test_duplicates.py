"""Tests for duplicate client detection."""

from datetime import datetime, timezone

from wellness_pass.models.client import ClientRecord
from wellness_pass.services.duplicates import (
    DuplicateCandidate,
    MatchReason,
    MatchType,
    find_duplicate,
)


def client(id, name="", phone="", email=""):
    return ClientRecord(id=id, client_name=name, phone=phone, email=email)


ROSTER = [
    client("c1", "Ana Pop", phone="0722 000 111", email="ana@example.com"),
    client("c2", "Ion Ionescu", phone="0733 222 333"),
    client("c3", "Maria Rus", email="Maria@Example.com"),
]


class TestFindDuplicate:
    """Tests for find_duplicate."""

    def test_phone_match_is_strong(self):
        match = find_duplicate(DuplicateCandidate(name="Someone", phone="0722 000 111"), ROSTER)

        assert match.type == MatchType.STRONG
        assert match.reason == MatchReason.PHONE
        assert match.match.id == "c1"
        assert match.is_strong

    def test_phone_beats_email(self):
        match = find_duplicate(
            DuplicateCandidate(phone="0733 222 333", email="ana@example.com"), ROSTER
        )

        assert match.reason == MatchReason.PHONE
        assert match.match.id == "c2"

    def test_email_match_ignores_case_and_spaces(self):
        match = find_duplicate(DuplicateCandidate(email="  maria@example.COM "), ROSTER)

        assert match.reason == MatchReason.EMAIL
        assert match.match.id == "c3"

    def test_name_match_without_contact_details(self):
        match = find_duplicate(DuplicateCandidate(name="ion ionescu"), ROSTER)

        assert match.type == MatchType.NAME
        assert match.reason == MatchReason.NAME
        assert match.match.id == "c2"
        assert not match.is_strong

    def test_different_phone_same_name_is_not_a_duplicate(self):
        candidate = DuplicateCandidate(name="Ion Ionescu", phone="0799 999 999")

        assert find_duplicate(candidate, ROSTER) is None

    def test_empty_candidate_matches_nothing(self):
        assert find_duplicate(DuplicateCandidate(), ROSTER + [client("c4")]) is None

    def test_deleted_clients_are_ignored(self):
        deleted = client("c9", "Gone", phone="0700")
        deleted.mark_deleted(datetime.now(timezone.utc))

        assert find_duplicate(DuplicateCandidate(phone="0700"), [deleted]) is None

    def test_pending_deletes_are_ignored(self):
        candidate = DuplicateCandidate(phone="0722 000 111")

        assert find_duplicate(candidate, ROSTER, pending_deleted_ids={"c1"}) is None

    def test_candidate_from_payload(self):
        candidate = DuplicateCandidate.from_payload(
            {"clientName": "Ana", "phone": None, "email": "a@b.c"}
        )

        assert candidate == DuplicateCandidate(name="Ana", phone="", email="a@b.c")

    def test_describe(self):
        match = find_duplicate(DuplicateCandidate(phone="0722 000 111"), ROSTER)

        assert "phone" in match.describe()
        assert "Ana Pop" in match.describe()
