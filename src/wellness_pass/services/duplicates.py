"""Duplicate client detection."""

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..models.client import ClientRecord


class MatchType(str, Enum):
    """How confident a duplicate match is."""

    STRONG = "strong"  # phone or email
    NAME = "name"  # name only, no contact details given


class MatchReason(str, Enum):
    PHONE = "phone"
    EMAIL = "email"
    NAME = "name"


@dataclass(frozen=True)
class DuplicateCandidate:
    """The identifying fields of a client about to be created."""

    name: str = ""
    phone: str = ""
    email: str = ""

    @classmethod
    def from_payload(cls, payload: dict) -> "DuplicateCandidate":
        return cls(
            name=payload.get("clientName") or "",
            phone=payload.get("phone") or "",
            email=payload.get("email") or "",
        )


@dataclass(frozen=True)
class DuplicateMatch:
    """An existing client the candidate appears to duplicate."""

    type: MatchType
    match: ClientRecord
    reason: MatchReason

    @property
    def is_strong(self) -> bool:
        return self.type == MatchType.STRONG

    def describe(self) -> str:
        """Human-readable warning line."""
        if self.is_strong:
            return (
                f"Possible duplicate client: this {self.reason.value} matches "
                f"{self.match.display_name}"
            )
        return f"Possible duplicate by name: {self.match.display_name}"


def normalize_value(value: Any) -> str:
    """Trim and lowercase a comparison field."""
    if value is None:
        return ""
    return str(value).strip().lower()


def active_clients(
    roster: Iterable[ClientRecord], pending_deleted_ids: Collection[str] = ()
) -> list[ClientRecord]:
    """Clients that are neither deleted nor waiting for an offline delete."""
    return [
        client
        for client in roster
        if not client.is_deleted and client.id not in pending_deleted_ids
    ]


def find_duplicate(
    candidate: DuplicateCandidate,
    roster: Iterable[ClientRecord],
    pending_deleted_ids: Collection[str] = (),
) -> DuplicateMatch | None:
    """Look for an existing active client matching the candidate.

    Phone wins over email, and both win over name. The name is only
    compared when neither phone nor email was given: a different phone
    number means a different person, whatever the name.

    Returns:
        The first match found, or None when the save can go ahead
    """
    clients = active_clients(roster, pending_deleted_ids)
    phone = normalize_value(candidate.phone)
    email = normalize_value(candidate.email)
    name = normalize_value(candidate.name)

    if phone:
        for client in clients:
            if normalize_value(client.phone) == phone:
                return DuplicateMatch(MatchType.STRONG, client, MatchReason.PHONE)

    if email:
        for client in clients:
            if normalize_value(client.email) == email:
                return DuplicateMatch(MatchType.STRONG, client, MatchReason.EMAIL)

    if not phone and not email and name:
        for client in clients:
            if normalize_value(client.client_name) == name:
                return DuplicateMatch(MatchType.NAME, client, MatchReason.NAME)

    return None
