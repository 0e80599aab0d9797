"""Client roster entry model."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .form_state import (
    Appointment,
    Evaluation,
    Page2Data,
    clean_text,
    create_empty_appointments,
    normalize_appointments,
)

DELETED_STATUS = "deleted"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a stored timestamp; anything unreadable becomes None."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds, as written by offline intents
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str) and value:
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class ClientRecord:
    """A client document as seen by the roster."""

    id: str
    client_name: str = ""
    phone: str = ""
    email: str = ""
    coach: str = ""
    date: str = ""
    age: str = ""
    page2_data: Page2Data = field(default_factory=Page2Data)
    appointments: tuple[Appointment, ...] = field(default_factory=create_empty_appointments)
    evaluation: Evaluation = field(default_factory=Evaluation)
    assigned_coach_id: str = ""
    deleted_at: datetime | None = None
    sync_status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pending: bool = False  # created offline, not yet in the store

    @property
    def is_deleted(self) -> bool:
        """Soft-deleted in the store or locally."""
        return self.deleted_at is not None or self.sync_status == DELETED_STATUS

    @property
    def display_name(self) -> str:
        return self.client_name.strip() or "Unnamed client"

    def mark_deleted(self, when: datetime) -> None:
        self.deleted_at = when
        self.sync_status = DELETED_STATUS

    def mark_restored(self) -> None:
        self.deleted_at = None
        self.sync_status = None

    def apply_payload(self, data: dict) -> None:
        """Merge a save payload into this entry."""
        merged = {**self.to_dict(), **data}
        updated = ClientRecord.from_dict(merged, id=self.id)
        self.client_name = updated.client_name
        self.phone = updated.phone
        self.email = updated.email
        self.coach = updated.coach
        self.date = updated.date
        self.age = updated.age
        self.page2_data = updated.page2_data
        self.appointments = updated.appointments
        self.evaluation = updated.evaluation
        self.assigned_coach_id = updated.assigned_coach_id

    def to_dict(self) -> dict:
        """Convert to dictionary (document field names)."""
        data = {
            "id": self.id,
            "clientName": self.client_name,
            "phone": self.phone,
            "email": self.email,
            "coach": self.coach,
            "date": self.date,
            "age": self.age,
            "page2Data": self.page2_data.to_dict(),
            "appointments": [a.to_dict() for a in self.appointments],
            "evaluation": self.evaluation.to_dict(),
            "assignedCoachId": self.assigned_coach_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.deleted_at is not None:
            data["deletedAt"] = self.deleted_at.isoformat()
        if self.sync_status is not None:
            data["syncStatus"] = self.sync_status
        if self.pending:
            data["pending"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict, id: str | None = None) -> "ClientRecord":
        """Create from a stored document, tolerating missing fields."""
        sync_status = data.get("syncStatus")
        return cls(
            id=id if id is not None else clean_text(data.get("id")),
            client_name=clean_text(data.get("clientName")),
            phone=clean_text(data.get("phone")),
            email=clean_text(data.get("email")),
            coach=clean_text(data.get("coach")),
            date=clean_text(data.get("date")),
            age=clean_text(data.get("age")),
            page2_data=Page2Data.from_dict(data.get("page2Data")),
            appointments=normalize_appointments(data.get("appointments")),
            evaluation=Evaluation.from_dict(data.get("evaluation")),
            assigned_coach_id=clean_text(data.get("assignedCoachId")),
            deleted_at=parse_timestamp(data.get("deletedAt")),
            sync_status=sync_status if isinstance(sync_status, str) else None,
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
            pending=bool(data.get("pending", False)),
        )
