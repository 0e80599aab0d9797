"""Wellness pass form data models."""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..errors import InvalidFieldError

if TYPE_CHECKING:
    from .client import ClientRecord

APPOINTMENT_COUNT = 26

# Storage key -> attribute name
APPOINTMENT_FIELDS = {
    "age": "age",
    "height": "height",
    "weight": "weight",
    "bodyFat": "body_fat",
    "water": "water",
    "muscle": "muscle",
    "physique": "physique",
    "bmr": "bmr",
    "basal": "basal",
    "bone": "bone",
    "visceral": "visceral",
}

EVALUATION_FIELDS = {
    "bodyFat": "body_fat",
    "bodyWater": "body_water",
    "muscleMass": "muscle_mass",
    "visceralFat": "visceral_fat",
    "questionnaire": "questionnaire",
}

PAGE2_FIELDS = ("date", "name", "coach", "age")

CONTACT_FIELDS = ("phone", "email")


class Rating(str, Enum):
    """Evaluation rating tags, best to worst."""

    EXCELLENT = "excellent"
    GOOD = "good"
    MEDIUM = "medium"
    BAD = "bad"
    ALARMING = "alarming"


def clean_text(value: Any) -> str:
    """Coerce an untrusted scalar to a form string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _as_mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class Appointment:
    """Body-composition measurements taken at one appointment."""

    age: str = ""
    height: str = ""
    weight: str = ""
    body_fat: str = ""
    water: str = ""
    muscle: str = ""
    physique: str = ""
    bmr: str = ""
    basal: str = ""
    bone: str = ""
    visceral: str = ""

    @property
    def is_blank(self) -> bool:
        """True when no measurement has been entered."""
        return all(not getattr(self, f.name).strip() for f in fields(self))

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for key, attr in APPOINTMENT_FIELDS.items()}

    @classmethod
    def from_dict(cls, data: Any) -> "Appointment":
        data = _as_mapping(data)
        return cls(
            **{
                attr: clean_text(data.get(key))
                for key, attr in APPOINTMENT_FIELDS.items()
            }
        )


def create_empty_appointments() -> tuple[Appointment, ...]:
    """Create the fixed-length blank appointment grid."""
    return tuple(Appointment() for _ in range(APPOINTMENT_COUNT))


def normalize_appointments(appointments: Any) -> tuple[Appointment, ...]:
    """Pad or truncate stored appointments to exactly APPOINTMENT_COUNT rows."""
    if not isinstance(appointments, (list, tuple)):
        return create_empty_appointments()
    rows = [Appointment.from_dict(row) for row in appointments[:APPOINTMENT_COUNT]]
    rows.extend(Appointment() for _ in range(APPOINTMENT_COUNT - len(rows)))
    return tuple(rows)


@dataclass(frozen=True)
class Evaluation:
    """Overall ratings for the pass."""

    body_fat: str = ""
    body_water: str = ""
    muscle_mass: str = ""
    visceral_fat: str = ""
    questionnaire: str = ""

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for key, attr in EVALUATION_FIELDS.items()}

    @classmethod
    def from_dict(cls, data: Any) -> "Evaluation":
        data = _as_mapping(data)
        return cls(
            **{
                attr: clean_text(data.get(key))
                for key, attr in EVALUATION_FIELDS.items()
            }
        )


@dataclass(frozen=True)
class Page2Data:
    """Client header shown on the second page of the pass."""

    date: str = ""
    name: str = ""
    coach: str = ""
    age: str = ""

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "name": self.name,
            "coach": self.coach,
            "age": self.age,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Page2Data":
        data = _as_mapping(data)
        return cls(**{key: clean_text(data.get(key)) for key in PAGE2_FIELDS})


@dataclass(frozen=True)
class FormState:
    """The editable record for one client pass.

    Instances are immutable so that history snapshots stay intact. The
    ``with_*`` helpers return a new instance, or ``self`` when nothing
    changed, which lets the history store skip redundant entries.
    """

    appointments: tuple[Appointment, ...] = field(default_factory=create_empty_appointments)
    evaluation: Evaluation = field(default_factory=Evaluation)
    page2_data: Page2Data = field(default_factory=Page2Data)
    client_id: str = ""
    phone: str = ""
    email: str = ""

    @classmethod
    def default(cls) -> "FormState":
        """Create a blank form."""
        return cls()

    def cleared(self) -> "FormState":
        """Blank form that keeps the current coach."""
        return FormState(page2_data=Page2Data(coach=self.page2_data.coach))

    def with_appointment(self, index: int, key: str, value: str) -> "FormState":
        """Set one measurement of one appointment."""
        if not 0 <= index < APPOINTMENT_COUNT:
            raise InvalidFieldError(
                f"Appointment index must be between 0 and {APPOINTMENT_COUNT - 1}"
            )
        attr = APPOINTMENT_FIELDS.get(key)
        if attr is None:
            raise InvalidFieldError(f"Unknown appointment field '{key}'")
        current = self.appointments[index]
        if getattr(current, attr) == value:
            return self
        rows = list(self.appointments)
        rows[index] = replace(current, **{attr: value})
        return replace(self, appointments=tuple(rows))

    def with_evaluation(self, key: str, value: str | Rating) -> "FormState":
        """Set an evaluation rating ("" clears it)."""
        attr = EVALUATION_FIELDS.get(key)
        if attr is None:
            raise InvalidFieldError(f"Unknown evaluation field '{key}'")
        if isinstance(value, Rating):
            value = value.value
        if value and value not in {r.value for r in Rating}:
            raise InvalidFieldError(f"Unknown rating '{value}'")
        if getattr(self.evaluation, attr) == value:
            return self
        return replace(self, evaluation=replace(self.evaluation, **{attr: value}))

    def with_page2(self, key: str, value: str) -> "FormState":
        """Set a page-2 header field."""
        if key not in PAGE2_FIELDS:
            raise InvalidFieldError(f"Unknown page 2 field '{key}'")
        if getattr(self.page2_data, key) == value:
            return self
        return replace(self, page2_data=replace(self.page2_data, **{key: value}))

    def with_contact(self, key: str, value: str) -> "FormState":
        """Set phone or email."""
        if key not in CONTACT_FIELDS:
            raise InvalidFieldError(f"Unknown contact field '{key}'")
        if getattr(self, key) == value:
            return self
        return replace(self, **{key: value})

    def with_client_id(self, client_id: str) -> "FormState":
        if self.client_id == client_id:
            return self
        return replace(self, client_id=client_id)

    def to_payload(self) -> dict:
        """Build the client document written on save."""
        page2 = self.page2_data.to_dict()
        return {
            "clientName": self.page2_data.name,
            "phone": self.phone,
            "email": self.email,
            "coach": self.page2_data.coach,
            "date": self.page2_data.date,
            "age": self.page2_data.age,
            "page2Data": page2,
            "appointments": [a.to_dict() for a in self.appointments],
            "evaluation": self.evaluation.to_dict(),
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for the local cache."""
        return {
            "appointments": [a.to_dict() for a in self.appointments],
            "evaluation": self.evaluation.to_dict(),
            "page2Data": self.page2_data.to_dict(),
            "clientId": self.client_id,
            "phone": self.phone,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "FormState":
        """Normalize untrusted cached data into a complete form."""
        data = _as_mapping(data)
        return cls(
            appointments=normalize_appointments(data.get("appointments")),
            evaluation=Evaluation.from_dict(data.get("evaluation")),
            page2_data=Page2Data.from_dict(data.get("page2Data")),
            client_id=clean_text(data.get("clientId")),
            phone=clean_text(data.get("phone")),
            email=clean_text(data.get("email")),
        )

    @classmethod
    def from_client(cls, client: "ClientRecord") -> "FormState":
        """Load a roster entry into the form.

        Top-level document fields win over the nested page-2 copy, except
        for age where the page-2 value is preferred.
        """
        page2 = client.page2_data
        return cls(
            appointments=client.appointments,
            evaluation=client.evaluation,
            page2_data=Page2Data(
                date=client.date or page2.date,
                name=client.client_name or page2.name,
                coach=client.coach or page2.coach,
                age=page2.age or client.age,
            ),
            client_id=client.id or "",
            phone=client.phone,
            email=client.email,
        )
