"""Data models for wellness-pass."""

from .client import ClientRecord
from .form_state import (
    APPOINTMENT_COUNT,
    Appointment,
    Evaluation,
    FormState,
    Page2Data,
    Rating,
)
from .offline import QueueAction, QueueItem

__all__ = [
    "APPOINTMENT_COUNT",
    "Appointment",
    "ClientRecord",
    "Evaluation",
    "FormState",
    "Page2Data",
    "QueueAction",
    "QueueItem",
    "Rating",
]
