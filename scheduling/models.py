"""Data model shared by the scheduling core."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

LOCAL_ID_PREFIX = "local-"
FROZEN_ID_PREFIX = "frozen-"
FROZEN_NAME_TEMPLATE = "Frozen Appointment {number}"


class SchedulingError(RuntimeError):
    """Base exception for scheduling errors."""


class ValidationError(SchedulingError, ValueError):
    """Raised when an action is rejected before any mutation."""


class FrozenRecordViolation(SchedulingError):
    """Raised when a frozen appointment is asked to change."""


class AppointmentNotFound(SchedulingError, LookupError):
    """Raised when an identity does not match any stored appointment."""


class UnknownDoctorError(SchedulingError, LookupError):
    """Raised when a doctor key has no reserved-number table."""


class Period(str, Enum):
    """One of the two independent scheduling windows."""

    TODAY = "today"
    YESTERDAY = "yesterday"

    @classmethod
    def coerce(cls, value: "Period | str") -> "Period":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown period {value!r}") from exc


def new_local_id() -> str:
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


def clean_name(value: Any) -> str:
    """Return the trimmed patient name or raise ``ValidationError``."""

    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Patient name cannot be empty")
    return value.strip()


@dataclass(frozen=True)
class Appointment:
    """A single numbered slot in one doctor's queue."""

    id: str
    patient_name: str
    appointment_no: int
    frozen: bool = False

    @property
    def is_local(self) -> bool:
        """True when the record was never confirmed by the remote store."""

        return self.id.startswith((LOCAL_ID_PREFIX, FROZEN_ID_PREFIX))

    def renamed(self, patient_name: str) -> "Appointment":
        if self.frozen:
            raise FrozenRecordViolation(
                f"Appointment #{self.appointment_no} is frozen and cannot be renamed"
            )
        return replace(self, patient_name=clean_name(patient_name))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "patientName": self.patient_name,
            "appointmentNo": self.appointment_no,
            "frozen": self.frozen,
        }

    @classmethod
    def placeholder(cls, number: int) -> "Appointment":
        return cls(
            id=f"{FROZEN_ID_PREFIX}{number}",
            patient_name=FROZEN_NAME_TEMPLATE.format(number=number),
            appointment_no=number,
            frozen=True,
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Appointment":
        """Build an appointment from a remote record.

        Remote rows may use camelCase or snake_case keys.
        """

        if not isinstance(payload, Mapping):
            raise ValidationError("Appointment payload must be a mapping")

        raw_id = payload.get("id")
        name = _first_present(payload, ("patientName", "patient_name"))
        number = _first_present(payload, ("appointmentNo", "appointment_no"))
        if raw_id is None or raw_id == "":
            raise ValidationError(f"Appointment payload is missing an id: {dict(payload)!r}")
        try:
            appointment_no = int(number)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid appointment number {number!r}") from exc
        if appointment_no < 1:
            raise ValidationError(f"Invalid appointment number {appointment_no}")

        return cls(
            id=str(raw_id),
            patient_name=clean_name(name),
            appointment_no=appointment_no,
            frozen=_normalize_boolean(payload.get("frozen", False)),
        )


def availability_from_payload(payload: Mapping[str, Any]) -> tuple[str, bool]:
    """Return ``(patient_name, is_available)`` from a remote status row."""

    if not isinstance(payload, Mapping):
        raise ValidationError("Availability payload must be a mapping")
    name = clean_name(_first_present(payload, ("patientName", "patient_name")))
    value = _first_present(payload, ("isAvailable", "is_available"))
    return name, _normalize_boolean(value)


def _first_present(payload: Mapping[str, Any], keys: tuple[str, ...]) -> Optional[Any]:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _normalize_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "t", "yes", "y"}
    return False
