"""In-memory ownership of one period's appointment queues.

A ``PeriodStore`` holds one ``DoctorQueue`` per doctor. Each queue keeps its
appointments in insertion order; ascending number order is only applied when
listing. Availability entries live and die with the visible appointments that
carry the same patient name.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .models import (
    Appointment,
    AppointmentNotFound,
    Period,
    UnknownDoctorError,
    ValidationError,
    clean_name,
    new_local_id,
)
from .slots import RESERVED_NUMBERS, next_slot

logger = logging.getLogger(__name__)


class DoctorQueue:
    """Appointments and patient availability for one doctor in one period."""

    def __init__(self, doctor: str, reserved: Iterable[int]) -> None:
        self.doctor = doctor
        self.reserved = frozenset(reserved)
        self._records: List[Appointment] = []
        self._availability: Dict[str, bool] = {}
        self._editing_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[Appointment, ...]:
        """Raw storage, frozen records included, in insertion order."""

        return tuple(self._records)

    @property
    def availability(self) -> Dict[str, bool]:
        return dict(self._availability)

    @property
    def visible_count(self) -> int:
        return sum(1 for record in self._records if not record.frozen)

    def record_at(self, index: int) -> Appointment:
        if not 0 <= index < len(self._records):
            raise AppointmentNotFound(f"No appointment at position {index} for {self.doctor}")
        return self._records[index]

    def in_use(self) -> set[int]:
        return {record.appointment_no for record in self._records}

    def next_number(self) -> int:
        return next_slot(self.reserved, self.in_use())

    def index_of(
        self,
        appointment_id: Optional[str] = None,
        *,
        patient_name: Optional[str] = None,
        appointment_no: Optional[int] = None,
    ) -> int:
        """Return the backing position of a record.

        Lookup is by id when one is given, otherwise by the
        ``(patient_name, appointment_no)`` pair.
        """

        if appointment_id is not None:
            wanted = str(appointment_id)
            for index, record in enumerate(self._records):
                if record.id == wanted:
                    return index
            raise AppointmentNotFound(f"Appointment {wanted!r} not found for {self.doctor}")

        if patient_name is None or appointment_no is None:
            raise ValidationError("index_of needs an id or a patient name and number")
        for index, record in enumerate(self._records):
            if record.patient_name == patient_name and record.appointment_no == appointment_no:
                return index
        raise AppointmentNotFound(
            f"Appointment #{appointment_no} for {patient_name!r} not found for {self.doctor}"
        )

    def add(self, patient_name: str) -> Appointment:
        """Allocate the next free number and append a locally created record."""

        name = clean_name(patient_name)
        record = Appointment(
            id=new_local_id(),
            patient_name=name,
            appointment_no=self.next_number(),
        )
        return self.insert(record)

    def insert(self, record: Appointment) -> Appointment:
        """Append an already numbered record, e.g. one echoed by the server."""

        if record.appointment_no in self.in_use():
            raise ValidationError(
                f"Appointment number {record.appointment_no} is already in use for {self.doctor}"
            )
        if any(existing.id == record.id for existing in self._records):
            raise ValidationError(f"Appointment id {record.id!r} is already stored for {self.doctor}")

        self._records.append(record)
        if not record.frozen:
            self._availability[record.patient_name] = False
        return record

    def rename(self, index: int, new_name: str) -> bool:
        """Rename the record at ``index``; frozen records are left untouched."""

        record = self.record_at(index)
        if record.frozen:
            logger.debug("Refusing to rename frozen appointment #%s", record.appointment_no)
            return False
        name = clean_name(new_name)

        old_name = record.patient_name
        self._records[index] = record.renamed(name)
        if old_name != name:
            if self.has_patient(old_name):
                flag = self._availability.get(old_name, False)
            else:
                flag = self._availability.pop(old_name, False)
            self._availability[name] = flag

        if self._editing_id == record.id:
            self._editing_id = None
        return True

    def remove(self, index: int) -> Optional[Appointment]:
        """Delete the record at ``index``; returns ``None`` for frozen records."""

        record = self.record_at(index)
        if record.frozen:
            logger.debug("Refusing to delete frozen appointment #%s", record.appointment_no)
            return None

        del self._records[index]
        if not self.has_patient(record.patient_name):
            self._availability.pop(record.patient_name, None)
        if self._editing_id == record.id:
            self._editing_id = None
        return record

    def clear(self) -> List[Appointment]:
        """Remove every non-frozen record and reset availability."""

        removed = [record for record in self._records if not record.frozen]
        self._records = [record for record in self._records if record.frozen]
        self._availability = {}
        self._editing_id = None
        return removed

    def is_available(self, patient_name: str) -> bool:
        return self._availability.get(patient_name, False)

    def toggle_availability(self, patient_name: str) -> bool:
        name = clean_name(patient_name)
        if not self.has_patient(name):
            raise AppointmentNotFound(f"No appointment for {name!r} with {self.doctor}")
        value = not self._availability.get(name, False)
        self._availability[name] = value
        return value

    def list_visible(self) -> List[Appointment]:
        visible = [record for record in self._records if not record.frozen]
        return sorted(visible, key=lambda record: record.appointment_no)

    def search(self, term: str) -> List[Appointment]:
        """Match name (case-insensitive substring) or number (substring)."""

        needle = (term or "").strip().lower()
        visible = self.list_visible()
        if not needle:
            return visible
        return [
            record
            for record in visible
            if needle in record.patient_name.lower() or needle in str(record.appointment_no)
        ]

    def patient_list(self, term: str = "") -> List[Dict[str, Any]]:
        return [
            {**record.to_dict(), "isAvailable": self.is_available(record.patient_name)}
            for record in self.search(term)
        ]

    @property
    def editing(self) -> Optional[Appointment]:
        if self._editing_id is None:
            return None
        for record in self._records:
            if record.id == self._editing_id:
                return record
        return None

    def begin_edit(self, index: int) -> bool:
        record = self.record_at(index)
        if record.frozen:
            return False
        self._editing_id = record.id
        return True

    def cancel_edit(self) -> None:
        self._editing_id = None

    def seed_frozen(self) -> int:
        """Add a placeholder for each reserved number not already stored."""

        in_use = self.in_use()
        added = 0
        for number in sorted(self.reserved):
            if number not in in_use:
                self._records.append(Appointment.placeholder(number))
                added += 1
        return added

    def load(self, records: Iterable[Appointment], availability: Mapping[str, bool]) -> None:
        """Replace the queue contents with loaded records and availability."""

        self._records = []
        self._availability = {}
        self._editing_id = None
        for record in records:
            try:
                self.insert(record)
            except ValidationError as exc:
                logger.warning("Skipping loaded appointment for %s: %s", self.doctor, exc)
        for name, value in availability.items():
            if self.has_patient(name):
                self._availability[name] = bool(value)

    def snapshot(self) -> Dict[str, Any]:
        editing = self.editing
        return {
            "doctor": self.doctor,
            "appointments": [record.to_dict() for record in self.list_visible()],
            "availability": self.availability,
            "editing": editing.id if editing else None,
            "count": self.visible_count,
        }

    def has_patient(self, patient_name: str) -> bool:
        """True while a visible appointment carries exactly this name."""

        return any(
            not record.frozen and record.patient_name == patient_name for record in self._records
        )


class PeriodStore:
    """All doctors' queues for a single period."""

    def __init__(
        self,
        period: Period | str,
        reserved_table: Mapping[str, Iterable[int]] = RESERVED_NUMBERS,
    ) -> None:
        self.period = Period.coerce(period)
        self._reserved_table = dict(reserved_table)
        self._queues: Dict[str, DoctorQueue] = {}
        self.reset()

    def __iter__(self) -> Iterator[DoctorQueue]:
        return iter(self._queues.values())

    @property
    def doctors(self) -> Tuple[str, ...]:
        return tuple(self._queues)

    def queue(self, doctor: str) -> DoctorQueue:
        try:
            return self._queues[doctor]
        except KeyError as exc:
            raise UnknownDoctorError(f"Unknown doctor {doctor!r}") from exc

    def reset(self) -> None:
        self._queues = {
            doctor: DoctorQueue(doctor, reserved) for doctor, reserved in self._reserved_table.items()
        }

    def seed_frozen(self) -> None:
        for queue in self:
            queue.seed_frozen()

    def statistics(self) -> Dict[str, int]:
        counts = {queue.doctor: queue.visible_count for queue in self}
        counts["total"] = sum(counts.values())
        return counts

    def snapshot(self) -> Dict[str, Any]:
        return {
            "period": self.period.value,
            "doctors": {queue.doctor: queue.snapshot() for queue in self},
            "statistics": self.statistics(),
        }
