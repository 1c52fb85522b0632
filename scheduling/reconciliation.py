"""Reconciliation of optimistic local state against the remote store.

Every mutating action first tries the remote store (when it is marked
available and the record is known to it) and then applies exactly one local
mutation: either the server-confirmed result or the same change as a local
fallback.
"""
from __future__ import annotations

import functools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ContextManager, Dict, List, Optional, TypeVar

from connector.board_client import RemoteProtocolError

from .models import Appointment, AppointmentNotFound, Period, ValidationError, clean_name
from .period_store import DoctorQueue, PeriodStore
from .sync import RemoteSyncAdapter, SyncResult

logger = logging.getLogger(__name__)


class ActionStatus(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"
    FALLBACK = "fallback"
    REFUSED = "refused"


@dataclass(frozen=True)
class ActionOutcome:
    """Result of one reconciled action, suitable for user messaging."""

    action: str
    status: ActionStatus
    message: str
    appointment: Optional[Appointment] = None
    value: Any = None

    @property
    def is_local(self) -> bool:
        return self.status in (ActionStatus.LOCAL, ActionStatus.FALLBACK)

    @property
    def applied(self) -> bool:
        return self.status is not ActionStatus.REFUSED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "status": self.status.value,
            "message": self.message,
            "appointment": self.appointment.to_dict() if self.appointment else None,
            "value": self.value,
        }


def _status_for(result: SyncResult) -> ActionStatus:
    if result.ok:
        return ActionStatus.REMOTE
    return ActionStatus.FALLBACK if result.attempted else ActionStatus.LOCAL


def _label(message: str, status: ActionStatus) -> str:
    return f"{message} (Local)" if status in (ActionStatus.LOCAL, ActionStatus.FALLBACK) else message


_Method = TypeVar("_Method", bound=Callable[..., Any])


def serialized(method: _Method) -> _Method:
    """Run ``method`` while holding the owner's action lock."""

    @functools.wraps(method)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class ReconciliationController:
    """Owns one ``PeriodStore`` and routes every mutation through the remote.

    Actions run one at a time: each holds ``lock`` from its first read of the
    queue until its local mutation lands, remote round trip included. Pass the
    same lock to every controller that shares a remote store.
    """

    def __init__(
        self,
        store: PeriodStore,
        sync: RemoteSyncAdapter,
        *,
        lock: Optional[ContextManager[Any]] = None,
    ) -> None:
        self._store = store
        self._sync = sync
        self._lock = lock if lock is not None else threading.RLock()

    @property
    def period(self) -> Period:
        return self._store.period

    @property
    def store(self) -> PeriodStore:
        return self._store

    def queue(self, doctor: str) -> DoctorQueue:
        return self._store.queue(doctor)

    @serialized
    def load(self) -> bool:
        """Load every doctor's queue from the remote store.

        Doctors whose read fails get the frozen-only baseline instead.
        Returns True when every queue came from the remote.
        """

        complete = True
        for queue in self._store:
            records = self._sync.fetch_appointments(queue.doctor, self.period)
            if records is None:
                logger.info(
                    "Could not load %s appointments for %s; using frozen baseline",
                    self.period.value,
                    queue.doctor,
                )
                queue.load([], {})
                queue.seed_frozen()
                complete = False
                continue
            availability = self._sync.fetch_availability(queue.doctor, self.period)
            queue.load(records, availability or {})
        return complete

    @serialized
    def seed_local(self) -> None:
        self._store.reset()
        self._store.seed_frozen()

    @serialized
    def add(self, doctor: str, patient_name: str) -> ActionOutcome:
        name = clean_name(patient_name)
        queue = self.queue(doctor)
        appointment_no = queue.next_number()

        result = self._sync.create(doctor, name, appointment_no, self.period)
        record: Optional[Appointment] = None
        if result.ok:
            try:
                record = queue.insert(result.data)
            except ValidationError as exc:
                logger.warning("Remote echoed an unusable appointment for %s: %s", doctor, exc)
                error = RemoteProtocolError(f"Unusable appointment echoed by remote: {exc}")
                self._sync.mark_unavailable("create_appointment", error)
                result = SyncResult.failed(error)
        if record is None:
            record = queue.add(name)
            if result.attempted:
                logger.info("Added #%s for %s locally after remote failure", record.appointment_no, doctor)

        status = _status_for(result)
        return ActionOutcome(
            action="add",
            status=status,
            appointment=record,
            message=_label(f"Appointment #{record.appointment_no} added for {record.patient_name}", status),
        )

    @serialized
    def rename(self, doctor: str, appointment_id: str, new_name: str) -> ActionOutcome:
        queue = self.queue(doctor)
        index = queue.index_of(appointment_id)
        record = queue.record_at(index)
        if record.frozen:
            return self._refused("rename", record)
        name = clean_name(new_name)

        result = self._remote_or_skip(record, lambda: self._sync.rename(record.id, name, self.period))
        queue.rename(index, name)
        status = _status_for(result)
        return ActionOutcome(
            action="rename",
            status=status,
            appointment=queue.record_at(index),
            message=_label("Patient name updated successfully", status),
        )

    @serialized
    def remove(self, doctor: str, appointment_id: str) -> ActionOutcome:
        queue = self.queue(doctor)
        index = queue.index_of(appointment_id)
        record = queue.record_at(index)
        if record.frozen:
            return self._refused("remove", record)

        result = self._remote_or_skip(record, lambda: self._sync.delete(record.id, self.period))
        queue.remove(index)
        status = _status_for(result)
        return ActionOutcome(
            action="remove",
            status=status,
            appointment=record,
            message=_label(f"Appointment for {record.patient_name} deleted", status),
        )

    @serialized
    def toggle_availability(self, doctor: str, patient_name: str) -> ActionOutcome:
        name = clean_name(patient_name)
        queue = self.queue(doctor)
        if not queue.has_patient(name):
            raise AppointmentNotFound(f"No appointment for {name!r} with {doctor}")
        new_value = not queue.is_available(name)

        result = self._sync.set_availability(doctor, name, new_value, self.period)
        value = queue.toggle_availability(name)
        status = _status_for(result)
        state = "available" if value else "not available"
        return ActionOutcome(
            action="toggle_availability",
            status=status,
            value=value,
            message=_label(f"{name} marked {state}", status),
        )

    @serialized
    def clear(self, doctor: Optional[str] = None) -> ActionOutcome:
        """Remove every non-frozen appointment for one doctor or all of them."""

        queues = [self.queue(doctor)] if doctor is not None else list(self._store)
        results: List[SyncResult] = []
        removed = 0
        for queue in queues:
            for record in queue.list_visible():
                if record.is_local:
                    results.append(SyncResult.skipped())
                else:
                    results.append(self._sync.delete(record.id, self.period))
            removed += len(queue.clear())

        if any(result.attempted and not result.ok for result in results):
            status = ActionStatus.FALLBACK
        elif all(result.ok for result in results) and (results or self._sync.available):
            status = ActionStatus.REMOTE
        else:
            status = ActionStatus.LOCAL
        return ActionOutcome(
            action="clear",
            status=status,
            value=removed,
            message=_label(f"All {self.period.value} appointments have been cleared", status),
        )

    @serialized
    def begin_edit(self, doctor: str, appointment_id: str) -> ActionOutcome:
        queue = self.queue(doctor)
        index = queue.index_of(appointment_id)
        record = queue.record_at(index)
        if not queue.begin_edit(index):
            return self._refused("begin_edit", record)
        return ActionOutcome(
            action="begin_edit",
            status=ActionStatus.LOCAL,
            appointment=record,
            message=f"Editing appointment #{record.appointment_no}",
        )

    @serialized
    def cancel_edit(self, doctor: str) -> None:
        self.queue(doctor).cancel_edit()

    @serialized
    def search(self, doctor: str, term: str = "") -> List[Appointment]:
        return self.queue(doctor).search(term)

    @serialized
    def patient_list(self, doctor: str, term: str = "") -> List[Dict[str, Any]]:
        return self.queue(doctor).patient_list(term)

    @serialized
    def snapshot(self) -> Dict[str, Any]:
        return self._store.snapshot()

    def _remote_or_skip(self, record: Appointment, call: Callable[[], SyncResult]) -> SyncResult:
        if record.is_local:
            return SyncResult.skipped()
        return call()

    @staticmethod
    def _refused(action: str, record: Appointment) -> ActionOutcome:
        logger.debug("Refused %s on frozen appointment #%s", action, record.appointment_no)
        return ActionOutcome(
            action=action,
            status=ActionStatus.REFUSED,
            appointment=record,
            message=f"Appointment #{record.appointment_no} is frozen",
        )
