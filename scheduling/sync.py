"""Remote sync adapter.

Wraps a board backend (``connector.BoardAPIClient`` or the in-memory
simulator) and converts every remote outcome into a ``SyncResult``. A single
``available`` flag, set by ``probe``, gates all remote attempts; the first
failed call clears it for the rest of the session.

Every backend call runs on a worker thread and is abandoned once its deadline
passes. The transport timeout handed to ``requests`` only bounds each socket
read, so a server trickling bytes could otherwise hold a call open forever.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from connector.board_client import (
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    BoardClientError,
    RemoteProtocolError,
    RemoteTimeout,
    RemoteUnavailable,
)

from .models import Appointment, Period, ValidationError, availability_from_payload

logger = logging.getLogger(__name__)

# Abandoned calls keep their worker until the transport gives up on them.
MAX_PENDING_CALLS = 4


class BoardBackend(Protocol):
    """Protocol describing the remote CRUD collaborator."""

    def probe(self, *, timeout: Optional[float] = None) -> bool:
        """Return True when the remote answers a lightweight read."""

    def list_appointments(
        self, doctor: str, period: str, *, timeout: Optional[float] = None
    ) -> Sequence[Mapping[str, Any]]:
        """Return every appointment row for ``doctor`` in ``period``."""

    def create_appointment(
        self,
        doctor: str,
        patient_name: str,
        appointment_no: int,
        *,
        period: str,
        frozen: bool = False,
        timeout: Optional[float] = None,
    ) -> Mapping[str, Any]:
        """Persist a new appointment and return the stored row."""

    def update_appointment(
        self, appointment_id: str, patient_name: str, *, period: str, timeout: Optional[float] = None
    ) -> Mapping[str, Any]:
        """Rename an appointment and return the stored row."""

    def delete_appointment(
        self, appointment_id: str, *, period: str, timeout: Optional[float] = None
    ) -> None:
        """Delete an appointment."""

    def list_patient_status(
        self, doctor: str, period: str, *, timeout: Optional[float] = None
    ) -> Sequence[Mapping[str, Any]]:
        """Return availability rows for ``doctor`` in ``period``."""

    def update_patient_status(
        self,
        doctor: str,
        patient_name: str,
        is_available: bool,
        *,
        period: str,
        timeout: Optional[float] = None,
    ) -> Mapping[str, Any]:
        """Upsert one availability row."""


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one remote attempt."""

    ok: bool
    attempted: bool
    data: Any = None
    error: Optional[BoardClientError] = None

    @classmethod
    def success(cls, data: Any = None) -> "SyncResult":
        return cls(ok=True, attempted=True, data=data)

    @classmethod
    def failed(cls, error: BoardClientError) -> "SyncResult":
        return cls(ok=False, attempted=True, error=error)

    @classmethod
    def skipped(cls) -> "SyncResult":
        return cls(
            ok=False,
            attempted=False,
            error=RemoteUnavailable("Remote store is marked unavailable"),
        )


class RemoteSyncAdapter:
    """Bounded, non-throwing access to the remote board store."""

    def __init__(
        self,
        backend: Optional[BoardBackend],
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self._backend = backend
        self.timeout = timeout
        self.probe_timeout = probe_timeout
        self.available = False
        self._executor = ThreadPoolExecutor(
            max_workers=MAX_PENDING_CALLS, thread_name_prefix="board-sync"
        )

    def _bounded(
        self, operation: str, deadline: float, func: Callable[..., Any], *args: Any, **kwargs: Any
    ) -> Any:
        """Run ``func`` and give up on it once ``deadline`` seconds have passed."""

        future = self._executor.submit(func, *args, timeout=deadline, **kwargs)
        try:
            return future.result(timeout=deadline)
        except FuturesTimeout as exc:
            future.cancel()
            raise RemoteTimeout(f"Remote {operation} exceeded its {deadline:g}s deadline") from exc

    def probe(self) -> bool:
        """Run the health check and set ``available`` from its result."""

        if self._backend is None:
            self.available = False
            return False
        try:
            self.available = bool(self._bounded("probe", self.probe_timeout, self._backend.probe))
        except BoardClientError as exc:
            logger.info("Remote store unavailable, using local state: %s", exc)
            self.available = False
        return self.available

    def mark_unavailable(self, operation: str, error: BoardClientError) -> None:
        if self.available:
            logger.warning(
                "Remote %s failed (%s: %s); switching to local-only mode",
                operation,
                type(error).__name__,
                error,
            )
        self.available = False

    def _call(self, operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> SyncResult:
        if not self.available or self._backend is None:
            return SyncResult.skipped()
        try:
            data = self._bounded(operation, self.timeout, func, *args, **kwargs)
        except BoardClientError as exc:
            self.mark_unavailable(operation, exc)
            return SyncResult.failed(exc)
        return SyncResult.success(data)

    def fetch_appointments(self, doctor: str, period: Period) -> Optional[List[Appointment]]:
        """Return the remote queue, or ``None`` when the read failed."""

        if self._backend is None:
            return None
        result = self._call(
            "list_appointments", self._backend.list_appointments, doctor, period.value
        )
        if not result.ok:
            return None

        records: List[Appointment] = []
        for row in result.data or []:
            try:
                records.append(Appointment.from_payload(row))
            except ValidationError as exc:
                logger.warning("Skipping invalid appointment row %s: %s", row, exc)
        return records

    def fetch_availability(self, doctor: str, period: Period) -> Optional[Dict[str, bool]]:
        """Return the remote availability map, or ``None`` when the read failed."""

        if self._backend is None:
            return None
        result = self._call(
            "list_patient_status", self._backend.list_patient_status, doctor, period.value
        )
        if not result.ok:
            return None

        availability: Dict[str, bool] = {}
        for row in result.data or []:
            try:
                name, value = availability_from_payload(row)
            except ValidationError as exc:
                logger.warning("Skipping invalid patient status row %s: %s", row, exc)
                continue
            availability[name] = value
        return availability

    def create(self, doctor: str, patient_name: str, appointment_no: int, period: Period) -> SyncResult:
        """Create remotely; on success ``data`` is the confirmed ``Appointment``."""

        if self._backend is None:
            return SyncResult.skipped()
        result = self._call(
            "create_appointment",
            self._backend.create_appointment,
            doctor,
            patient_name,
            appointment_no,
            period=period.value,
            frozen=False,
        )
        if not result.ok:
            return result
        try:
            record = Appointment.from_payload(result.data)
        except ValidationError as exc:
            error = RemoteProtocolError(f"Unusable appointment echoed by remote: {exc}")
            self.mark_unavailable("create_appointment", error)
            return SyncResult.failed(error)
        return SyncResult.success(record)

    def rename(self, appointment_id: str, patient_name: str, period: Period) -> SyncResult:
        if self._backend is None:
            return SyncResult.skipped()
        return self._call(
            "update_appointment",
            self._backend.update_appointment,
            appointment_id,
            patient_name,
            period=period.value,
        )

    def delete(self, appointment_id: str, period: Period) -> SyncResult:
        if self._backend is None:
            return SyncResult.skipped()
        return self._call(
            "delete_appointment",
            self._backend.delete_appointment,
            appointment_id,
            period=period.value,
        )

    def set_availability(
        self, doctor: str, patient_name: str, is_available: bool, period: Period
    ) -> SyncResult:
        if self._backend is None:
            return SyncResult.skipped()
        return self._call(
            "update_patient_status",
            self._backend.update_patient_status,
            doctor,
            patient_name,
            is_available,
            period=period.value,
        )
