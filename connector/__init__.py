"""Connector interfaces for the front desk board."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Set

from .board_client import (
    BoardAPIClient,
    BoardClientError,
    RemoteProtocolError,
    RemoteTimeout,
    RemoteUnavailable,
)

__all__ = [
    "BoardAPIClient",
    "BoardClientError",
    "InMemoryBoardBackend",
    "RemoteProtocolError",
    "RemoteTimeout",
    "RemoteUnavailable",
]


class InMemoryBoardBackend:
    """In-memory simulator of the board API for local runs and tests.

    Set ``failure`` to an exception instance to make calls raise it. When
    ``failing_operations`` is non-empty only the named operations fail.
    ``latency`` makes calls sleep before answering, limited to
    ``slow_operations`` when that set is non-empty.
    """

    def __init__(self) -> None:
        self._appointments: Dict[str, List[Dict[str, Any]]] = {"today": [], "yesterday": []}
        self._status: Dict[str, Dict[tuple[str, str], bool]] = {"today": {}, "yesterday": {}}
        self._sequence: int = 1
        self.failure: Optional[BoardClientError] = None
        self.failing_operations: Set[str] = set()
        self.calls: List[str] = []
        self.latency: float = 0.0
        self.slow_operations: Set[str] = set()

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.latency and (not self.slow_operations or operation in self.slow_operations):
            time.sleep(self.latency)
        if self.failure is None:
            return
        if not self.failing_operations or operation in self.failing_operations:
            raise self.failure

    def _rows(self, period: str) -> List[Dict[str, Any]]:
        if period not in self._appointments:
            raise RemoteProtocolError(f"Unknown period {period!r}")
        return self._appointments[period]

    def probe(self, *, timeout: Optional[float] = None) -> bool:
        self._enter("probe")
        return True

    def list_appointments(
        self, doctor: str, period: str, *, timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        self._enter("list_appointments")
        return [
            {key: value for key, value in row.items() if key != "doctor"}
            for row in self._rows(period)
            if row["doctor"] == doctor
        ]

    def create_appointment(
        self,
        doctor: str,
        patient_name: str,
        appointment_no: int,
        *,
        period: str,
        frozen: bool = False,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        self._enter("create_appointment")
        rows = self._rows(period)
        for row in rows:
            if row["doctor"] == doctor and row["appointmentNo"] == appointment_no:
                raise RemoteProtocolError(f"Appointment number {appointment_no} already exists")
        row = {
            "id": self._sequence,
            "doctor": doctor,
            "patientName": patient_name,
            "appointmentNo": appointment_no,
            "frozen": frozen,
        }
        self._sequence += 1
        rows.append(row)
        return {key: value for key, value in row.items() if key != "doctor"}

    def update_appointment(
        self,
        appointment_id: str,
        patient_name: str,
        *,
        period: str,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        self._enter("update_appointment")
        for row in self._rows(period):
            if str(row["id"]) == str(appointment_id):
                row["patientName"] = patient_name
                return {key: value for key, value in row.items() if key != "doctor"}
        raise RemoteProtocolError(f"Appointment {appointment_id!r} not found")

    def delete_appointment(
        self, appointment_id: str, *, period: str, timeout: Optional[float] = None
    ) -> None:
        self._enter("delete_appointment")
        rows = self._rows(period)
        for index, row in enumerate(rows):
            if str(row["id"]) == str(appointment_id):
                del rows[index]
                return
        raise RemoteProtocolError(f"Appointment {appointment_id!r} not found")

    def list_patient_status(
        self, doctor: str, period: str, *, timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        self._enter("list_patient_status")
        self._rows(period)
        return [
            {"patientName": name, "isAvailable": value}
            for (owner, name), value in self._status[period].items()
            if owner == doctor
        ]

    def update_patient_status(
        self,
        doctor: str,
        patient_name: str,
        is_available: bool,
        *,
        period: str,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        self._enter("update_patient_status")
        self._rows(period)
        self._status[period][(doctor, patient_name)] = bool(is_available)
        return {"patientName": patient_name, "isAvailable": bool(is_available)}
