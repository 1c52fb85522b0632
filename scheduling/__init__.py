"""Appointment-slot allocation and dual-period state management."""

from .coordinator import FrontDeskBoard
from .models import (
    Appointment,
    AppointmentNotFound,
    FrozenRecordViolation,
    Period,
    SchedulingError,
    UnknownDoctorError,
    ValidationError,
)
from .period_store import DoctorQueue, PeriodStore
from .reconciliation import ActionOutcome, ActionStatus, ReconciliationController
from .slots import DOCTORS, RESERVED_NUMBERS, next_slot
from .sync import RemoteSyncAdapter, SyncResult

__all__ = [
    "ActionOutcome",
    "ActionStatus",
    "Appointment",
    "AppointmentNotFound",
    "DOCTORS",
    "DoctorQueue",
    "FrontDeskBoard",
    "FrozenRecordViolation",
    "Period",
    "PeriodStore",
    "RESERVED_NUMBERS",
    "ReconciliationController",
    "RemoteSyncAdapter",
    "SchedulingError",
    "SyncResult",
    "UnknownDoctorError",
    "ValidationError",
    "next_slot",
]
