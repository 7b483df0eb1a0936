# app/queue_engine/state_machine.py

"""
Token Queue State Machine
Per-appointment lifecycle and the derived queue views (current / next /
waiting). DETERMINISTIC, no I/O: every view is recomputed from the full
list of a day's appointments.

    scheduled -> token_generated -> in_progress -> completed
         \               \               \
          +---------------+---------------+--> cancelled
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional

from app.entity_resolver.doctor_matching import filter_for_doctor
from app.helpers.time import as_utc


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    TOKEN_GENERATED = "token_generated"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TRANSITIONS: Dict[str, set] = {
    AppointmentStatus.SCHEDULED.value: {
        AppointmentStatus.TOKEN_GENERATED.value,
        AppointmentStatus.CANCELLED.value,
    },
    AppointmentStatus.TOKEN_GENERATED.value: {
        AppointmentStatus.IN_PROGRESS.value,
        AppointmentStatus.CANCELLED.value,
    },
    AppointmentStatus.IN_PROGRESS.value: {
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.CANCELLED.value,
    },
    AppointmentStatus.COMPLETED.value: set(),
    AppointmentStatus.CANCELLED.value: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


class InvalidTransitionError(Exception):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move appointment from '{current}' to '{target}'")


def _value(status) -> str:
    return status.value if isinstance(status, AppointmentStatus) else str(status)


def can_transition(current, target) -> bool:
    return _value(target) in TRANSITIONS.get(_value(current), set())


def ensure_transition(current, target) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(_value(current), _value(target))


def sources_for(target) -> List[str]:
    """Statuses an appointment may be in for a move to `target` to be legal."""
    target = _value(target)
    return [s for s, targets in TRANSITIONS.items() if target in targets]


def is_terminal(status) -> bool:
    return _value(status) in TERMINAL_STATUSES


# ============================================================================
# ORDERING
# ============================================================================
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def queue_sort_key(appointment):
    """Tokened first by token number, then untokened by creation time."""
    created = as_utc(getattr(appointment, "created_at", None)) or _EPOCH
    token = getattr(appointment, "token_number", None)
    if token:
        return (0, token, created, appointment.id or 0)
    return (1, 0, created, appointment.id or 0)


def sort_queue(appointments: Iterable) -> list:
    return sorted(appointments, key=queue_sort_key)


def next_token_number(appointments: Iterable) -> int:
    return max((a.token_number or 0 for a in appointments), default=0) + 1


def current_token(appointments: Iterable):
    """The appointment being seen right now, if any."""
    for appointment in sort_queue(appointments):
        if appointment.status == AppointmentStatus.IN_PROGRESS.value:
            return appointment
    return None


def waiting_queue(appointments: Iterable) -> list:
    return sort_queue(
        a for a in appointments
        if a.status == AppointmentStatus.TOKEN_GENERATED.value and a.token_number
    )


def next_token(appointments: Iterable):
    waiting = waiting_queue(appointments)
    return waiting[0] if waiting else None


def filter_appointments(appointments: Iterable, search: Optional[str] = None, status: Optional[str] = None) -> list:
    """Search by patient name, phone or token number; status 'all' keeps everything."""
    result = list(appointments)
    if search:
        needle = search.lower()
        result = [
            a for a in result
            if needle in (a.patient_name or "").lower()
            or search in (a.patient_phone or "")
            or (a.token_number and search in str(a.token_number))
        ]
    if status and status != "all":
        result = [a for a in result if a.status == status]
    return result


# ============================================================================
# SNAPSHOT
# ============================================================================
@dataclass
class QueueSnapshot:
    appointment_date: date
    doctor_name: Optional[str]
    appointments: list = field(default_factory=list)
    current: Optional[object] = None
    next: Optional[object] = None
    waiting: list = field(default_factory=list)
    scheduled: list = field(default_factory=list)
    completed: list = field(default_factory=list)
    cancelled: list = field(default_factory=list)
    next_token_number: int = 1

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "waiting": len(self.waiting),
            "in_progress": sum(1 for a in self.appointments if a.status == AppointmentStatus.IN_PROGRESS.value),
            "completed": len(self.completed),
            "total_tokens": sum(1 for a in self.appointments if a.token_number),
        }


def build_queue_snapshot(appointment_date: date, appointments: Iterable, doctor_name: Optional[str] = None) -> QueueSnapshot:
    """
    Partition one day's appointments.
    Tokens are unique per date, so the next token number is taken over the
    whole day even when the view is narrowed to one doctor.
    """
    day = [a for a in appointments if a.appointment_date == appointment_date]
    upcoming = next_token_number(day)
    if doctor_name:
        day = filter_for_doctor(day, doctor_name)

    ordered = sort_queue(day)
    by_status = lambda s: [a for a in ordered if a.status == s.value]  # noqa: E731

    return QueueSnapshot(
        appointment_date=appointment_date,
        doctor_name=doctor_name,
        appointments=ordered,
        current=current_token(ordered),
        next=next_token(ordered),
        waiting=waiting_queue(ordered),
        scheduled=by_status(AppointmentStatus.SCHEDULED),
        completed=by_status(AppointmentStatus.COMPLETED),
        cancelled=by_status(AppointmentStatus.CANCELLED),
        next_token_number=upcoming,
    )
