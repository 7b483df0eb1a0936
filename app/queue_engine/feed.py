# app/queue_engine/feed.py
"""
Glue between the appointments table, the state machine and the live feed.
"""
import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.queue_engine.broadcaster import queue_broadcaster
from app.queue_engine.schemas import DisplayToken, QueueDisplayResponse, QueueSnapshotResponse, QueueStats
from app.queue_engine.state_machine import AppointmentStatus, QueueSnapshot, build_queue_snapshot, filter_appointments
from app.system_models.appointment_model.appointment_model import Appointment
from app.system_models.appointment_model.appointment_schemas import AppointmentResponse

logger = logging.getLogger(__name__)


async def load_day(db: AsyncSession, appointment_date: date) -> List[Appointment]:
    result = await db.execute(
        select(Appointment).where(Appointment.appointment_date == appointment_date)
    )
    return list(result.scalars().all())


def _out(appointments: Iterable) -> List[AppointmentResponse]:
    return [AppointmentResponse.model_validate(a) for a in appointments]


def snapshot_response(
    snapshot: QueueSnapshot,
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> QueueSnapshotResponse:
    return QueueSnapshotResponse(
        appointment_date=snapshot.appointment_date,
        doctor_name=snapshot.doctor_name,
        current=AppointmentResponse.model_validate(snapshot.current) if snapshot.current else None,
        next=AppointmentResponse.model_validate(snapshot.next) if snapshot.next else None,
        appointments=_out(filter_appointments(snapshot.appointments, search, status)),
        waiting=_out(snapshot.waiting),
        scheduled=_out(snapshot.scheduled),
        completed=_out(snapshot.completed),
        cancelled=_out(snapshot.cancelled),
        next_token_number=snapshot.next_token_number,
        stats=QueueStats(**snapshot.stats),
    )


def _display_token(appointment) -> Optional[DisplayToken]:
    if appointment is None:
        return None
    return DisplayToken(
        token_number=appointment.token_number,
        patient_name=appointment.patient_name,
        patient_age=appointment.patient_age,
        patient_gender=appointment.patient_gender,
        appointment_time=appointment.appointment_time,
        doctor_name=appointment.doctor_name,
    )


def display_response(snapshot: QueueSnapshot) -> QueueDisplayResponse:
    message = None
    if snapshot.current is None and snapshot.next is None:
        message = "No patients are currently waiting or being served."
    return QueueDisplayResponse(
        appointment_date=snapshot.appointment_date,
        current=_display_token(snapshot.current),
        serving=[
            _display_token(a) for a in snapshot.appointments
            if a.status == AppointmentStatus.IN_PROGRESS.value
        ],
        next=_display_token(snapshot.next),
        message=message,
    )


async def publish_day(db: AsyncSession, appointment_date: date) -> None:
    """Push the day's fresh appointment list to every live subscriber."""
    if not queue_broadcaster.subscriber_count(appointment_date):
        return
    payload = _out(await load_day(db, appointment_date))
    delivered = queue_broadcaster.publish(appointment_date, payload)
    logger.debug(f"Queue update for {appointment_date} pushed to {delivered} subscribers")


def snapshot_from_payload(
    appointment_date: date,
    payload: List[AppointmentResponse],
    doctor_name: Optional[str] = None,
) -> QueueSnapshot:
    return build_queue_snapshot(appointment_date, payload, doctor_name)
