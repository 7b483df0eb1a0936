# app/system_services/appointment_services.py
import logging
from datetime import date
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.entity_resolver.doctor_matching import filter_for_doctor
from app.queue_engine.feed import publish_day
from app.queue_engine.state_machine import AppointmentStatus, filter_appointments, is_terminal
from app.system_models.appointment_model.appointment_model import Appointment
from app.system_models.appointment_model.appointment_schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)


async def get_appointment_or_404(db: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await db.get(Appointment, appointment_id)
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


async def create_appointment(db: AsyncSession, appointment: AppointmentCreate, created_by: Optional[int] = None):
    """Book a visit. New appointments always start as scheduled, without a token."""
    data = appointment.model_dump()
    db_appointment = Appointment(
        **data,
        status=AppointmentStatus.SCHEDULED.value,
        token_number=None,
        created_by=created_by,
    )
    db.add(db_appointment)
    await db.commit()
    await db.refresh(db_appointment)
    logger.info(
        f"✅ Appointment {db_appointment.id} booked for {db_appointment.patient_name} "
        f"with {db_appointment.doctor_name} on {db_appointment.appointment_date}"
    )
    await publish_day(db, db_appointment.appointment_date)
    return db_appointment


async def update_appointment(db: AsyncSession, appointment_id: int, changes: AppointmentUpdate):
    appointment = await get_appointment_or_404(db, appointment_id)

    if is_terminal(appointment.status):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A {appointment.status} appointment can no longer be edited",
        )
    if appointment.token_number and changes.appointment_date != appointment.appointment_date:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot move an appointment that already holds a token to another date",
        )

    previous_date = appointment.appointment_date
    for key, value in changes.model_dump().items():
        setattr(appointment, key, value)
    await db.commit()
    await db.refresh(appointment)

    await publish_day(db, appointment.appointment_date)
    if previous_date != appointment.appointment_date:
        await publish_day(db, previous_date)
    return appointment


async def list_appointments(
    db: AsyncSession,
    appointment_date: Optional[date] = None,
    status_filter: Optional[str] = None,
    doctor_name: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Appointment]:
    """Appointments newest-created first, narrowed by the front-desk filters."""
    query = select(Appointment)
    if appointment_date:
        query = query.where(Appointment.appointment_date == appointment_date)
    result = await db.execute(query.order_by(Appointment.created_at.desc(), Appointment.id.desc()))
    appointments = list(result.scalars().all())

    if doctor_name:
        appointments = filter_for_doctor(appointments, doctor_name)
    return filter_appointments(appointments, search, status_filter)
