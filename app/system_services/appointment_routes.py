# app/system_services/appointment_routes.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.system_models.appointment_model.appointment_schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
)
from app.system_services import appointment_services
from app.users.auth_dependencies import StaffSession, require_roles

router = APIRouter()

front_desk = require_roles("receptionist")
doctor_desk = require_roles("doctor")
any_desk = require_roles("doctor", "receptionist")


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment: AppointmentCreate,
    session: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    """Book a new appointment. It starts as scheduled, without a token."""
    return await appointment_services.create_appointment(db, appointment, session.user_id)


@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    appointment_date: Optional[date] = Query(None, alias="date"),
    status_filter: Optional[str] = Query(None, alias="status"),
    doctor: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Patient name, phone or token number"),
    _: StaffSession = Depends(any_desk),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_services.list_appointments(db, appointment_date, status_filter, doctor, search)


# Declared before /{appointment_id} so "mine" is not read as an id
@router.get("/mine", response_model=List[AppointmentResponse])
async def my_appointments(
    appointment_date: Optional[date] = Query(None, alias="date"),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    session: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    """Appointments booked under the logged-in doctor's name."""
    return await appointment_services.list_appointments(
        db, appointment_date, status_filter, session.display_name, search
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    _: StaffSession = Depends(any_desk),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_services.get_appointment_or_404(db, appointment_id)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    changes: AppointmentUpdate,
    _: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    """Edit booking details. Status and token only move through /api/queue."""
    return await appointment_services.update_appointment(db, appointment_id, changes)
