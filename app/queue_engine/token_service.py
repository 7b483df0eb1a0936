# app/queue_engine/token_service.py

"""
Token Queue Operations
Every move goes through a conditional UPDATE (WHERE status = <expected>), so
two desks acting on the same appointment cannot both win. Token numbers come
from a per-date counter that is bumped in a single UPDATE ... RETURNING.
"""
import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.entity_resolver.doctor_matching import filter_for_doctor, is_same_doctor
from app.helpers.time import utcnow
from app.queue_engine.feed import load_day, publish_day
from app.queue_engine.state_machine import (
    AppointmentStatus,
    InvalidTransitionError,
    build_queue_snapshot,
    current_token,
    ensure_transition,
    next_token,
)
from app.system_models.appointment_model.appointment_model import Appointment
from app.system_models.token_counter_model.token_counter_model import TokenCounter
from app.system_services.appointment_services import get_appointment_or_404

logger = logging.getLogger(__name__)

ALLOCATION_ATTEMPTS = 3


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def _check_transition(appointment: Appointment, target: AppointmentStatus) -> None:
    try:
        ensure_transition(appointment.status, target)
    except InvalidTransitionError as exc:
        logger.warning(f"⚠️  Appointment {appointment.id}: {exc}")
        raise _conflict(str(exc))


async def _allocate_token(db: AsyncSession, appointment_date: date) -> int:
    """
    Next token for the date, inside the caller's transaction.
    The first allocation of a day creates the counter row, seeded from any
    tokens already recorded for that date.
    """
    for _ in range(ALLOCATION_ATTEMPTS):
        result = await db.execute(
            update(TokenCounter)
            .where(TokenCounter.appointment_date == appointment_date)
            .values(last_token=TokenCounter.last_token + 1)
            .returning(TokenCounter.last_token)
        )
        token = result.scalar_one_or_none()
        if token is not None:
            return token

        highest = await db.execute(
            select(func.max(Appointment.token_number)).where(Appointment.appointment_date == appointment_date)
        )
        seed = (highest.scalar() or 0) + 1
        try:
            db.add(TokenCounter(appointment_date=appointment_date, last_token=seed))
            await db.flush()
            return seed
        except IntegrityError:
            # Another desk created the row first; bump it instead
            await db.rollback()

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Could not allocate a token number. Please try again.",
    )


async def _apply_transition(
    db: AsyncSession,
    appointment: Appointment,
    target: AppointmentStatus,
    **values,
) -> Appointment:
    _check_transition(appointment, target)
    appointment_id = appointment.id
    expected = appointment.status

    result = await db.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id, Appointment.status == expected)
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise _conflict("Appointment was changed at another desk. Refresh and try again.")

    await db.commit()
    await db.refresh(appointment)
    logger.info(
        f"🔁 Appointment {appointment_id}: {expected} → {target.value} "
        f"(token {appointment.token_number})"
    )
    await publish_day(db, appointment.appointment_date)
    return appointment


def _ensure_no_consultation(queue, doctor_label: str) -> None:
    busy = current_token(queue)
    if busy is not None:
        raise _conflict(
            f"Token {busy.token_number} ({busy.patient_name}) is still in consultation{doctor_label}. "
            "Complete it before calling the next patient."
        )


# ============================================================
# ✅ GENERATE TOKEN
# ============================================================
async def generate_token(db: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await get_appointment_or_404(db, appointment_id)
    _check_transition(appointment, AppointmentStatus.TOKEN_GENERATED)
    appointment_date = appointment.appointment_date

    token = await _allocate_token(db, appointment_date)
    result = await db.execute(
        update(Appointment)
        .where(
            Appointment.id == appointment_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
        )
        .values(
            token_number=token,
            token_generated_at=utcnow(),
            status=AppointmentStatus.TOKEN_GENERATED.value,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Rolls the counter back too, so no number is burned
        await db.rollback()
        raise _conflict("Appointment is no longer waiting for a token. Refresh and try again.")

    await db.commit()
    await db.refresh(appointment)
    logger.info(f"🎟️  Token {token} generated for appointment {appointment_id} on {appointment_date}")
    await publish_day(db, appointment_date)
    return appointment


# ============================================================
# ✅ CALL NEXT PATIENT
# ============================================================
async def call_next_patient(
    db: AsyncSession,
    appointment_date: date,
    doctor_name: Optional[str] = None,
) -> Optional[Appointment]:
    """
    Move the lowest waiting token of the queue into consultation.
    Returns None when nobody is waiting.
    """
    day = await load_day(db, appointment_date)
    queue = filter_for_doctor(day, doctor_name) if doctor_name else day
    _ensure_no_consultation(queue, f" with {doctor_name}" if doctor_name else "")

    candidate = next_token(queue)
    if candidate is None:
        logger.info(f"Queue {appointment_date} ({doctor_name or 'all doctors'}): no patients waiting")
        return None
    return await _apply_transition(db, candidate, AppointmentStatus.IN_PROGRESS)


# ============================================================
# ✅ START A SPECIFIC CONSULTATION
# ============================================================
async def start_consultation(db: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await get_appointment_or_404(db, appointment_id)
    _check_transition(appointment, AppointmentStatus.IN_PROGRESS)

    day = await load_day(db, appointment.appointment_date)
    same_doctor = [a for a in day if is_same_doctor(appointment.doctor_name, a.doctor_name)]
    _ensure_no_consultation(same_doctor, f" with {appointment.doctor_name}")
    return await _apply_transition(db, appointment, AppointmentStatus.IN_PROGRESS)


# ============================================================
# ✅ COMPLETE CONSULTATION
# ============================================================
async def complete_consultation(db: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await get_appointment_or_404(db, appointment_id)
    return await _apply_transition(db, appointment, AppointmentStatus.COMPLETED)


# ============================================================
# ✅ CANCEL
# ============================================================
async def cancel_appointment(db: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await get_appointment_or_404(db, appointment_id)
    return await _apply_transition(db, appointment, AppointmentStatus.CANCELLED)


async def change_status(db: AsyncSession, appointment_id: int, target: str) -> Appointment:
    """Front-desk status control; every target goes through its own operation."""
    operations = {
        AppointmentStatus.TOKEN_GENERATED.value: generate_token,
        AppointmentStatus.IN_PROGRESS.value: start_consultation,
        AppointmentStatus.COMPLETED.value: complete_consultation,
        AppointmentStatus.CANCELLED.value: cancel_appointment,
    }
    operation = operations.get(target)
    if operation is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported status: {target}")
    return await operation(db, appointment_id)


async def get_queue_snapshot(
    db: AsyncSession,
    appointment_date: date,
    doctor_name: Optional[str] = None,
):
    return build_queue_snapshot(appointment_date, await load_day(db, appointment_date), doctor_name)
