# app/queue_engine/routes.py

import asyncio
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import async_session_maker, get_db
from app.queue_engine import token_service
from app.queue_engine.broadcaster import queue_broadcaster
from app.queue_engine.feed import display_response, snapshot_from_payload, snapshot_response
from app.queue_engine.schemas import (
    CallNextResponse,
    QueueDisplayResponse,
    QueueSnapshotResponse,
    StatusChangeRequest,
)
from app.system_models.appointment_model.appointment_schemas import AppointmentResponse
from app.users.auth_dependencies import StaffSession, authenticate_access_token, get_staff_session, require_roles

logger = logging.getLogger(__name__)

router = APIRouter()

front_desk = require_roles("receptionist")
doctor_desk = require_roles("doctor")
any_desk = require_roles("doctor", "receptionist")


# ============================================================
# ✅ QUEUE VIEWS
# ============================================================
@router.get("/mine/{appointment_date}", response_model=QueueSnapshotResponse)
async def my_queue(
    appointment_date: date,
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    session: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    """The logged-in doctor's own queue for the day."""
    snapshot = await token_service.get_queue_snapshot(db, appointment_date, session.display_name)
    return snapshot_response(snapshot, search, status_filter)


@router.get("/{appointment_date}", response_model=QueueSnapshotResponse)
async def day_queue(
    appointment_date: date,
    doctor: Optional[str] = Query(None, description="Narrow to one doctor's queue"),
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    _: StaffSession = Depends(any_desk),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await token_service.get_queue_snapshot(db, appointment_date, doctor)
    return snapshot_response(snapshot, search, status_filter)


@router.get("/{appointment_date}/display", response_model=QueueDisplayResponse)
async def waiting_room_display(
    appointment_date: date,
    doctor: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Public screen: token numbers being served and next in line."""
    snapshot = await token_service.get_queue_snapshot(db, appointment_date, doctor)
    return display_response(snapshot)


# ============================================================
# ✅ QUEUE MOVES
# ============================================================
@router.post("/appointments/{appointment_id}/token", response_model=AppointmentResponse)
async def generate_token(
    appointment_id: int,
    _: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await token_service.generate_token(db, appointment_id)


@router.post("/{appointment_date}/call-next", response_model=CallNextResponse)
async def call_next(
    appointment_date: date,
    doctor: Optional[str] = Query(None),
    session: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    """
    Doctors always call from their own queue; an admin may pass `doctor`
    or call across the whole day.
    """
    doctor_name = session.display_name if session.is_doctor else doctor
    called = await token_service.call_next_patient(db, appointment_date, doctor_name)
    if called is None:
        return CallNextResponse(called=None, message="No more patients waiting")
    return CallNextResponse(
        called=AppointmentResponse.model_validate(called),
        message=f"Token {called.token_number}: {called.patient_name}",
    )


@router.post("/appointments/{appointment_id}/start", response_model=AppointmentResponse)
async def start_consultation(
    appointment_id: int,
    _: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    return await token_service.start_consultation(db, appointment_id)


@router.post("/appointments/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_consultation(
    appointment_id: int,
    _: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    return await token_service.complete_consultation(db, appointment_id)


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    _: StaffSession = Depends(any_desk),
    db: AsyncSession = Depends(get_db),
):
    return await token_service.cancel_appointment(db, appointment_id)


@router.patch("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
async def change_status(
    appointment_id: int,
    request: StatusChangeRequest,
    _: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await token_service.change_status(db, appointment_id, request.status)


# ============================================================
# ✅ LIVE FEED
# ============================================================
async def _forward_updates(websocket: WebSocket, subscription, appointment_date: date, doctor: Optional[str]):
    while True:
        appointments = await subscription.get()
        snapshot = snapshot_from_payload(appointment_date, appointments, doctor)
        await websocket.send_json(snapshot_response(snapshot).model_dump(mode="json"))


async def _stop_sender(sender: asyncio.Task, appointment_date: date) -> None:
    """Cancel the forwarding task and surface anything it died of."""
    if not sender.done():
        sender.cancel()
    try:
        await sender
    except (asyncio.CancelledError, WebSocketDisconnect):
        return
    except Exception:
        logger.exception(f"❌ Queue feed sender for {appointment_date} failed")


@router.websocket("/ws/{appointment_date}")
async def queue_feed(
    websocket: WebSocket,
    appointment_date: date,
    doctor: Optional[str] = Query(None),
    token: Optional[str] = Query(None),
):
    """
    Sends the current snapshot on connect, then a fresh one after every
    change to the day's appointments. Browsers cannot set headers on a
    WebSocket, so the access token travels as a query parameter.
    """
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    async with async_session_maker() as db:
        try:
            user = await authenticate_access_token(db, token)
        except HTTPException as exc:
            logger.warning(f"🚫 Queue feed for {appointment_date} refused: {exc.detail}")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

    await websocket.accept()
    logger.info(f"📡 {user.email} joined the queue feed for {appointment_date}")
    subscription = queue_broadcaster.subscribe(appointment_date)
    sender = None
    try:
        async with async_session_maker() as db:
            snapshot = await token_service.get_queue_snapshot(db, appointment_date, doctor)
        await websocket.send_json(snapshot_response(snapshot).model_dump(mode="json"))

        sender = asyncio.create_task(_forward_updates(websocket, subscription, appointment_date, doctor))
        # Clients never need to send; reading only notices the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Queue feed client for {appointment_date} disconnected")
    finally:
        subscription.close()
        if sender:
            await _stop_sender(sender, appointment_date)
