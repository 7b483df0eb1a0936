# app/system_services/prescription_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.system_models.prescription_model.prescription_schemas import (
    PrescriptionCreate,
    PrescriptionDraft,
    PrescriptionResponse,
    PrescriptionUpdate,
)
from app.system_services import prescription_services
from app.users.auth_dependencies import StaffSession, require_roles
from app.users.user_models.schemas import MessageResponse

router = APIRouter()

doctor_desk = require_roles("doctor")
any_desk = require_roles("doctor", "receptionist")


@router.post("", response_model=PrescriptionResponse, status_code=status.HTTP_201_CREATED)
async def create_prescription(
    prescription: PrescriptionCreate,
    session: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    return await prescription_services.create_prescription(db, prescription, session)


@router.get("/draft/from-appointment/{appointment_id}", response_model=PrescriptionDraft)
async def draft_from_appointment(
    appointment_id: int,
    _: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    """Pre-filled prescription form for the patient of an appointment."""
    return await prescription_services.draft_from_appointment(db, appointment_id)


@router.get("/mine", response_model=List[PrescriptionResponse])
async def my_prescriptions(
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    session: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    return await prescription_services.list_prescriptions(db, search, status_filter, session.display_name)


@router.get("", response_model=List[PrescriptionResponse])
async def list_prescriptions(
    search: Optional[str] = Query(None, description="Patient name, phone or diagnosis"),
    status_filter: Optional[str] = Query(None, alias="status"),
    _: StaffSession = Depends(any_desk),
    db: AsyncSession = Depends(get_db),
):
    return await prescription_services.list_prescriptions(db, search, status_filter)


@router.get("/{prescription_id}", response_model=PrescriptionResponse)
async def get_prescription(
    prescription_id: int,
    _: StaffSession = Depends(any_desk),
    db: AsyncSession = Depends(get_db),
):
    return await prescription_services.get_prescription_or_404(db, prescription_id)


@router.put("/{prescription_id}", response_model=PrescriptionResponse)
async def update_prescription(
    prescription_id: int,
    changes: PrescriptionUpdate,
    session: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    return await prescription_services.update_prescription(db, prescription_id, changes, session)


@router.delete("/{prescription_id}", response_model=MessageResponse)
async def delete_prescription(
    prescription_id: int,
    confirm: bool = Query(False, description="Must be true; deletion cannot be undone"),
    _: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    await prescription_services.delete_prescription(db, prescription_id, confirm)
    return {"message": "Prescription deleted successfully"}
