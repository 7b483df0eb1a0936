# app/system_services/prescription_services.py
import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.entity_resolver.doctor_matching import filter_for_doctor
from app.entity_resolver.patient_directory import patient_key
from app.system_models.prescription_model.prescription_model import Prescription, PrescriptionMedicine
from app.system_models.prescription_model.prescription_schemas import (
    PrescriptionCreate,
    PrescriptionDraft,
    PrescriptionUpdate,
)
from app.system_services.appointment_services import get_appointment_or_404
from app.users.auth_dependencies import StaffSession

logger = logging.getLogger(__name__)


def _medicine_lines(items) -> List[PrescriptionMedicine]:
    return [PrescriptionMedicine(**item.model_dump()) for item in items]


async def get_prescription_or_404(db: AsyncSession, prescription_id: int) -> Prescription:
    prescription = await db.get(Prescription, prescription_id)
    if not prescription:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prescription not found")
    return prescription


# ============================================================
# ✅ CREATE PRESCRIPTION
# ============================================================
async def create_prescription(db: AsyncSession, prescription: PrescriptionCreate, session: StaffSession):
    """Doctor name and id always come from the prescribing session, never the payload."""
    data = prescription.model_dump(exclude={"medicines"})
    if data["appointment_id"] is not None:
        await get_appointment_or_404(db, data["appointment_id"])

    db_prescription = Prescription(
        **data,
        doctor_name=session.display_name,
        doctor_id=session.user_id,
        medicines=_medicine_lines(prescription.medicines),
    )
    db.add(db_prescription)
    await db.commit()
    await db.refresh(db_prescription)
    logger.info(
        f"📝 Prescription {db_prescription.id} written by {session.display_name} "
        f"for {db_prescription.patient_name} ({len(prescription.medicines)} medicines)"
    )
    return db_prescription


async def update_prescription(
    db: AsyncSession,
    prescription_id: int,
    changes: PrescriptionUpdate,
    session: StaffSession,
):
    prescription = await get_prescription_or_404(db, prescription_id)
    for key, value in changes.model_dump(exclude={"medicines"}).items():
        setattr(prescription, key, value)

    # Lines are replaced wholesale; flush the removals first so the
    # (prescription, medicine) unique key is free for the new lines
    prescription.medicines.clear()
    await db.flush()
    prescription.medicines.extend(_medicine_lines(changes.medicines))

    prescription.doctor_name = session.display_name
    prescription.doctor_id = session.user_id
    await db.commit()
    await db.refresh(prescription)
    logger.info(f"📝 Prescription {prescription_id} updated by {session.display_name}")
    return prescription


async def draft_from_appointment(db: AsyncSession, appointment_id: int) -> PrescriptionDraft:
    appointment = await get_appointment_or_404(db, appointment_id)
    return PrescriptionDraft(
        appointment_id=appointment.id,
        patient_id=patient_key(appointment.patient_name, appointment.patient_phone),
        patient_name=appointment.patient_name,
        patient_age=appointment.patient_age,
        patient_gender=appointment.patient_gender,
        patient_phone=appointment.patient_phone,
        patient_email=appointment.patient_email,
        prescription_date=appointment.appointment_date,
        symptoms=appointment.symptoms,
    )


async def list_prescriptions(
    db: AsyncSession,
    search: Optional[str] = None,
    status_filter: Optional[str] = None,
    doctor_name: Optional[str] = None,
) -> List[Prescription]:
    query = select(Prescription)
    if status_filter and status_filter != "all":
        query = query.where(Prescription.status == status_filter)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            Prescription.patient_name.ilike(pattern)
            | Prescription.diagnosis.ilike(pattern)
            | Prescription.patient_phone.ilike(pattern)
        )
    result = await db.execute(query.order_by(Prescription.created_at.desc(), Prescription.id.desc()))
    prescriptions = list(result.scalars().all())

    if doctor_name:
        prescriptions = filter_for_doctor(prescriptions, doctor_name)
    return prescriptions


async def delete_prescription(db: AsyncSession, prescription_id: int, confirm: bool) -> None:
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deleting a prescription cannot be undone. Repeat the request with confirm=true.",
        )
    prescription = await get_prescription_or_404(db, prescription_id)
    await db.delete(prescription)
    await db.commit()
    logger.info(f"🗑️  Prescription {prescription_id} deleted")
