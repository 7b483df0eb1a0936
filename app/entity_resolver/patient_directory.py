# app/entity_resolver/patient_directory.py

"""
Patient Directory
Patients are not stored on their own: the directory is derived from the
appointment history, one entry per (name, phone) pair.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.system_models.appointment_model.appointment_model import Appointment

logger = logging.getLogger(__name__)


@dataclass
class PatientRecord:
    id: str
    name: str
    age: Optional[str]
    gender: Optional[str]
    phone: str
    email: Optional[str]
    last_visit: Optional[date]

    def to_dict(self) -> dict:
        return asdict(self)


def patient_key(name: str, phone: str) -> str:
    return f"{name}-{phone}"


def _field(appointment, attr: str):
    if isinstance(appointment, dict):
        return appointment.get(attr)
    return getattr(appointment, attr, None)


def derive_patient_directory(appointments: Iterable) -> List[PatientRecord]:
    """
    Build the deduplicated directory.

    `appointments` must already be ordered newest-created first. The first
    appointment seen for a key wins; later ones are dropped, not merged, so
    last_visit is the appointment date of the most recently *created*
    appointment for that patient.
    """
    seen = {}
    patients: List[PatientRecord] = []
    for appointment in appointments:
        name = _field(appointment, "patient_name") or ""
        phone = _field(appointment, "patient_phone") or ""
        key = patient_key(name, phone)
        if key in seen:
            continue
        record = PatientRecord(
            id=key,
            name=name,
            age=_field(appointment, "patient_age"),
            gender=_field(appointment, "patient_gender"),
            phone=phone,
            email=_field(appointment, "patient_email"),
            last_visit=_field(appointment, "appointment_date"),
        )
        seen[key] = record
        patients.append(record)
    return patients


def search_patients(patients: List[PatientRecord], term: Optional[str]) -> List[PatientRecord]:
    if not term:
        return patients
    needle = term.lower()
    return [
        p for p in patients
        if needle in (p.name or "").lower()
        or term in (p.phone or "")
        or needle in (p.email or "").lower()
    ]


async def list_patients(db: AsyncSession, search: Optional[str] = None) -> List[PatientRecord]:
    result = await db.execute(
        select(Appointment).order_by(Appointment.created_at.desc(), Appointment.id.desc())
    )
    patients = derive_patient_directory(result.scalars().all())
    logger.info(f"Patient directory rebuilt: {len(patients)} unique patients")
    return search_patients(patients, search)
