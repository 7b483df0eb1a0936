# app/entity_resolver/routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.entity_resolver.patient_directory import list_patients
from app.users.auth_dependencies import StaffSession, require_roles

router = APIRouter()


class PatientResponse(BaseModel):
    id: str
    name: str
    age: Optional[str] = None
    gender: Optional[str] = None
    phone: str
    email: Optional[str] = None
    last_visit: Optional[date] = None


@router.get("", response_model=List[PatientResponse])
async def get_patients(
    search: Optional[str] = Query(None, description="Name, phone or email"),
    _: StaffSession = Depends(require_roles("doctor", "receptionist")),
    db: AsyncSession = Depends(get_db),
):
    """Patient directory derived from the appointment history."""
    patients = await list_patients(db, search)
    return [p.to_dict() for p in patients]
