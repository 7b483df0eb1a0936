# app/system_services/medicine_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.system_models.medicine_model.medicine_schemas import MedicineCreate, MedicineResponse, MedicineUpdate
from app.system_services import medicine_services
from app.users.auth_dependencies import StaffSession, require_roles
from app.users.user_models.schemas import MessageResponse

router = APIRouter()

doctor_desk = require_roles("doctor")
any_desk = require_roles("doctor", "receptionist")


@router.post("", response_model=MedicineResponse, status_code=status.HTTP_201_CREATED)
async def create_medicine(
    medicine: MedicineCreate,
    session: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    return await medicine_services.create_medicine(db, medicine, session.user_id)


@router.get("", response_model=List[MedicineResponse])
async def list_medicines(
    search: Optional[str] = Query(None, description="Name, category or manufacturer"),
    category: Optional[str] = Query(None),
    _: StaffSession = Depends(any_desk),
    db: AsyncSession = Depends(get_db),
):
    return await medicine_services.list_medicines(db, search, category)


@router.get("/{medicine_id}", response_model=MedicineResponse)
async def get_medicine(
    medicine_id: int,
    _: StaffSession = Depends(any_desk),
    db: AsyncSession = Depends(get_db),
):
    return await medicine_services.get_medicine_or_404(db, medicine_id)


@router.put("/{medicine_id}", response_model=MedicineResponse)
async def update_medicine(
    medicine_id: int,
    changes: MedicineUpdate,
    _: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    return await medicine_services.update_medicine(db, medicine_id, changes)


@router.delete("/{medicine_id}", response_model=MessageResponse)
async def delete_medicine(
    medicine_id: int,
    confirm: bool = Query(False, description="Must be true; deletion cannot be undone"),
    _: StaffSession = Depends(doctor_desk),
    db: AsyncSession = Depends(get_db),
):
    await medicine_services.delete_medicine(db, medicine_id, confirm)
    return {"message": "Medicine deleted successfully"}
