# app/system_services/medicine_services.py
import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.system_models.medicine_model.medicine_model import Medicine
from app.system_models.medicine_model.medicine_schemas import MedicineCreate, MedicineUpdate

logger = logging.getLogger(__name__)


async def get_medicine_or_404(db: AsyncSession, medicine_id: int) -> Medicine:
    medicine = await db.get(Medicine, medicine_id)
    if not medicine:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medicine not found")
    return medicine


async def create_medicine(db: AsyncSession, medicine: MedicineCreate, created_by: Optional[int] = None):
    db_medicine = Medicine(**medicine.model_dump(), created_by=created_by)
    db.add(db_medicine)
    await db.commit()
    await db.refresh(db_medicine)
    logger.info(f"💊 Medicine added: {db_medicine.name} {db_medicine.strength}")
    return db_medicine


async def update_medicine(db: AsyncSession, medicine_id: int, changes: MedicineUpdate):
    medicine = await get_medicine_or_404(db, medicine_id)
    for key, value in changes.model_dump().items():
        setattr(medicine, key, value)
    await db.commit()
    await db.refresh(medicine)
    return medicine


async def list_medicines(
    db: AsyncSession,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> List[Medicine]:
    query = select(Medicine)
    if category and category != "all":
        query = query.where(Medicine.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            Medicine.name.ilike(pattern)
            | Medicine.category.ilike(pattern)
            | Medicine.manufacturer.ilike(pattern)
        )
    result = await db.execute(query.order_by(Medicine.name.asc(), Medicine.id.asc()))
    return list(result.scalars().all())


async def delete_medicine(db: AsyncSession, medicine_id: int, confirm: bool) -> None:
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deleting a medicine cannot be undone. Repeat the request with confirm=true.",
        )
    medicine = await get_medicine_or_404(db, medicine_id)
    await db.delete(medicine)
    await db.commit()
    logger.info(f"🗑️  Medicine {medicine_id} deleted")
