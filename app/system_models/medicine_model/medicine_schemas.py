# app/system_models/medicine_model/medicine_schemas.py
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator


class MedicineBase(BaseModel):
    name: str
    category: str
    strength: str
    form: str
    manufacturer: str
    description: Optional[str] = None
    side_effects: Optional[str] = None
    contraindications: Optional[str] = None
    dosage_instructions: Optional[str] = None
    storage_instructions: Optional[str] = None
    price: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    stock_quantity: int = Field(0, ge=0)
    reorder_level: int = Field(0, ge=0)
    is_active: bool = True

    @field_validator("name", "category", "strength", "form", "manufacturer")
    def required_text(cls, v, info):
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} is required")
        return v


class MedicineCreate(MedicineBase):
    pass


class MedicineUpdate(MedicineBase):
    pass


class MedicineResponse(MedicineBase):
    id: int
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
