# app/system_models/prescription_model/prescription_schemas.py
from typing import List, Literal, Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PRESCRIPTION_STATUS = Literal["active", "completed", "discontinued", "pending"]
MEDICINE_TIMING = Literal["before_meal", "after_meal", "empty_stomach", "bedtime", "as_needed"]


class PrescriptionMedicineItem(BaseModel):
    medicine_id: int
    name: str
    category: Optional[str] = None
    dosage: str
    frequency: str
    duration: str
    timing: MEDICINE_TIMING = "after_meal"
    special_instructions: Optional[str] = None

    @model_validator(mode="after")
    def details_required(self):
        for field in ("dosage", "frequency", "duration"):
            value = getattr(self, field).strip()
            if not value:
                raise ValueError(f"Please enter {field} for {self.name}")
            setattr(self, field, value)
        return self


class PrescriptionBase(BaseModel):
    appointment_id: Optional[int] = None
    patient_id: Optional[str] = None
    patient_name: str
    patient_age: Optional[str] = None
    patient_gender: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    prescription_date: date
    diagnosis: str
    symptoms: Optional[str] = None
    medicines: List[PrescriptionMedicineItem] = Field(default_factory=list)
    instructions: Optional[str] = None
    follow_up_date: Optional[date] = None
    status: PRESCRIPTION_STATUS = "active"
    notes: Optional[str] = None

    @field_validator("patient_age", mode="before")
    def age_as_text(cls, v):
        return None if v is None else str(v)

    @field_validator("patient_name")
    def patient_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Please select a patient")
        return v

    @field_validator("diagnosis")
    def diagnosis_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Please enter diagnosis")
        return v

    @field_validator("medicines")
    def medicines_required(cls, v):
        if not v:
            raise ValueError("Please add at least one medicine")
        seen = set()
        for item in v:
            if item.medicine_id in seen:
                raise ValueError(f"{item.name} is already on this prescription")
            seen.add(item.medicine_id)
        return v


class PrescriptionCreate(PrescriptionBase):
    pass


class PrescriptionUpdate(PrescriptionBase):
    pass


class PrescriptionDraft(BaseModel):
    """Pre-filled form for a new prescription, built from an appointment. Not saved."""
    appointment_id: int
    patient_id: str
    patient_name: str
    patient_age: Optional[str] = None
    patient_gender: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    prescription_date: date
    diagnosis: str = ""
    symptoms: Optional[str] = None
    medicines: List[PrescriptionMedicineItem] = Field(default_factory=list)
    status: PRESCRIPTION_STATUS = "active"


class PrescriptionMedicineResponse(BaseModel):
    id: int
    medicine_id: Optional[int] = None
    name: str
    category: Optional[str] = None
    dosage: str
    frequency: str
    duration: str
    timing: str
    special_instructions: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PrescriptionResponse(BaseModel):
    id: int
    appointment_id: Optional[int] = None
    patient_id: Optional[str] = None
    patient_name: str
    patient_age: Optional[str] = None
    patient_gender: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    doctor_name: str
    doctor_id: Optional[int] = None
    prescription_date: date
    diagnosis: str
    symptoms: Optional[str] = None
    medicines: List[PrescriptionMedicineResponse] = Field(default_factory=list)
    instructions: Optional[str] = None
    follow_up_date: Optional[date] = None
    status: PRESCRIPTION_STATUS
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
