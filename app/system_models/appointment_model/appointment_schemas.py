# app/system_models/appointment_model/appointment_schemas.py
from typing import Optional, Literal
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

APPOINTMENT_TYPE = Literal["consultation", "checkup", "emergency", "followup"]
APPOINTMENT_STATUS = Literal["scheduled", "token_generated", "in_progress", "completed", "cancelled"]


class VitalSigns(BaseModel):
    blood_pressure: str = ""
    heart_rate: str = ""
    temperature: str = ""
    weight: str = ""


class AppointmentBase(BaseModel):
    patient_name: str
    patient_phone: str
    patient_email: str
    patient_age: Optional[str] = None
    patient_gender: Optional[str] = None
    doctor_name: str
    appointment_date: date
    appointment_time: str
    appointment_type: APPOINTMENT_TYPE = "consultation"
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    medical_history: Optional[str] = None
    medications: Optional[str] = None
    vital_signs: VitalSigns = Field(default_factory=VitalSigns)

    @field_validator("patient_age", mode="before")
    def age_as_text(cls, v):
        return None if v is None else str(v)

    @field_validator("patient_name", "patient_phone", "patient_email", "doctor_name", "appointment_time")
    def required_text(cls, v, info):
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name.replace('_', ' ')} is required")
        return v


class AppointmentCreate(AppointmentBase):
    pass


class AppointmentUpdate(AppointmentBase):
    # Status and token only move through the queue operations
    pass


class AppointmentResponse(BaseModel):
    id: int
    patient_name: str
    patient_phone: str
    patient_email: Optional[str] = None
    patient_age: Optional[str] = None
    patient_gender: Optional[str] = None
    doctor_name: str
    appointment_date: date
    appointment_time: str
    appointment_type: APPOINTMENT_TYPE
    status: APPOINTMENT_STATUS
    token_number: Optional[int] = None
    token_generated_at: Optional[datetime] = None
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    medical_history: Optional[str] = None
    medications: Optional[str] = None
    vital_signs: Optional[VitalSigns] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
