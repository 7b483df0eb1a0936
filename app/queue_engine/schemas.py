# app/queue_engine/schemas.py
"""
Queue Engine Schemas
Request/response models for the token queue endpoints and the live feed
"""
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.system_models.appointment_model.appointment_schemas import AppointmentResponse


class QueueStats(BaseModel):
    waiting: int = 0
    in_progress: int = 0
    completed: int = 0
    total_tokens: int = 0


class QueueSnapshotResponse(BaseModel):
    """Everything the reception desk and doctor console render for one day."""

    appointment_date: date
    doctor_name: Optional[str] = None
    current: Optional[AppointmentResponse] = Field(None, description="Appointment in consultation")
    next: Optional[AppointmentResponse] = Field(None, description="Lowest waiting token")
    appointments: List[AppointmentResponse] = Field(
        default_factory=list, description="Day list in queue order, after search/status filters"
    )
    waiting: List[AppointmentResponse] = Field(default_factory=list)
    scheduled: List[AppointmentResponse] = Field(default_factory=list)
    completed: List[AppointmentResponse] = Field(default_factory=list)
    cancelled: List[AppointmentResponse] = Field(default_factory=list)
    next_token_number: int = 1
    stats: QueueStats = Field(default_factory=QueueStats)


class DisplayToken(BaseModel):
    token_number: int
    patient_name: str
    patient_age: Optional[str] = None
    patient_gender: Optional[str] = None
    appointment_time: str
    doctor_name: str


class QueueDisplayResponse(BaseModel):
    """Waiting-room screen: tokens being served and the next token."""

    appointment_date: date
    current: Optional[DisplayToken] = None
    serving: List[DisplayToken] = Field(
        default_factory=list, description="One token per doctor currently in consultation"
    )
    next: Optional[DisplayToken] = None
    message: Optional[str] = None


class CallNextResponse(BaseModel):
    called: Optional[AppointmentResponse] = None
    message: str


class StatusChangeRequest(BaseModel):
    status: Literal["token_generated", "in_progress", "completed", "cancelled"]
