# config/config_schemas.py
"""
Clinic Configuration Schemas
Used by: /api/system/config

Design: In-memory configuration (no database persistence)
- GET /config → returns current settings
- POST /config → updates settings in-memory (partial updates supported)
- Settings reset to file defaults on application restart
"""
from typing import Optional

from pydantic import BaseModel, Field


class ClinicConfigRequest(BaseModel):
    """
    Request to update clinic configuration.
    All fields are optional — send only what you want to change.
    """

    # ── Clinic identity ──
    clinic_name: Optional[str] = Field(None, min_length=1, description="Shown on emails and invoices")
    clinic_address: Optional[str] = None
    clinic_phone: Optional[str] = None

    # ── Billing ──
    default_tax_rate: Optional[float] = Field(
        None, ge=0.0, le=100.0, description="Tax percentage applied to new invoices"
    )
    invoice_due_days: Optional[int] = Field(
        None, ge=0, le=365, description="Days after issue before an unpaid invoice turns overdue"
    )

    # ── Doctor display ──
    unknown_doctor_name: Optional[str] = Field(
        None, min_length=1, description="Used when a doctor account has no name on file"
    )


class ClinicConfigResponse(BaseModel):
    """Current clinic configuration (complete state)."""

    clinic_name: str
    clinic_address: str
    clinic_phone: str
    default_tax_rate: float
    invoice_due_days: int
    unknown_doctor_name: str

    # Read-only
    clinic_timezone: str

    class Config:
        json_schema_extra = {
            "example": {
                "clinic_name": "City Care Clinic",
                "clinic_address": "12 MG Road, Bengaluru",
                "clinic_phone": "+91 80 1234 5678",
                "default_tax_rate": 18.0,
                "invoice_due_days": 7,
                "unknown_doctor_name": "Unknown Doctor",
                "clinic_timezone": "Asia/Kolkata",
            }
        }
