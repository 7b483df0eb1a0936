# config/clinicconfig.py
"""
Clinic Operational Configuration
Front desk, billing and doctor display defaults.
Adjustable at runtime through /api/system/config (in-memory only).
"""
from pydantic_settings import BaseSettings


class ClinicSettings(BaseSettings):
    """Configuration for day-to-day clinic operation"""

    # ── Clinic identity (printed on invoices / token slips) ──
    CLINIC_NAME: str = "City Care Clinic"
    CLINIC_ADDRESS: str = ""
    CLINIC_PHONE: str = ""

    # ── Billing ──
    DEFAULT_TAX_RATE: float = 18.0    # percent
    INVOICE_DUE_DAYS: int = 7

    # ── Doctor display name fallback ──
    UNKNOWN_DOCTOR_NAME: str = "Unknown Doctor"

    class Config:
        env_file = ".env"
        extra = "ignore"


clinic_settings = ClinicSettings()
