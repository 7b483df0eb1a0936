# config/reset_config_route.py
import logging

from fastapi import APIRouter, Depends

from app.users.auth_dependencies import get_current_admin
from app.users.user_models.user_model import User
from config.appconfig import settings
from config.clinicconfig import clinic_settings
from config.config_schemas import ClinicConfigRequest, ClinicConfigResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System Configuration"])


def _current_config() -> ClinicConfigResponse:
    return ClinicConfigResponse(
        clinic_name=clinic_settings.CLINIC_NAME,
        clinic_address=clinic_settings.CLINIC_ADDRESS,
        clinic_phone=clinic_settings.CLINIC_PHONE,
        default_tax_rate=clinic_settings.DEFAULT_TAX_RATE,
        invoice_due_days=clinic_settings.INVOICE_DUE_DAYS,
        unknown_doctor_name=clinic_settings.UNKNOWN_DOCTOR_NAME,
        clinic_timezone=settings.CLINIC_TIMEZONE,
    )


@router.get("/config", response_model=ClinicConfigResponse)
async def get_clinic_config():
    """Get current clinic configuration."""
    return _current_config()


@router.post("/config", response_model=ClinicConfigResponse)
async def update_clinic_config(
    config: ClinicConfigRequest,
    admin: User = Depends(get_current_admin)
):
    """
    Update clinic configuration (in-memory only, resets on restart).

    Supports partial updates — send only the fields you want to change.

    Example request:
    ```json
    {
        "default_tax_rate": 12.0,
        "invoice_due_days": 14
    }
    ```
    """
    updated_fields = []
    for field_name, value in config.model_dump(exclude_none=True).items():
        setattr(clinic_settings, field_name.upper(), value)
        updated_fields.append(f"{field_name} → {value}")

    if updated_fields:
        logger.info(f"⚙️  Clinic config updated by {admin.email}: {', '.join(updated_fields)}")
    return _current_config()


@router.post("/admin/reset-all-configs")
async def reset_all_configs(
    admin: User = Depends(get_current_admin)
):
    """
    Reset clinic config to file defaults.
    Admin-only operation.
    """
    clinic_settings.__init__()
    logger.info(f"⚙️  Clinic config reset to defaults by {admin.email}")

    return {
        "message": "All configs reset to defaults",
        "reset_by": admin.email
    }
