# app/helpers/time.py
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from config.appconfig import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def clinic_zone() -> ZoneInfo:
    return ZoneInfo(settings.CLINIC_TIMEZONE)


def clinic_today() -> date:
    """Today's calendar date in the clinic's timezone."""
    return datetime.now(clinic_zone()).date()
