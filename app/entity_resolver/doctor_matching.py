# app/entity_resolver/doctor_matching.py

"""
Doctor Identity Matching
Appointments and prescriptions store the doctor as free text, so "is this
record mine?" is answered by comparing display names, not ids.
Two different doctors with the same display name are indistinguishable.
"""
import logging
import re
from typing import Iterable, List, Optional, TypeVar

from config.clinicconfig import clinic_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

TITLE = "Dr."
_TITLE_PATTERN = re.compile(r"^Dr\.\s*", re.IGNORECASE)

# Rule names, in order of precedence
EXACT = "exact"
CASE_INSENSITIVE = "case_insensitive"
WITHOUT_TITLE = "without_title"
WITH_TITLE = "with_title"


def strip_doctor_title(name: str) -> str:
    """'Dr. Jane Roe' / 'dr.jane roe ' -> 'Jane Roe' / 'jane roe'"""
    return _TITLE_PATTERN.sub("", (name or "").strip()).strip()


def with_doctor_title(name: str) -> str:
    name = name or ""
    return name if name.startswith(TITLE) else f"{TITLE} {name}"


def match_doctor_name(doctor_name: str, stored_name: str) -> Optional[str]:
    """
    Decide whether a stored free-text doctor name refers to doctor_name.

    Returns the first rule that matched, or None:
    1. exact            - byte-for-byte equal
    2. case_insensitive - equal ignoring case
    3. without_title    - equal (ignoring case) once a leading "Dr." is stripped
    4. with_title       - equal once both carry a leading "Dr. "
    """
    current = doctor_name or ""
    stored = stored_name or ""

    if stored == current:
        return EXACT
    if stored.lower() == current.lower():
        return CASE_INSENSITIVE
    if strip_doctor_title(stored).lower() == strip_doctor_title(current).lower():
        return WITHOUT_TITLE
    if with_doctor_title(stored) == with_doctor_title(current):
        return WITH_TITLE
    return None


def is_same_doctor(doctor_name: str, stored_name: str) -> bool:
    return match_doctor_name(doctor_name, stored_name) is not None


def filter_for_doctor(records: Iterable[T], doctor_name: str, attr: str = "doctor_name") -> List[T]:
    """Keep the records whose doctor field matches; order is preserved."""
    matched = [
        record for record in records
        if is_same_doctor(doctor_name, _read(record, attr))
    ]
    logger.debug(f"Doctor '{doctor_name}' matched {len(matched)} records")
    return matched


def resolve_doctor_name(user) -> str:
    """Canonical display name for a staff account, falling back to a placeholder."""
    name = (getattr(user, "full_name", None) or "").strip()
    return name or clinic_settings.UNKNOWN_DOCTOR_NAME


def _read(record, attr: str) -> str:
    if isinstance(record, dict):
        return record.get(attr) or ""
    return getattr(record, attr, None) or ""
