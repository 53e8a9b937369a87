"""Canonicalization of the raw appointment status strings.

Scheduling clients write English and Portuguese values in any case.
Everything that needs to reason about a status goes through these two
helpers instead of checking string sets locally.
"""

from typing import Optional

from leadflow.core.constants import APPOINTMENT_STATUS_ALIASES, STATUS_CLASSES
from leadflow.schemas.common import AppointmentStatus, StatusClass


def canonicalize_status(raw: Optional[str]) -> Optional[AppointmentStatus]:
    """Map a stored status to its canonical member, or ``None`` if unknown."""
    if not raw:
        return None
    return APPOINTMENT_STATUS_ALIASES.get(raw.strip().lower())


def classify_status(raw: Optional[str]) -> StatusClass:
    """Return whether *raw* counts as an active or a closed appointment."""
    status = canonicalize_status(raw)
    if status is None:
        return StatusClass.UNKNOWN
    return STATUS_CLASSES[status]
