"""Appointment schemas.

``status`` is free text on purpose: scheduling clients use both the
English and the Portuguese vocabularies.  Responses expose the canonical
status and its class next to the raw value.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from leadflow.core.appointment_status import canonicalize_status, classify_status
from leadflow.schemas.common import (
    AppointmentStatus,
    StatusClass,
    SuccessResponse,
    SyncStatus,
)
from leadflow.schemas.lead import LeadSchedulingOut


class AppointmentCreate(BaseModel):
    """Request body for POST /api/v1/appointments."""

    lead_id: Optional[UUID] = None
    patient_id: Optional[UUID] = None
    appointment_date: datetime
    status: str = Field(AppointmentStatus.SCHEDULED.value, min_length=1, max_length=30)
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """Request body for PATCH /api/v1/appointments/{appointment_id}."""

    lead_id: Optional[UUID] = None
    appointment_date: Optional[datetime] = None
    status: Optional[str] = Field(None, min_length=1, max_length=30)
    notes: Optional[str] = None


class AppointmentOut(BaseModel):
    id: UUID
    organization_id: UUID
    lead_id: Optional[UUID] = None
    patient_id: Optional[UUID] = None
    appointment_date: datetime
    status: str
    canonical_status: Optional[AppointmentStatus] = None
    status_class: StatusClass
    notes: Optional[str] = None

    @classmethod
    def from_appointment(cls, appointment: Any) -> "AppointmentOut":
        return cls(
            id=appointment.id,
            organization_id=appointment.organization_id,
            lead_id=appointment.lead_id,
            patient_id=appointment.patient_id,
            appointment_date=appointment.appointment_date,
            status=appointment.status,
            canonical_status=canonicalize_status(appointment.status),
            status_class=classify_status(appointment.status),
            notes=appointment.notes,
        )


class AppointmentMutationResponse(SuccessResponse):
    """Result of an appointment create/update/delete and its lead sync."""

    appointment_id: UUID
    appointment: Optional[AppointmentOut] = None
    sync_status: SyncStatus
    lead: Optional[LeadSchedulingOut] = None


class SyncRetryResponse(SuccessResponse):
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
