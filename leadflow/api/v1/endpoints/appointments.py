from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends

from leadflow.api.deps import get_appointment_service, get_organization_id
from leadflow.schemas.appointment import (
    AppointmentCreate,
    AppointmentMutationResponse,
    AppointmentOut,
    AppointmentUpdate,
    SyncRetryResponse,
)
from leadflow.schemas.lead import LeadSchedulingOut
from leadflow.services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _mutation_response(result: Dict[str, Any]) -> AppointmentMutationResponse:
    appointment = result["appointment"]
    lead = result["lead"]
    return AppointmentMutationResponse(
        appointment_id=result["appointment_id"],
        appointment=(
            AppointmentOut.from_appointment(appointment)
            if appointment is not None
            else None
        ),
        sync_status=result["sync_status"],
        lead=LeadSchedulingOut.model_validate(lead) if lead is not None else None,
    )


@router.post("", response_model=AppointmentMutationResponse, status_code=201)
async def create_appointment(
    request_body: AppointmentCreate,
    organization_id: UUID = Depends(get_organization_id),
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentMutationResponse:
    """Create an appointment and refresh its lead's scheduling fields.

    ``sync_status`` is ``deferred`` when the lead could not be updated
    inline; the appointment is stored either way.
    """
    result = await service.create_appointment(organization_id, request_body)
    return _mutation_response(result)


@router.patch("/{appointment_id}", response_model=AppointmentMutationResponse)
async def update_appointment(
    appointment_id: UUID,
    request_body: AppointmentUpdate,
    organization_id: UUID = Depends(get_organization_id),
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentMutationResponse:
    result = await service.update_appointment(
        organization_id, appointment_id, request_body
    )
    return _mutation_response(result)


@router.delete("/{appointment_id}", response_model=AppointmentMutationResponse)
async def delete_appointment(
    appointment_id: UUID,
    organization_id: UUID = Depends(get_organization_id),
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentMutationResponse:
    result = await service.delete_appointment(organization_id, appointment_id)
    return _mutation_response(result)


@router.post("/sync/retry", response_model=SyncRetryResponse)
async def retry_lead_sync(
    service: AppointmentService = Depends(get_appointment_service),
) -> SyncRetryResponse:
    """Re-run deferred lead reconciliations from the outbox."""
    result = await service.drain_sync_outbox()
    return SyncRetryResponse(**result)
