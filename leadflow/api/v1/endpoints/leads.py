from uuid import UUID

from fastapi import APIRouter, Depends

from leadflow.api.deps import get_lead_repo, get_lead_service, get_organization_id
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.schemas.lead import (
    InteractionCreate,
    LeadCreate,
    LeadOut,
    SubstatusUpdate,
    TemperatureSummary,
    TemperatureUpdate,
)
from leadflow.services.lead_service import LeadService

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.post("", response_model=LeadOut, status_code=201)
async def create_lead(
    request_body: LeadCreate,
    organization_id: UUID = Depends(get_organization_id),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> LeadOut:
    lead = await service.create_lead(organization_id, request_body, lead_repo)
    return LeadOut.model_validate(lead)


@router.get("/temperature-summary", response_model=TemperatureSummary)
async def temperature_summary(
    organization_id: UUID = Depends(get_organization_id),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> TemperatureSummary:
    """Lead counts per temperature; every temperature is listed, zero included."""
    result = await service.temperature_summary(organization_id, lead_repo)
    return TemperatureSummary(**result)


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(
    lead_id: UUID,
    organization_id: UUID = Depends(get_organization_id),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> LeadOut:
    lead = await service.get_lead(organization_id, lead_id, lead_repo)
    return LeadOut.model_validate(lead)


@router.put("/{lead_id}/temperature", response_model=LeadOut)
async def change_temperature(
    lead_id: UUID,
    request_body: TemperatureUpdate,
    organization_id: UUID = Depends(get_organization_id),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> LeadOut:
    """Change a lead's temperature by hand.

    Business logic is delegated to :class:`LeadService`.
    """
    lead = await service.change_temperature(
        organization_id, lead_id, request_body, lead_repo
    )
    return LeadOut.model_validate(lead)


@router.put("/{lead_id}/substatus", response_model=LeadOut)
async def change_substatus(
    lead_id: UUID,
    request_body: SubstatusUpdate,
    organization_id: UUID = Depends(get_organization_id),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> LeadOut:
    lead = await service.change_substatus(
        organization_id, lead_id, request_body, lead_repo
    )
    return LeadOut.model_validate(lead)


@router.post("/{lead_id}/interactions", response_model=LeadOut)
async def record_interaction(
    lead_id: UUID,
    request_body: InteractionCreate,
    organization_id: UUID = Depends(get_organization_id),
    service: LeadService = Depends(get_lead_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> LeadOut:
    lead = await service.record_interaction(
        organization_id, lead_id, request_body, lead_repo
    )
    return LeadOut.model_validate(lead)
