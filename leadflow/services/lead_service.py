import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from leadflow.core.exceptions import InvalidTemperatureStateError, LeadNotFoundError
from leadflow.models.lead import Lead
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.schemas.common import Temperature
from leadflow.schemas.lead import (
    InteractionCreate,
    LeadCreate,
    SubstatusUpdate,
    TemperatureUpdate,
)

logger = logging.getLogger(__name__)


class LeadService:
    """Manual lead operations next to the automatic transitions.

    All database operations are delegated to the injected repository.
    """

    async def create_lead(
        self, organization_id: UUID, data: LeadCreate, lead_repo: LeadRepository
    ) -> Lead:
        lead = await lead_repo.create(
            organization_id=organization_id,
            name=data.name,
            phone=data.phone,
            temperature=data.temperature.value,
            hot_substatus=data.hot_substatus.value if data.hot_substatus else None,
            last_interaction_at=data.last_interaction_at,
        )
        await lead_repo.commit()
        logger.info("Lead %s created for organization %s", lead.id, organization_id)
        return lead

    async def get_lead(
        self, organization_id: UUID, lead_id: UUID, lead_repo: LeadRepository
    ) -> Lead:
        lead = await lead_repo.get_by_id(organization_id, lead_id)
        if lead is None:
            raise LeadNotFoundError()
        return lead

    async def change_temperature(
        self,
        organization_id: UUID,
        lead_id: UUID,
        data: TemperatureUpdate,
        lead_repo: LeadRepository,
        now: Optional[datetime] = None,
    ) -> Lead:
        """Set a lead's temperature by hand.

        Rules:
        - only ``quente`` keeps or takes a sub-status, and moving a lead
          to ``quente`` counts as an interaction;
        - only ``perdido`` keeps a ``lost_reason``;
        - ``morno`` is allowed here even though no rule targets it.

        Raises:
            LeadNotFoundError: If the lead is not in the organization.
            InvalidTemperatureStateError: If a sub-status is sent for a
                temperature other than ``quente``.
        """
        now = now or datetime.now(timezone.utc)
        lead = await self.get_lead(organization_id, lead_id, lead_repo)

        values: Dict[str, Any] = {
            "temperature": data.temperature.value,
            "updated_at": now,
        }

        if data.temperature == Temperature.QUENTE:
            if data.hot_substatus is not None:
                values["hot_substatus"] = data.hot_substatus.value
            elif lead.temperature != Temperature.QUENTE.value:
                values["hot_substatus"] = None
            values["last_interaction_at"] = now
        else:
            if data.hot_substatus is not None:
                raise InvalidTemperatureStateError(
                    "hot_substatus can only be set on 'quente' leads"
                )
            values["hot_substatus"] = None

        if data.temperature == Temperature.PERDIDO:
            values["lost_reason"] = data.lost_reason or lead.lost_reason
        else:
            values["lost_reason"] = None

        previous = lead.temperature
        await lead_repo.update_fields(lead, **values)
        await lead_repo.commit()
        logger.info(
            "Lead %s temperature changed manually: %s -> %s",
            lead_id,
            previous,
            data.temperature.value,
        )
        return lead

    async def change_substatus(
        self,
        organization_id: UUID,
        lead_id: UUID,
        data: SubstatusUpdate,
        lead_repo: LeadRepository,
    ) -> Lead:
        lead = await self.get_lead(organization_id, lead_id, lead_repo)
        if lead.temperature != Temperature.QUENTE.value:
            raise InvalidTemperatureStateError(
                f"Sub-status requires a 'quente' lead, lead is '{lead.temperature}'"
            )
        await lead_repo.update_fields(
            lead,
            hot_substatus=data.hot_substatus.value,
            updated_at=datetime.now(timezone.utc),
        )
        await lead_repo.commit()
        return lead

    async def record_interaction(
        self,
        organization_id: UUID,
        lead_id: UUID,
        data: InteractionCreate,
        lead_repo: LeadRepository,
    ) -> Lead:
        """Move the lead's inactivity anchor; defaults to the current time."""
        lead = await self.get_lead(organization_id, lead_id, lead_repo)
        occurred_at = data.occurred_at or datetime.now(timezone.utc)
        await lead_repo.update_fields(
            lead,
            last_interaction_at=occurred_at,
            updated_at=datetime.now(timezone.utc),
        )
        await lead_repo.commit()
        return lead

    async def temperature_summary(
        self, organization_id: UUID, lead_repo: LeadRepository
    ) -> Dict[str, Any]:
        counts = await lead_repo.count_by_temperature(organization_id)
        return {
            "organization_id": organization_id,
            "total": sum(counts.values()),
            "counts": counts,
        }
