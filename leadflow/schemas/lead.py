"""Lead-specific Pydantic schemas (create, temperature changes, responses)."""

from datetime import date, datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Self

from leadflow.schemas.common import HotSubstatus, Temperature


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LeadCreate(BaseModel):
    """Request body for POST /api/v1/leads."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=8, max_length=30, pattern=r"^\+?\d+$")
    temperature: Temperature = Temperature.NOVO
    hot_substatus: Optional[HotSubstatus] = None
    last_interaction_at: Optional[datetime] = None

    @model_validator(mode="after")
    def substatus_requires_hot_lead(self) -> Self:
        if self.hot_substatus is not None and self.temperature != Temperature.QUENTE:
            raise ValueError("hot_substatus is only allowed when temperature is 'quente'")
        return self


class TemperatureUpdate(BaseModel):
    """Request body for PUT /api/v1/leads/{lead_id}/temperature."""

    temperature: Temperature
    hot_substatus: Optional[HotSubstatus] = None
    lost_reason: Optional[str] = Field(None, max_length=500)


class SubstatusUpdate(BaseModel):
    """Request body for PUT /api/v1/leads/{lead_id}/substatus."""

    hot_substatus: HotSubstatus


class InteractionCreate(BaseModel):
    """Request body for POST /api/v1/leads/{lead_id}/interactions."""

    occurred_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    phone: str
    temperature: Temperature
    hot_substatus: Optional[HotSubstatus] = None
    lost_reason: Optional[str] = None
    scheduled: bool
    appointment_date: Optional[date] = None
    last_interaction_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeadSchedulingOut(BaseModel):
    """The cached scheduling fields of a lead."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scheduled: bool
    appointment_date: Optional[date] = None


class TemperatureSummary(BaseModel):
    organization_id: UUID
    total: int
    counts: Dict[str, int]
