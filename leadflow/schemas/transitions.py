from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TransitionRunRequest(BaseModel):
    """Optional body of the engine trigger; empty means every organization."""

    organization_id: Optional[UUID] = None


class TransitionRunResponse(BaseModel):
    """Outcome of one engine run.

    Returned with HTTP 200 even when ``success`` is false, so the
    scheduler calling the trigger never treats a run as a transport
    failure.
    """

    success: bool
    transitions_made: int = 0
    substatuses_cleared: int = 0
    organizations_processed: int = 0
    organizations_skipped: int = 0
    rules_applied: int = 0
    timestamp: datetime
    errors: Optional[List[str]] = Field(
        None, description="Per-rule or load errors; omitted when empty."
    )
