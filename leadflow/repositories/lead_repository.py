from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select, update

from leadflow.models.lead import Lead
from leadflow.repositories.base import BaseRepository
from leadflow.schemas.common import Temperature


@dataclass(frozen=True)
class CandidateCriteria:
    """SQL-expressible part of a transition rule's lead filter.

    ``include_never_interacted`` lets leads with no recorded interaction
    through the time filter; the engine then re-checks them against
    ``created_at``, which a single SQL predicate here cannot do.
    """

    organization_id: UUID
    threshold: datetime
    temperature: Optional[str] = None
    substatus: Optional[str] = None
    excluded_substatus: Optional[str] = None
    include_never_interacted: bool = True


def build_candidate_query(criteria: CandidateCriteria) -> Select:
    """Return the SELECT used to fetch transition candidates."""
    query = select(
        Lead.id,
        Lead.temperature,
        Lead.hot_substatus,
        Lead.last_interaction_at,
        Lead.created_at,
    ).where(Lead.organization_id == criteria.organization_id)

    if criteria.temperature:
        query = query.where(Lead.temperature == criteria.temperature)

    if criteria.substatus:
        query = query.where(Lead.hot_substatus == criteria.substatus)
    elif criteria.excluded_substatus:
        query = query.where(
            or_(
                Lead.hot_substatus.is_(None),
                Lead.hot_substatus != criteria.excluded_substatus,
            )
        )

    if criteria.include_never_interacted:
        query = query.where(
            or_(
                Lead.last_interaction_at < criteria.threshold,
                Lead.last_interaction_at.is_(None),
            )
        )
    else:
        query = query.where(Lead.last_interaction_at < criteria.threshold)

    return query


class LeadRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``leads`` table.

    All lookups and writes are scoped by ``organization_id``.
    """

    async def get_by_id(self, organization_id: UUID, lead_id: UUID) -> Optional[Lead]:
        """Return a single lead of the organization, or ``None``."""
        result = await self._db.execute(
            select(Lead).where(
                Lead.id == lead_id,
                Lead.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> Lead:
        """Insert a new lead and flush so server defaults are populated."""
        lead = Lead(**kwargs)
        self._db.add(lead)
        await self._db.flush()
        await self._db.refresh(lead)
        return lead

    async def find_transition_candidates(self, criteria: CandidateCriteria) -> List[Any]:
        """Return lightweight rows (id, temperature, hot_substatus, timestamps)."""
        result = await self._db.execute(build_candidate_query(criteria))
        return list(result.all())

    async def apply_transition(
        self,
        organization_id: UUID,
        lead_ids: Sequence[UUID],
        values: Dict[str, Any],
    ) -> int:
        """Write *values* to every lead in *lead_ids* in one statement."""
        result = await self._db.execute(
            update(Lead)
            .where(Lead.organization_id == organization_id, Lead.id.in_(lead_ids))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def set_scheduling(
        self,
        organization_id: UUID,
        lead_id: UUID,
        scheduled: bool,
        appointment_date: Optional[date],
    ) -> None:
        """Overwrite the cached scheduling fields of a lead."""
        await self._db.execute(
            update(Lead)
            .where(Lead.id == lead_id, Lead.organization_id == organization_id)
            .values(
                scheduled=scheduled,
                appointment_date=appointment_date,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

    async def get_scheduling(self, organization_id: UUID, lead_id: UUID) -> Optional[Any]:
        """Return ``(id, scheduled, appointment_date)`` for a lead, or ``None``."""
        result = await self._db.execute(
            select(Lead.id, Lead.scheduled, Lead.appointment_date).where(
                Lead.id == lead_id,
                Lead.organization_id == organization_id,
            )
        )
        return result.one_or_none()

    async def update_fields(self, lead: Lead, **values: Any) -> None:
        """Set attributes on an existing lead instance."""
        for field, value in values.items():
            setattr(lead, field, value)

    async def count_by_temperature(self, organization_id: UUID) -> Dict[str, int]:
        """Count the organization's leads per temperature, zero-filled."""
        result = await self._db.execute(
            select(Lead.temperature, func.count(Lead.id))
            .where(Lead.organization_id == organization_id)
            .group_by(Lead.temperature)
        )
        counts = {t.value: 0 for t in Temperature}
        for temperature, count in result.all():
            counts[temperature] = count
        return counts
