from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select

from leadflow.core.constants import REPLACEMENT_APPOINTMENT_STATUS
from leadflow.models.appointment import Appointment
from leadflow.repositories.base import BaseRepository


class AppointmentRepository(BaseRepository):
    """Encapsulates queries against the ``appointments`` table."""

    async def get_by_id(
        self, organization_id: UUID, appointment_id: UUID
    ) -> Optional[Appointment]:
        """Return an appointment of the organization, or ``None``."""
        result = await self._db.execute(
            select(Appointment).where(
                Appointment.id == appointment_id,
                Appointment.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> Appointment:
        """Insert a new appointment and flush so it has an id."""
        appointment = Appointment(**kwargs)
        self._db.add(appointment)
        await self._db.flush()
        return appointment

    async def update_fields(self, appointment: Appointment, **values: Any) -> None:
        """Apply *values* to an appointment and flush the row."""
        for field, value in values.items():
            setattr(appointment, field, value)
        await self._db.flush()

    async def delete(self, appointment: Appointment) -> None:
        """Remove an appointment row."""
        await self._db.delete(appointment)
        await self._db.flush()

    async def find_next_scheduled(
        self,
        organization_id: UUID,
        lead_id: UUID,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> Optional[Appointment]:
        """Return the lead's earliest appointment whose raw status is ``scheduled``.

        Only the literal value counts here, not the whole active class.
        Past appointments are not filtered out.
        """
        query = select(Appointment).where(
            Appointment.organization_id == organization_id,
            Appointment.lead_id == lead_id,
            Appointment.status == REPLACEMENT_APPOINTMENT_STATUS,
        )
        if exclude_appointment_id is not None:
            query = query.where(Appointment.id != exclude_appointment_id)

        result = await self._db.execute(
            query.order_by(Appointment.appointment_date.asc()).limit(1)
        )
        return result.scalars().first()
