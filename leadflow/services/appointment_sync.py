import logging
from datetime import date, datetime, timezone
from typing import Any, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from leadflow.core.appointment_status import classify_status
from leadflow.core.config import settings
from leadflow.repositories.appointment_repository import AppointmentRepository
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.schemas.common import StatusClass

logger = logging.getLogger(__name__)


class AppointmentSynchronizer:
    """Keeps a lead's ``scheduled`` / ``appointment_date`` cache in step
    with its appointments.

    The appointment table is the source of truth.  Every method returns
    ``True`` when it wrote to a lead and ``False`` when the mutation
    needed no lead write.  Errors propagate; the caller decides whether
    to defer the reconciliation.
    """

    def __init__(
        self,
        lead_repo: LeadRepository,
        appointment_repo: AppointmentRepository,
        timezone_name: Optional[str] = None,
    ) -> None:
        self._lead_repo = lead_repo
        self._appointment_repo = appointment_repo
        self._tz = ZoneInfo(timezone_name or settings.APPOINTMENT_TIMEZONE)

    def appointment_day(self, value: datetime) -> date:
        """Calendar day of *value* in the configured appointment timezone.

        Naive timestamps are taken as UTC.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(self._tz).date()

    async def on_created(self, appointment: Any) -> bool:
        if appointment.lead_id is None:
            return False
        if classify_status(appointment.status) != StatusClass.ACTIVE:
            return False
        await self._mark_scheduled(appointment)
        return True

    async def on_updated(
        self, appointment: Any, previous_lead_id: Optional[UUID] = None
    ) -> bool:
        """Reconcile after an update.

        When the appointment moved to another lead, the lead it left is
        reconciled as if the appointment had been deleted.
        """
        wrote = False
        if previous_lead_id is not None and previous_lead_id != appointment.lead_id:
            await self.reconcile_lead(
                appointment.organization_id,
                previous_lead_id,
                exclude_appointment_id=appointment.id,
            )
            wrote = True

        if appointment.lead_id is None:
            return wrote

        status_class = classify_status(appointment.status)
        if status_class == StatusClass.ACTIVE:
            await self._mark_scheduled(appointment)
            return True
        if status_class == StatusClass.CLOSED:
            await self.reconcile_lead(
                appointment.organization_id,
                appointment.lead_id,
                exclude_appointment_id=appointment.id,
            )
            return True

        logger.info(
            "Appointment %s has unrecognized status %r, lead %s left unchanged",
            appointment.id,
            appointment.status,
            appointment.lead_id,
        )
        return wrote

    async def on_deleted(
        self,
        organization_id: UUID,
        lead_id: Optional[UUID],
        appointment_id: Optional[UUID] = None,
    ) -> bool:
        """Reconcile the lead of an appointment that was just removed."""
        if lead_id is None:
            return False
        await self.reconcile_lead(
            organization_id, lead_id, exclude_appointment_id=appointment_id
        )
        return True

    async def reconcile_lead(
        self,
        organization_id: UUID,
        lead_id: UUID,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> None:
        """Point the lead at its earliest remaining ``scheduled`` appointment,
        or mark it unscheduled when there is none."""
        replacement = await self._appointment_repo.find_next_scheduled(
            organization_id, lead_id, exclude_appointment_id=exclude_appointment_id
        )
        if replacement is None:
            await self._lead_repo.set_scheduling(organization_id, lead_id, False, None)
            return
        await self._lead_repo.set_scheduling(
            organization_id,
            lead_id,
            True,
            self.appointment_day(replacement.appointment_date),
        )

    async def _mark_scheduled(self, appointment: Any) -> None:
        await self._lead_repo.set_scheduling(
            appointment.organization_id,
            appointment.lead_id,
            True,
            self.appointment_day(appointment.appointment_date),
        )
