import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.exceptions import AppointmentNotFoundError, LeadNotFoundError
from leadflow.repositories.appointment_repository import AppointmentRepository
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.sync_outbox_repository import SyncOutboxRepository
from leadflow.schemas.appointment import AppointmentCreate, AppointmentUpdate
from leadflow.schemas.common import SyncEvent, SyncStatus
from leadflow.services.appointment_sync import AppointmentSynchronizer

logger = logging.getLogger(__name__)


class AppointmentService:
    """Appointment mutations and the lead reconciliation that follows them.

    The appointment write and the reconciliation share one transaction.
    Reconciliation runs inside a savepoint: when it fails, only the
    savepoint is rolled back, an outbox entry is written instead and the
    appointment change still commits with ``sync_status="deferred"``.
    """

    def __init__(
        self,
        synchronizer: AppointmentSynchronizer,
        appointment_repo: AppointmentRepository,
        lead_repo: LeadRepository,
        outbox_repo: SyncOutboxRepository,
    ) -> None:
        self._synchronizer = synchronizer
        self._appointment_repo = appointment_repo
        self._lead_repo = lead_repo
        self._outbox_repo = outbox_repo

    async def create_appointment(
        self, organization_id: UUID, data: AppointmentCreate
    ) -> Dict[str, Any]:
        if data.lead_id is not None:
            await self._ensure_lead(organization_id, data.lead_id)

        appointment = await self._appointment_repo.create(
            organization_id=organization_id,
            lead_id=data.lead_id,
            patient_id=data.patient_id,
            appointment_date=data.appointment_date,
            status=data.status,
            notes=data.notes,
        )

        sync_status = await self._reconcile(
            organization_id,
            SyncEvent.CREATED,
            appointment.id,
            [appointment.lead_id],
            lambda: self._synchronizer.on_created(appointment),
        )
        await self._appointment_repo.commit()

        return await self._build_response(
            organization_id, appointment.id, appointment, appointment.lead_id, sync_status
        )

    async def update_appointment(
        self,
        organization_id: UUID,
        appointment_id: UUID,
        data: AppointmentUpdate,
    ) -> Dict[str, Any]:
        appointment = await self._appointment_repo.get_by_id(
            organization_id, appointment_id
        )
        if appointment is None:
            raise AppointmentNotFoundError()

        # lead_id and notes may be cleared explicitly; the other columns are required
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in ("lead_id", "notes")
        }
        if changes.get("lead_id") is not None:
            await self._ensure_lead(organization_id, changes["lead_id"])

        previous_lead_id = appointment.lead_id
        await self._appointment_repo.update_fields(appointment, **changes)

        sync_status = await self._reconcile(
            organization_id,
            SyncEvent.UPDATED,
            appointment.id,
            [appointment.lead_id, previous_lead_id],
            lambda: self._synchronizer.on_updated(
                appointment, previous_lead_id=previous_lead_id
            ),
        )
        await self._appointment_repo.commit()

        return await self._build_response(
            organization_id, appointment.id, appointment, appointment.lead_id, sync_status
        )

    async def delete_appointment(
        self, organization_id: UUID, appointment_id: UUID
    ) -> Dict[str, Any]:
        appointment = await self._appointment_repo.get_by_id(
            organization_id, appointment_id
        )
        if appointment is None:
            raise AppointmentNotFoundError()

        lead_id = appointment.lead_id
        await self._appointment_repo.delete(appointment)

        sync_status = await self._reconcile(
            organization_id,
            SyncEvent.DELETED,
            appointment_id,
            [lead_id],
            lambda: self._synchronizer.on_deleted(
                organization_id, lead_id, appointment_id=appointment_id
            ),
        )
        await self._appointment_repo.commit()

        return await self._build_response(
            organization_id, appointment_id, None, lead_id, sync_status
        )

    async def drain_sync_outbox(
        self,
        max_attempts: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, int]:
        """Retry pending reconciliations, oldest first.

        Each entry is re-run as a full reconciliation of its lead inside
        its own savepoint.  Entries that keep failing are retried until
        they reach ``max_attempts``.
        """
        entries = await self._outbox_repo.get_pending(
            max_attempts or settings.SYNC_MAX_ATTEMPTS,
            limit=limit or settings.SYNC_RETRY_BATCH_SIZE,
        )
        succeeded = failed = 0
        for entry in entries:
            try:
                async with self._outbox_repo.savepoint():
                    await self._synchronizer.reconcile_lead(
                        entry.organization_id, entry.lead_id
                    )
            except Exception as exc:
                logger.warning(
                    "Retry of lead sync %s for lead %s failed",
                    entry.id,
                    entry.lead_id,
                    exc_info=True,
                )
                await self._outbox_repo.mark_failed(entry, str(exc))
                failed += 1
                continue
            await self._outbox_repo.mark_processed(entry)
            succeeded += 1

        await self._outbox_repo.commit()
        if entries:
            logger.info(
                "Lead sync retry: %d processed, %d succeeded, %d failed",
                len(entries),
                succeeded,
                failed,
            )
        return {"processed": len(entries), "succeeded": succeeded, "failed": failed}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _ensure_lead(self, organization_id: UUID, lead_id: UUID) -> None:
        lead = await self._lead_repo.get_by_id(organization_id, lead_id)
        if lead is None:
            raise LeadNotFoundError()

    async def _reconcile(
        self,
        organization_id: UUID,
        event: SyncEvent,
        appointment_id: UUID,
        lead_ids: Iterable[Optional[UUID]],
        reconcile: Callable[[], Awaitable[bool]],
    ) -> SyncStatus:
        try:
            async with self._appointment_repo.savepoint():
                wrote = await reconcile()
        except Exception as exc:
            logger.warning(
                "Lead sync after appointment %s %s failed, deferring",
                appointment_id,
                event.value,
                exc_info=True,
            )
            for lead_id in {lead_id for lead_id in lead_ids if lead_id is not None}:
                await self._outbox_repo.enqueue(
                    organization_id,
                    lead_id,
                    event.value,
                    str(exc),
                    appointment_id=appointment_id,
                )
            return SyncStatus.DEFERRED
        return SyncStatus.SYNCED if wrote else SyncStatus.SKIPPED

    async def _build_response(
        self,
        organization_id: UUID,
        appointment_id: UUID,
        appointment: Optional[Any],
        lead_id: Optional[UUID],
        sync_status: SyncStatus,
    ) -> Dict[str, Any]:
        lead = None
        if lead_id is not None:
            lead = await self._lead_repo.get_scheduling(organization_id, lead_id)
        return {
            "success": True,
            "appointment_id": appointment_id,
            "appointment": appointment,
            "sync_status": sync_status,
            "lead": lead,
        }


async def drain_pending_syncs(
    session_factory: Callable[..., AsyncSession],
) -> Dict[str, int]:
    """One-shot: drain the lead sync outbox in a fresh session."""
    async with session_factory() as session:
        lead_repo = LeadRepository(session)
        appointment_repo = AppointmentRepository(session)
        service = AppointmentService(
            synchronizer=AppointmentSynchronizer(lead_repo, appointment_repo),
            appointment_repo=appointment_repo,
            lead_repo=lead_repo,
            outbox_repo=SyncOutboxRepository(session),
        )
        return await service.drain_sync_outbox()
