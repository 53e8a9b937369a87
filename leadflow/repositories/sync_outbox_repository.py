from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from leadflow.models.sync_outbox import LeadSyncOutbox
from leadflow.repositories.base import BaseRepository


class SyncOutboxRepository(BaseRepository):
    """Encapsulates queries against the ``lead_sync_outbox`` table."""

    async def enqueue(
        self,
        organization_id: UUID,
        lead_id: UUID,
        event: str,
        error: str,
        appointment_id: Optional[UUID] = None,
    ) -> LeadSyncOutbox:
        """Record a reconciliation that must be retried."""
        entry = LeadSyncOutbox(
            organization_id=organization_id,
            lead_id=lead_id,
            appointment_id=appointment_id,
            event=event,
            attempts=1,
            last_error=error,
        )
        self._db.add(entry)
        await self._db.flush()
        return entry

    async def get_pending(
        self, max_attempts: int, limit: int = 100
    ) -> List[LeadSyncOutbox]:
        """Return unprocessed entries that still have retries left, oldest first."""
        result = await self._db.execute(
            select(LeadSyncOutbox)
            .where(
                LeadSyncOutbox.processed_at.is_(None),
                LeadSyncOutbox.attempts < max_attempts,
            )
            .order_by(LeadSyncOutbox.created_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def mark_processed(self, entry: LeadSyncOutbox) -> None:
        entry.processed_at = datetime.now(timezone.utc)

    async def mark_failed(self, entry: LeadSyncOutbox, error: str) -> None:
        entry.attempts = (entry.attempts or 0) + 1
        entry.last_error = error
