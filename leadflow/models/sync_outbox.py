import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text
from sqlalchemy import text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from leadflow.models.base import Base


class LeadSyncOutbox(Base):
    """Lead reconciliation that failed inline and waits for a retry.

    Written in the same transaction as the appointment mutation, so the
    appointment change and the pending reconciliation commit together.
    """

    __tablename__ = "lead_sync_outbox"
    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.gen_random_uuid(),
    )
    organization_id = Column(UUID(as_uuid=True), nullable=False)
    lead_id = Column(UUID(as_uuid=True), nullable=False)
    appointment_id = Column(UUID(as_uuid=True))
    event = Column(String(20), nullable=False)
    attempts = Column(Integer, nullable=False, server_default=text("0"))
    last_error = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True))

    __table_args__ = (
        Index(
            "idx_lead_sync_outbox_pending",
            "processed_at",
            "created_at",
        ),
        CheckConstraint(
            "event IN ('created', 'updated', 'deleted')", name="ck_outbox_event"
        ),
    )
