import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadflow.core.constants import DEFAULT_APPOINTMENT_STATUS
from leadflow.models.base import Base


class Appointment(Base):
    """Scheduled visit for a lead (or for a patient, which Leadflow ignores).

    ``status`` is stored exactly as the scheduling client sent it.  Both
    the English and the Portuguese vocabularies are in use, so readers
    classify it through ``leadflow.core.appointment_status``.
    """

    __tablename__ = "appointments"
    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.gen_random_uuid(),
    )
    organization_id = Column(UUID(as_uuid=True), nullable=False)
    lead_id = Column(
        UUID(as_uuid=True), ForeignKey("leads.id", ondelete="SET NULL"), nullable=True
    )
    patient_id = Column(UUID(as_uuid=True), nullable=True)
    appointment_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        String(30), nullable=False, server_default=DEFAULT_APPOINTMENT_STATUS
    )
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    lead = relationship("Lead", back_populates="appointments")

    __table_args__ = (
        Index(
            "idx_appointments_org_lead_status_date",
            "organization_id",
            "lead_id",
            "status",
            "appointment_date",
        ),
    )
