import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadflow.core.constants import HOT_SUBSTATUS_CHECK_CLAUSE, TEMPERATURE_CHECK_CLAUSE
from leadflow.models.base import Base


class Lead(Base):
    """Tracked contact moving through an organization's intake pipeline.

    ``temperature`` and ``hot_substatus`` are advanced by the transition
    rule engine.  ``scheduled`` and ``appointment_date`` are a cache of
    the lead's appointments, kept current by the appointment
    synchronizer; the appointments table stays the source of truth.
    """

    __tablename__ = "leads"
    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.gen_random_uuid(),
    )
    organization_id = Column(UUID(as_uuid=True), nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    temperature = Column(String(20), nullable=False, server_default="novo")
    hot_substatus = Column(String(30))
    lost_reason = Column(Text)
    scheduled = Column(Boolean, nullable=False, server_default=text("false"))
    appointment_date = Column(Date)
    last_interaction_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    appointments = relationship("Appointment", back_populates="lead")

    __table_args__ = (
        Index(
            "idx_leads_org_temperature_interaction",
            "organization_id",
            "temperature",
            "last_interaction_at",
        ),
        CheckConstraint(TEMPERATURE_CHECK_CLAUSE, name="ck_lead_temperature"),
        CheckConstraint(HOT_SUBSTATUS_CHECK_CLAUSE, name="ck_lead_hot_substatus"),
        CheckConstraint(
            "(scheduled AND appointment_date IS NOT NULL) "
            "OR (NOT scheduled AND appointment_date IS NULL)",
            name="ck_lead_scheduled_has_date",
        ),
        CheckConstraint(
            "temperature <> 'frio' OR hot_substatus IS NULL",
            name="ck_lead_frio_without_substatus",
        ),
    )
