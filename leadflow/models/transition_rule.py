import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from leadflow.core.constants import TRIGGER_EVENT_CHECK_CLAUSE
from leadflow.models.base import Base


class TransitionRule(Base):
    """Tenant-defined temperature/sub-status transition.

    Filters (``from_temperature``, ``from_substatus``) and the timer
    decide which leads match; the ``action_*`` columns describe the
    write.  The API exposes the actions as a closed set of variants, see
    ``leadflow.schemas.transition_rule``.  Lower ``priority`` runs first.
    """

    __tablename__ = "transition_rules"
    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.gen_random_uuid(),
    )
    organization_id = Column(UUID(as_uuid=True), nullable=False)
    name = Column(String(100), nullable=False)
    priority = Column(Integer, nullable=False, server_default=text("0"))
    active = Column(Boolean, nullable=False, server_default=text("true"))
    trigger_event = Column(String(30), nullable=False)
    from_temperature = Column(String(20))
    from_substatus = Column(String(30))
    timer_minutes = Column(Integer, nullable=False, server_default=text("0"))
    action_set_temperature = Column(String(20))
    action_clear_substatus = Column(
        Boolean, nullable=False, server_default=text("false")
    )
    action_set_substatus = Column(String(30))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index(
            "idx_transition_rules_org_active_priority",
            "organization_id",
            "active",
            "priority",
        ),
        CheckConstraint(TRIGGER_EVENT_CHECK_CLAUSE, name="ck_rule_trigger_event"),
        CheckConstraint("timer_minutes >= 0", name="ck_rule_timer_non_negative"),
        CheckConstraint(
            "action_set_temperature IS NULL OR action_set_temperature <> 'morno'",
            name="ck_rule_target_not_morno",
        ),
    )
