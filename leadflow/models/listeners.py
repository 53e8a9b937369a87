from datetime import datetime, timezone

from sqlalchemy import event

from leadflow.models.appointment import Appointment
from leadflow.models.lead import Lead
from leadflow.models.transition_rule import TransitionRule
from leadflow.schemas.common import Temperature


# Auto updated_at
@event.listens_for(Lead, "before_update")
@event.listens_for(Appointment, "before_update")
@event.listens_for(TransitionRule, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = datetime.now(timezone.utc)


# A cold lead never keeps a hot sub-status.  Bulk UPDATEs from the
# transition engine bypass this hook and build the same write themselves.
@event.listens_for(Lead, "before_insert")
@event.listens_for(Lead, "before_update")
def clear_substatus_for_cold_lead(mapper, connection, target):
    if target.temperature == Temperature.FRIO.value:
        target.hot_substatus = None
