from leadflow.models.base import Base
from leadflow.models.lead import Lead
from leadflow.models.appointment import Appointment
from leadflow.models.transition_rule import TransitionRule
from leadflow.models.sync_outbox import LeadSyncOutbox

# Import event listeners to register them
from leadflow.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "Lead",
    "Appointment",
    "TransitionRule",
    "LeadSyncOutbox",
]
