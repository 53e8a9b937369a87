"""Repository layer: all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.appointment_repository import AppointmentRepository
from leadflow.repositories.transition_rule_repository import TransitionRuleRepository
from leadflow.repositories.sync_outbox_repository import SyncOutboxRepository

__all__ = [
    "LeadRepository",
    "AppointmentRepository",
    "TransitionRuleRepository",
    "SyncOutboxRepository",
]
