"""API-layer dependency functions.

Re-exports all dependency factories from ``leadflow.dependencies`` so
that endpoint modules only need to import from ``leadflow.api.deps``.
"""

from leadflow.dependencies import (
    # Tenant context
    get_organization_id,
    # Repository factories
    get_lead_repo,
    get_appointment_repo,
    get_transition_rule_repo,
    get_sync_outbox_repo,
    # Service factories
    get_transition_engine,
    get_transition_rule_service,
    get_appointment_synchronizer,
    get_appointment_service,
    get_lead_service,
    # Redis
    get_redis_client,
    get_organization_lock,
)

__all__ = [
    "get_organization_id",
    "get_lead_repo",
    "get_appointment_repo",
    "get_transition_rule_repo",
    "get_sync_outbox_repo",
    "get_transition_engine",
    "get_transition_rule_service",
    "get_appointment_synchronizer",
    "get_appointment_service",
    "get_lead_service",
    "get_redis_client",
    "get_organization_lock",
]
