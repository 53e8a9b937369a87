import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.database import get_db
from leadflow.core.locks import OrganizationLock

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tenant context
# ---------------------------------------------------------------------------


async def get_organization_id(
    x_organization_id: UUID = Header(..., alias="X-Organization-ID"),
) -> UUID:
    """Organization every tenant-scoped request acts on.

    A missing or malformed header fails request validation (422).
    """
    return x_organization_id


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> Optional[Redis]:
    """Get an async Redis client, or ``None`` when Redis is unreachable."""
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
        return client
    except Exception:
        logger.warning("Redis unavailable; organization locks disabled for this request")
        return None


async def get_organization_lock(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> OrganizationLock:
    """Build an :class:`OrganizationLock` backed by the shared Redis client."""
    return OrganizationLock(
        redis_client=redis_client, ttl=settings.ORGANIZATION_LOCK_TTL_SECONDS
    )


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_lead_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadflow.repositories.lead_repository import LeadRepository

    return LeadRepository(db)


async def get_appointment_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadflow.repositories.appointment_repository import AppointmentRepository

    return AppointmentRepository(db)


async def get_transition_rule_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadflow.repositories.transition_rule_repository import (
        TransitionRuleRepository,
    )

    return TransitionRuleRepository(db)


async def get_sync_outbox_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadflow.repositories.sync_outbox_repository import SyncOutboxRepository

    return SyncOutboxRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_transition_engine(
    rule_repo=Depends(get_transition_rule_repo),
    lead_repo=Depends(get_lead_repo),
    lock: OrganizationLock = Depends(get_organization_lock),
):
    """Build a :class:`TransitionRuleEngine` with injected dependencies."""
    from leadflow.services.transition_engine import TransitionRuleEngine

    return TransitionRuleEngine(rule_repo=rule_repo, lead_repo=lead_repo, lock=lock)


async def get_transition_rule_service(
    rule_repo=Depends(get_transition_rule_repo),
):
    from leadflow.services.rule_service import TransitionRuleService

    return TransitionRuleService(rule_repo=rule_repo)


async def get_appointment_synchronizer(
    lead_repo=Depends(get_lead_repo),
    appointment_repo=Depends(get_appointment_repo),
):
    from leadflow.services.appointment_sync import AppointmentSynchronizer

    return AppointmentSynchronizer(lead_repo=lead_repo, appointment_repo=appointment_repo)


async def get_appointment_service(
    synchronizer=Depends(get_appointment_synchronizer),
    appointment_repo=Depends(get_appointment_repo),
    lead_repo=Depends(get_lead_repo),
    outbox_repo=Depends(get_sync_outbox_repo),
):
    """Build an :class:`AppointmentService` with injected dependencies."""
    from leadflow.services.appointment_service import AppointmentService

    return AppointmentService(
        synchronizer=synchronizer,
        appointment_repo=appointment_repo,
        lead_repo=lead_repo,
        outbox_repo=outbox_repo,
    )


async def get_lead_service():
    from leadflow.services.lead_service import LeadService

    return LeadService()
