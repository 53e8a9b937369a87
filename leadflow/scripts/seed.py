"""Sample data seeder for a single organization.

Usage:
    python -m leadflow.scripts.seed [ORGANIZATION_ID]

Seeds the default transition rules (only when the organization has
none) plus a handful of leads and appointments in every temperature, so
a manual ``POST /api/v1/transitions/run`` has something to move.
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from leadflow.core.config import settings
from leadflow.models import Appointment, Lead
from leadflow.repositories.appointment_repository import AppointmentRepository
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.transition_rule_repository import TransitionRuleRepository
from leadflow.services.appointment_sync import AppointmentSynchronizer
from leadflow.services.rule_service import TransitionRuleService

# (name, temperature, hot_substatus, hours since last interaction or None)
SAMPLE_LEADS = [
    ("Ana Souza", "novo", None, None),
    ("Bruno Lima", "novo", None, 80),
    ("Carla Mendes", "quente", "em_conversa", 30),
    ("Diego Rocha", "quente", "aguardando_resposta", 50),
    ("Elisa Prado", "quente", None, 100),
    ("Felipe Castro", "quente", "em_negociacao", 2),
    ("Gabriela Nunes", "morno", None, 24),
    ("Heitor Alves", "frio", None, 200),
    ("Isabela Costa", "perdido", None, 400),
]

# (lead index, days from now, raw status)
SAMPLE_APPOINTMENTS = [
    (2, 3, "scheduled"),
    (2, 8, "scheduled"),
    (5, 1, "confirmado"),
    (6, -2, "atendido"),
]


async def seed(organization_id: UUID) -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    now = datetime.now(timezone.utc)

    async with session_maker() as session:
        print(f"Seeding organization {organization_id}")

        # Re-running the seed replaces the sample leads and appointments
        await session.execute(
            delete(Appointment).where(Appointment.organization_id == organization_id)
        )
        await session.execute(delete(Lead).where(Lead.organization_id == organization_id))
        await session.commit()
        print("Cleared existing leads and appointments")

        rule_service = TransitionRuleService(TransitionRuleRepository(session))
        inserted = await rule_service.seed_defaults(organization_id)
        print(f"Default transition rules inserted: {inserted}")

        lead_repo = LeadRepository(session)
        leads = []
        for name, temperature, substatus, idle_hours in SAMPLE_LEADS:
            leads.append(
                await lead_repo.create(
                    organization_id=organization_id,
                    name=name,
                    phone=f"+55119{len(leads):08d}",
                    temperature=temperature,
                    hot_substatus=substatus,
                    lost_reason="sem retorno" if temperature == "perdido" else None,
                    last_interaction_at=(
                        now - timedelta(hours=idle_hours) if idle_hours else None
                    ),
                )
            )
        print(f"Created {len(leads)} leads")

        appointment_repo = AppointmentRepository(session)
        synchronizer = AppointmentSynchronizer(lead_repo, appointment_repo)
        for lead_index, days, status in SAMPLE_APPOINTMENTS:
            appointment = await appointment_repo.create(
                organization_id=organization_id,
                lead_id=leads[lead_index].id,
                appointment_date=now + timedelta(days=days),
                status=status,
            )
            await synchronizer.on_created(appointment)
        print(f"Created {len(SAMPLE_APPOINTMENTS)} appointments")

        await session.commit()
        print("Seeding complete")

    await engine.dispose()


if __name__ == "__main__":
    org_id = UUID(sys.argv[1]) if len(sys.argv) > 1 else uuid4()
    asyncio.run(seed(org_id))
