from fastapi import APIRouter

from leadflow.api.v1.endpoints import (
    appointments,
    health,
    leads,
    transition_rules,
    transitions,
)

router = APIRouter(prefix="/api/v1")

router.include_router(transitions.router)
router.include_router(transition_rules.router)
router.include_router(appointments.router)
router.include_router(leads.router)
router.include_router(health.router)
