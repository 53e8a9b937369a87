from typing import Optional

from fastapi import APIRouter, Depends, Request

from leadflow.api.deps import get_transition_engine
from leadflow.core.config import settings
from leadflow.core.rate_limit import limiter
from leadflow.schemas.transitions import TransitionRunRequest, TransitionRunResponse
from leadflow.services.transition_engine import TransitionRuleEngine

router = APIRouter(prefix="/transitions", tags=["Transitions"])


@router.post(
    "/run",
    response_model=TransitionRunResponse,
    response_model_exclude_none=True,
)
@limiter.limit(settings.TRANSITION_TRIGGER_RATE_LIMIT)
async def run_transitions(
    request: Request,
    request_body: Optional[TransitionRunRequest] = None,
    engine: TransitionRuleEngine = Depends(get_transition_engine),
) -> TransitionRunResponse:
    """Evaluate every active transition rule once.

    Called by an external scheduler.  Always answers 200: a run that
    could not read its rules reports ``success: false`` in the body.
    Rate-limited per IP by ``TRANSITION_TRIGGER_RATE_LIMIT``.
    """
    organization_id = request_body.organization_id if request_body else None
    result = await engine.run(organization_id=organization_id)
    return TransitionRunResponse(**result.to_response())
