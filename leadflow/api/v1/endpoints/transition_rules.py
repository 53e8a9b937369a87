from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from leadflow.api.deps import get_organization_id, get_transition_rule_service
from leadflow.schemas.common import SuccessResponse
from leadflow.schemas.transition_rule import (
    RuleReorderRequest,
    RuleTestRequest,
    RuleTestResult,
    TransitionRuleCreate,
    TransitionRuleOut,
    TransitionRuleUpdate,
)
from leadflow.services.rule_service import TransitionRuleService

router = APIRouter(prefix="/transition-rules", tags=["Transition Rules"])


@router.get("", response_model=List[TransitionRuleOut])
async def list_rules(
    organization_id: UUID = Depends(get_organization_id),
    service: TransitionRuleService = Depends(get_transition_rule_service),
) -> List[TransitionRuleOut]:
    """List the organization's rules in evaluation order."""
    rules = await service.list_rules(organization_id)
    return [TransitionRuleOut.from_rule(rule) for rule in rules]


@router.post("", response_model=TransitionRuleOut, status_code=201)
async def create_rule(
    request_body: TransitionRuleCreate,
    organization_id: UUID = Depends(get_organization_id),
    service: TransitionRuleService = Depends(get_transition_rule_service),
) -> TransitionRuleOut:
    rule = await service.create_rule(organization_id, request_body)
    return TransitionRuleOut.from_rule(rule)


@router.post("/reorder", response_model=List[TransitionRuleOut])
async def reorder_rules(
    request_body: RuleReorderRequest,
    organization_id: UUID = Depends(get_organization_id),
    service: TransitionRuleService = Depends(get_transition_rule_service),
) -> List[TransitionRuleOut]:
    """Set priorities from the order of ``rule_ids``."""
    rules = await service.reorder_rules(organization_id, request_body.rule_ids)
    return [TransitionRuleOut.from_rule(rule) for rule in rules]


@router.patch("/{rule_id}", response_model=TransitionRuleOut)
async def update_rule(
    rule_id: UUID,
    request_body: TransitionRuleUpdate,
    organization_id: UUID = Depends(get_organization_id),
    service: TransitionRuleService = Depends(get_transition_rule_service),
) -> TransitionRuleOut:
    rule = await service.update_rule(organization_id, rule_id, request_body)
    return TransitionRuleOut.from_rule(rule)


@router.delete("/{rule_id}", response_model=SuccessResponse)
async def delete_rule(
    rule_id: UUID,
    organization_id: UUID = Depends(get_organization_id),
    service: TransitionRuleService = Depends(get_transition_rule_service),
) -> SuccessResponse:
    await service.delete_rule(organization_id, rule_id)
    return SuccessResponse()


@router.post("/{rule_id}/test", response_model=RuleTestResult)
async def test_rule(
    rule_id: UUID,
    request_body: RuleTestRequest,
    organization_id: UUID = Depends(get_organization_id),
    service: TransitionRuleService = Depends(get_transition_rule_service),
) -> RuleTestResult:
    """Dry-run a rule against simulated lead conditions; nothing is written."""
    return await service.test_rule(organization_id, rule_id, request_body)
