import logging
from typing import Any, Dict, List
from uuid import UUID

from leadflow.core.exceptions import (
    InvalidTransitionRuleError,
    TransitionRuleNotFoundError,
)
from leadflow.models.transition_rule import TransitionRule
from leadflow.repositories.transition_rule_repository import TransitionRuleRepository
from leadflow.schemas.transition_rule import (
    RuleTestReason,
    RuleTestRequest,
    RuleTestResult,
    TransitionRuleCreate,
    TransitionRuleUpdate,
    actions_to_columns,
)
from leadflow.services.transition_engine import excluded_substatus_for

logger = logging.getLogger(__name__)

# Columns a PATCH may set to NULL; every other column is required
_NULLABLE_RULE_FIELDS = ("from_temperature", "from_substatus")


def evaluate_rule(rule: Any, conditions: RuleTestRequest) -> RuleTestResult:
    """Dry-run *rule* against simulated lead conditions.

    Mirrors the engine's filters: temperature, sub-status or the
    waiting-for-reply carve-out, then the timer, which only passes once
    strictly more than ``timer_minutes`` have elapsed.
    """
    reasons: List[RuleTestReason] = []
    actual_substatus = conditions.substatus.value if conditions.substatus else "none"

    if rule.from_temperature:
        reasons.append(
            RuleTestReason(
                condition="temperature",
                passed=conditions.temperature.value == rule.from_temperature,
                expected=rule.from_temperature,
                actual=conditions.temperature.value,
            )
        )

    excluded = excluded_substatus_for(rule)
    if rule.from_substatus:
        reasons.append(
            RuleTestReason(
                condition="substatus",
                passed=actual_substatus == rule.from_substatus,
                expected=rule.from_substatus,
                actual=actual_substatus,
            )
        )
    elif excluded:
        reasons.append(
            RuleTestReason(
                condition="substatus_excluded",
                passed=actual_substatus != excluded,
                expected=f"not {excluded}",
                actual=actual_substatus,
            )
        )

    reasons.append(
        RuleTestReason(
            condition="timer",
            passed=conditions.minutes_since_interaction > rule.timer_minutes,
            expected=f"more than {rule.timer_minutes} minutes",
            actual=f"{conditions.minutes_since_interaction} minutes",
        )
    )

    return RuleTestResult(
        matches=all(reason.passed for reason in reasons),
        reasons=reasons,
    )


class TransitionRuleService:
    """Administration of an organization's transition rules."""

    def __init__(self, rule_repo: TransitionRuleRepository) -> None:
        self._rule_repo = rule_repo

    async def list_rules(self, organization_id: UUID) -> List[TransitionRule]:
        return await self._rule_repo.list_rules(organization_id)

    async def get_rule(self, organization_id: UUID, rule_id: UUID) -> TransitionRule:
        rule = await self._rule_repo.get_by_id(organization_id, rule_id)
        if rule is None:
            raise TransitionRuleNotFoundError()
        return rule

    async def create_rule(
        self, organization_id: UUID, data: TransitionRuleCreate
    ) -> TransitionRule:
        """Create a rule; without an explicit priority it runs last."""
        priority = data.priority
        if priority is None:
            current_max = await self._rule_repo.get_max_priority(organization_id)
            priority = 0 if current_max is None else current_max + 1

        rule = await self._rule_repo.create(
            organization_id=organization_id,
            name=data.name,
            priority=priority,
            active=data.active,
            trigger_event=data.trigger_event.value,
            from_temperature=data.from_temperature.value if data.from_temperature else None,
            from_substatus=data.from_substatus.value if data.from_substatus else None,
            timer_minutes=data.timer_minutes,
            **actions_to_columns(data.actions),
        )
        await self._rule_repo.commit()
        logger.info(
            "Transition rule %s (%s) created for organization %s",
            rule.name,
            rule.id,
            organization_id,
        )
        return rule

    async def update_rule(
        self, organization_id: UUID, rule_id: UUID, data: TransitionRuleUpdate
    ) -> TransitionRule:
        rule = await self.get_rule(organization_id, rule_id)

        values: Dict[str, Any] = {}
        for field, value in data.model_dump(exclude_unset=True, exclude={"actions"}).items():
            if value is None and field not in _NULLABLE_RULE_FIELDS:
                continue
            values[field] = value.value if hasattr(value, "value") else value
        if data.actions is not None:
            values.update(actions_to_columns(data.actions))

        await self._rule_repo.update_fields(rule, **values)
        await self._rule_repo.commit()
        return rule

    async def delete_rule(self, organization_id: UUID, rule_id: UUID) -> None:
        rule = await self.get_rule(organization_id, rule_id)
        await self._rule_repo.delete(rule)
        await self._rule_repo.commit()
        logger.info("Transition rule %s deleted", rule_id)

    async def reorder_rules(
        self, organization_id: UUID, rule_ids: List[UUID]
    ) -> List[TransitionRule]:
        """Give each listed rule the priority of its position in *rule_ids*.

        Raises:
            InvalidTransitionRuleError: If an id repeats or does not
                belong to the organization.
        """
        if len(set(rule_ids)) != len(rule_ids):
            raise InvalidTransitionRuleError("rule_ids must not contain duplicates")

        rules = await self._rule_repo.get_many(organization_id, rule_ids)
        by_id = {rule.id: rule for rule in rules}
        missing = [str(rule_id) for rule_id in rule_ids if rule_id not in by_id]
        if missing:
            raise InvalidTransitionRuleError(
                "Rules not found in organization: " + ", ".join(missing)
            )

        for index, rule_id in enumerate(rule_ids):
            await self._rule_repo.update_fields(by_id[rule_id], priority=index)
        await self._rule_repo.commit()
        return await self._rule_repo.list_rules(organization_id)

    async def test_rule(
        self, organization_id: UUID, rule_id: UUID, conditions: RuleTestRequest
    ) -> RuleTestResult:
        rule = await self.get_rule(organization_id, rule_id)
        return evaluate_rule(rule, conditions)

    async def seed_defaults(self, organization_id: UUID) -> int:
        inserted = await self._rule_repo.seed_defaults_if_empty(organization_id)
        await self._rule_repo.commit()
        return inserted
