"""Transition rule schemas.

Rule actions are a closed set of variants instead of three independent
optional columns.  A rule may carry at most one temperature action and
at most one sub-status action.  Only ``quente`` leads hold a sub-status,
so a rule that sets one must either set ``quente`` itself or apply to
``quente`` leads.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self

from leadflow.schemas.common import HotSubstatus, Temperature, TriggerEvent


class SetTemperatureAction(BaseModel):
    kind: Literal["set_temperature"] = "set_temperature"
    temperature: Temperature

    @field_validator("temperature")
    @classmethod
    def reject_reporting_only_temperature(cls, value: Temperature) -> Temperature:
        if value == Temperature.MORNO:
            raise ValueError("'morno' is a reporting value and cannot be a rule target")
        return value


class ClearSubstatusAction(BaseModel):
    kind: Literal["clear_substatus"] = "clear_substatus"


class SetSubstatusAction(BaseModel):
    kind: Literal["set_substatus"] = "set_substatus"
    substatus: HotSubstatus


RuleAction = Annotated[
    Union[SetTemperatureAction, ClearSubstatusAction, SetSubstatusAction],
    Field(discriminator="kind"),
]


def check_action_combination(actions: List[Any]) -> None:
    """Raise ``ValueError`` for combinations that have no single meaning."""
    temperature_actions = [a for a in actions if a.kind == "set_temperature"]
    substatus_actions = [
        a for a in actions if a.kind in ("clear_substatus", "set_substatus")
    ]
    if len(temperature_actions) > 1:
        raise ValueError("a rule can set the temperature only once")
    if len(substatus_actions) > 1:
        raise ValueError(
            "a rule can either clear or set the sub-status, and only once"
        )
    if (
        temperature_actions
        and temperature_actions[0].temperature != Temperature.QUENTE
        and any(a.kind == "set_substatus" for a in substatus_actions)
    ):
        raise ValueError(
            f"a rule that sets '{temperature_actions[0].temperature.value}' "
            "cannot set a sub-status"
        )


def check_substatus_scope(from_temperature: Any, actions: List[Any]) -> None:
    """A rule that only sets a sub-status must apply to ``quente`` leads."""
    sets_temperature = any(a.kind == "set_temperature" for a in actions)
    sets_substatus = any(a.kind == "set_substatus" for a in actions)
    if (
        sets_substatus
        and not sets_temperature
        and from_temperature is not None
        and from_temperature != Temperature.QUENTE
    ):
        raise ValueError(
            "a rule that sets a sub-status without a temperature "
            "must apply to 'quente' leads"
        )


def actions_to_columns(actions: List[Any]) -> Dict[str, Any]:
    """Flatten validated actions into the ``transition_rules`` action columns."""
    columns: Dict[str, Any] = {
        "action_set_temperature": None,
        "action_clear_substatus": False,
        "action_set_substatus": None,
    }
    for action in actions:
        if action.kind == "set_temperature":
            columns["action_set_temperature"] = action.temperature.value
        elif action.kind == "clear_substatus":
            columns["action_clear_substatus"] = True
        elif action.kind == "set_substatus":
            columns["action_set_substatus"] = action.substatus.value
    return columns


def actions_from_columns(rule: Any) -> List[Any]:
    """Rebuild the action variants from a stored rule row.

    Rows written before the API validated combinations may hold both a
    clear flag and a sub-status value; clearing wins.
    """
    actions: List[Any] = []
    if rule.action_set_temperature:
        actions.append(
            SetTemperatureAction(temperature=Temperature(rule.action_set_temperature))
        )
    if rule.action_clear_substatus:
        actions.append(ClearSubstatusAction())
    elif rule.action_set_substatus:
        actions.append(
            SetSubstatusAction(substatus=HotSubstatus(rule.action_set_substatus))
        )
    return actions


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TransitionRuleCreate(BaseModel):
    """Request body for POST /api/v1/transition-rules."""

    name: str = Field(..., min_length=1, max_length=100)
    trigger_event: TriggerEvent
    from_temperature: Optional[Temperature] = None
    from_substatus: Optional[HotSubstatus] = None
    timer_minutes: int = Field(0, ge=0)
    priority: Optional[int] = Field(None, ge=0)
    active: bool = True
    actions: List[RuleAction] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_actions(self) -> Self:
        check_action_combination(self.actions)
        check_substatus_scope(self.from_temperature, self.actions)
        return self


class TransitionRuleUpdate(BaseModel):
    """Request body for PATCH /api/v1/transition-rules/{rule_id}.

    When ``actions`` is present it replaces every action of the rule.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    trigger_event: Optional[TriggerEvent] = None
    from_temperature: Optional[Temperature] = None
    from_substatus: Optional[HotSubstatus] = None
    timer_minutes: Optional[int] = Field(None, ge=0)
    priority: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None
    actions: Optional[List[RuleAction]] = Field(None, min_length=1)

    @model_validator(mode="after")
    def validate_actions(self) -> Self:
        if self.actions is not None:
            check_action_combination(self.actions)
            check_substatus_scope(self.from_temperature, self.actions)
        return self


class RuleReorderRequest(BaseModel):
    """Rule ids in their new evaluation order; priority becomes the index."""

    rule_ids: List[UUID] = Field(..., min_length=1)


class RuleTestRequest(BaseModel):
    """Simulated lead conditions for a rule dry-run."""

    temperature: Temperature
    substatus: Optional[HotSubstatus] = None
    minutes_since_interaction: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TransitionRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    priority: int
    active: bool
    trigger_event: TriggerEvent
    from_temperature: Optional[Temperature] = None
    from_substatus: Optional[HotSubstatus] = None
    timer_minutes: int
    actions: List[RuleAction]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_rule(cls, rule: Any) -> "TransitionRuleOut":
        return cls(
            id=rule.id,
            organization_id=rule.organization_id,
            name=rule.name,
            priority=rule.priority,
            active=rule.active,
            trigger_event=rule.trigger_event,
            from_temperature=rule.from_temperature,
            from_substatus=rule.from_substatus,
            timer_minutes=rule.timer_minutes,
            actions=actions_from_columns(rule),
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )


class RuleTestReason(BaseModel):
    condition: str
    passed: bool
    expected: str
    actual: str


class RuleTestResult(BaseModel):
    matches: bool
    reasons: List[RuleTestReason]
