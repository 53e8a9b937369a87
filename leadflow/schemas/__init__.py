"""Pydantic schemas package: re-exports for convenience."""

# Common enums
from leadflow.schemas.common import (
    Temperature as Temperature,
    HotSubstatus as HotSubstatus,
    TriggerEvent as TriggerEvent,
    AppointmentStatus as AppointmentStatus,
    StatusClass as StatusClass,
    SyncStatus as SyncStatus,
    SyncEvent as SyncEvent,
    SuccessResponse as SuccessResponse,
)

# Lead schemas
from leadflow.schemas.lead import (
    LeadCreate as LeadCreate,
    TemperatureUpdate as TemperatureUpdate,
    SubstatusUpdate as SubstatusUpdate,
    InteractionCreate as InteractionCreate,
    LeadOut as LeadOut,
    LeadSchedulingOut as LeadSchedulingOut,
    TemperatureSummary as TemperatureSummary,
)

# Transition rule schemas
from leadflow.schemas.transition_rule import (
    SetTemperatureAction as SetTemperatureAction,
    ClearSubstatusAction as ClearSubstatusAction,
    SetSubstatusAction as SetSubstatusAction,
    TransitionRuleCreate as TransitionRuleCreate,
    TransitionRuleUpdate as TransitionRuleUpdate,
    TransitionRuleOut as TransitionRuleOut,
    RuleReorderRequest as RuleReorderRequest,
    RuleTestRequest as RuleTestRequest,
    RuleTestResult as RuleTestResult,
)

# Engine trigger schemas
from leadflow.schemas.transitions import (
    TransitionRunRequest as TransitionRunRequest,
    TransitionRunResponse as TransitionRunResponse,
)
