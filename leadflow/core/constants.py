from typing import Dict, FrozenSet

from leadflow.schemas.common import (
    AppointmentStatus,
    HotSubstatus,
    StatusClass,
    Temperature,
    TriggerEvent,
)

TEMPERATURES: FrozenSet[str] = frozenset(t.value for t in Temperature)
HOT_SUBSTATUSES: FrozenSet[str] = frozenset(s.value for s in HotSubstatus)
TRIGGER_EVENTS: FrozenSet[str] = frozenset(e.value for e in TriggerEvent)

# Reporting still reads ``morno`` but no rule may move a lead there
RULE_TARGET_TEMPERATURES: FrozenSet[str] = TEMPERATURES - {Temperature.MORNO.value}

TEMPERATURE_CHECK_CLAUSE: str = (
    f"temperature IN ({', '.join(repr(t.value) for t in Temperature)})"
)
HOT_SUBSTATUS_CHECK_CLAUSE: str = (
    "hot_substatus IS NULL OR hot_substatus IN "
    f"({', '.join(repr(s.value) for s in HotSubstatus)})"
)
TRIGGER_EVENT_CHECK_CLAUSE: str = (
    f"trigger_event IN ({', '.join(repr(e.value) for e in TriggerEvent)})"
)

# Both vocabularies used by the scheduling clients, keyed by lowercase value
APPOINTMENT_STATUS_ALIASES: Dict[str, AppointmentStatus] = {
    "scheduled": AppointmentStatus.SCHEDULED,
    "confirmed": AppointmentStatus.CONFIRMED,
    "rescheduled": AppointmentStatus.RESCHEDULED,
    "attended": AppointmentStatus.ATTENDED,
    "cancelled": AppointmentStatus.CANCELLED,
    "no_show": AppointmentStatus.NO_SHOW,
    "agendado": AppointmentStatus.SCHEDULED,
    "confirmado": AppointmentStatus.CONFIRMED,
    "remarcado": AppointmentStatus.RESCHEDULED,
    "reagendado": AppointmentStatus.RESCHEDULED,
    "reprogramado": AppointmentStatus.RESCHEDULED,
    "atendido": AppointmentStatus.ATTENDED,
    "cancelado": AppointmentStatus.CANCELLED,
    "faltou": AppointmentStatus.NO_SHOW,
    "falta": AppointmentStatus.NO_SHOW,
}

STATUS_CLASSES: Dict[AppointmentStatus, StatusClass] = {
    AppointmentStatus.SCHEDULED: StatusClass.ACTIVE,
    AppointmentStatus.CONFIRMED: StatusClass.ACTIVE,
    AppointmentStatus.RESCHEDULED: StatusClass.ACTIVE,
    AppointmentStatus.ATTENDED: StatusClass.CLOSED,
    AppointmentStatus.CANCELLED: StatusClass.CLOSED,
    AppointmentStatus.NO_SHOW: StatusClass.CLOSED,
}

# Replacement lookups after an update/delete only consider this raw value.
# Narrower than the ACTIVE class on purpose; see DESIGN.md open questions.
REPLACEMENT_APPOINTMENT_STATUS: str = "scheduled"

DEFAULT_APPOINTMENT_STATUS: str = AppointmentStatus.SCHEDULED.value
