from enum import Enum
from pydantic import BaseModel


class Temperature(str, Enum):
    NOVO = "novo"
    QUENTE = "quente"
    MORNO = "morno"
    FRIO = "frio"
    PERDIDO = "perdido"


class HotSubstatus(str, Enum):
    EM_CONVERSA = "em_conversa"
    AGUARDANDO_RESPOSTA = "aguardando_resposta"
    EM_NEGOCIACAO = "em_negociacao"
    FOLLOW_UP_AGENDADO = "follow_up_agendado"


class TriggerEvent(str, Enum):
    INACTIVITY_TIMER = "inactivity_timer"
    SUBSTATUS_TIMEOUT = "substatus_timeout"
    NO_RESPONSE = "no_response"


class AppointmentStatus(str, Enum):
    """Canonical appointment status; raw values are mapped onto these."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    ATTENDED = "attended"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class StatusClass(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class SyncStatus(str, Enum):
    """Outcome of reconciling a lead after an appointment mutation."""

    SYNCED = "synced"
    DEFERRED = "deferred"
    SKIPPED = "skipped"


class SyncEvent(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True
