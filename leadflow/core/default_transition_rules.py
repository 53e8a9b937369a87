from typing import Any, Dict, List


DEFAULT_TRANSITION_RULES: List[Dict[str, Any]] = [
    {
        "name": "Quente sem interação (3 dias) → frio",
        "priority": 0,
        "trigger_event": "inactivity_timer",
        "from_temperature": "quente",
        "timer_minutes": 3 * 24 * 60,
        "action_set_temperature": "frio",
        "action_clear_substatus": True,
    },
    {
        "name": "Novo sem interação (3 dias) → frio",
        "priority": 1,
        "trigger_event": "inactivity_timer",
        "from_temperature": "novo",
        "timer_minutes": 3 * 24 * 60,
        "action_set_temperature": "frio",
        "action_clear_substatus": False,
    },
    {
        "name": "Aguardando resposta sem retorno (2 dias) → frio",
        "priority": 2,
        "trigger_event": "no_response",
        "from_temperature": "quente",
        "from_substatus": "aguardando_resposta",
        "timer_minutes": 2 * 24 * 60,
        "action_set_temperature": "frio",
        "action_clear_substatus": True,
    },
    {
        "name": "Em conversa parada (24h) → limpa substatus",
        "priority": 3,
        "trigger_event": "substatus_timeout",
        "from_temperature": "quente",
        "from_substatus": "em_conversa",
        "timer_minutes": 24 * 60,
        "action_clear_substatus": True,
    },
]
