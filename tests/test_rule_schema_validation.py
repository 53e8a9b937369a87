from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from leadflow.schemas.transition_rule import (
    ClearSubstatusAction,
    SetSubstatusAction,
    SetTemperatureAction,
    TransitionRuleCreate,
    TransitionRuleUpdate,
    actions_from_columns,
    actions_to_columns,
)

_VALID_RULE_KWARGS = {
    "name": "Quente parado",
    "trigger_event": "inactivity_timer",
    "from_temperature": "quente",
    "timer_minutes": 60,
    "actions": [{"kind": "set_temperature", "temperature": "frio"}],
}


def _rule(**overrides) -> TransitionRuleCreate:
    return TransitionRuleCreate(**{**_VALID_RULE_KWARGS, **overrides})


class TestActionVariants:
    def test_actions_are_parsed_by_kind(self):
        rule = _rule(
            actions=[
                {"kind": "set_temperature", "temperature": "quente"},
                {"kind": "set_substatus", "substatus": "em_negociacao"},
            ]
        )
        assert isinstance(rule.actions[0], SetTemperatureAction)
        assert isinstance(rule.actions[1], SetSubstatusAction)

    def test_unknown_kind_raises(self):
        with pytest.raises(ValidationError):
            _rule(actions=[{"kind": "delete_lead"}])

    def test_morno_target_raises(self):
        with pytest.raises(ValidationError, match="morno"):
            _rule(actions=[{"kind": "set_temperature", "temperature": "morno"}])

    def test_at_least_one_action_required(self):
        with pytest.raises(ValidationError):
            _rule(actions=[])


class TestActionCombinations:
    def test_two_temperatures_raise(self):
        with pytest.raises(ValidationError, match="only once"):
            _rule(
                actions=[
                    {"kind": "set_temperature", "temperature": "frio"},
                    {"kind": "set_temperature", "temperature": "perdido"},
                ]
            )

    def test_clear_and_set_substatus_raise(self):
        with pytest.raises(ValidationError):
            _rule(
                actions=[
                    {"kind": "clear_substatus"},
                    {"kind": "set_substatus", "substatus": "em_conversa"},
                ]
            )

    def test_frio_with_substatus_raises(self):
        with pytest.raises(ValidationError, match="frio"):
            _rule(
                actions=[
                    {"kind": "set_temperature", "temperature": "frio"},
                    {"kind": "set_substatus", "substatus": "em_conversa"},
                ]
            )

    @pytest.mark.parametrize("temperature", ["novo", "perdido"])
    def test_non_quente_temperature_with_substatus_raises(self, temperature):
        with pytest.raises(ValidationError, match="cannot set a sub-status"):
            _rule(
                actions=[
                    {"kind": "set_temperature", "temperature": temperature},
                    {"kind": "set_substatus", "substatus": "em_conversa"},
                ]
            )

    def test_substatus_only_rule_for_cold_leads_raises(self):
        with pytest.raises(ValidationError, match="quente"):
            _rule(
                from_temperature="frio",
                actions=[{"kind": "set_substatus", "substatus": "em_conversa"}],
            )

    def test_substatus_only_rule_without_temperature_filter_passes(self):
        rule = _rule(
            from_temperature=None,
            actions=[{"kind": "set_substatus", "substatus": "aguardando_resposta"}],
        )
        assert rule.from_temperature is None

    def test_frio_with_clear_passes(self):
        rule = _rule(
            actions=[
                {"kind": "set_temperature", "temperature": "frio"},
                {"kind": "clear_substatus"},
            ]
        )
        assert len(rule.actions) == 2

    def test_update_validates_replacement_actions(self):
        with pytest.raises(ValidationError):
            TransitionRuleUpdate(
                actions=[
                    {"kind": "set_temperature", "temperature": "frio"},
                    {"kind": "set_substatus", "substatus": "em_conversa"},
                ]
            )

    def test_update_without_actions_passes(self):
        update = TransitionRuleUpdate(active=False)
        assert update.actions is None


class TestRuleFields:
    def test_negative_timer_raises(self):
        with pytest.raises(ValidationError):
            _rule(timer_minutes=-1)

    def test_unknown_trigger_raises(self):
        with pytest.raises(ValidationError):
            _rule(trigger_event="on_birthday")

    def test_priority_is_optional(self):
        assert _rule().priority is None


class TestColumnMapping:
    def test_actions_to_columns(self):
        columns = actions_to_columns(
            [
                SetTemperatureAction(temperature="frio"),
                ClearSubstatusAction(),
            ]
        )
        assert columns == {
            "action_set_temperature": "frio",
            "action_clear_substatus": True,
            "action_set_substatus": None,
        }

    def test_clear_wins_over_set_in_stored_rows(self):
        row = SimpleNamespace(
            action_set_temperature=None,
            action_clear_substatus=True,
            action_set_substatus="em_conversa",
        )
        actions = actions_from_columns(row)
        assert [a.kind for a in actions] == ["clear_substatus"]

    def test_row_without_actions(self):
        row = SimpleNamespace(
            action_set_temperature=None,
            action_clear_substatus=False,
            action_set_substatus=None,
        )
        assert actions_from_columns(row) == []
