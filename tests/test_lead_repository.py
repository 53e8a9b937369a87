from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

from sqlalchemy.dialects import postgresql

from leadflow.models.listeners import clear_substatus_for_cold_lead, update_timestamp
from leadflow.repositories.lead_repository import CandidateCriteria, build_candidate_query

THRESHOLD = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _sql(**overrides) -> str:
    values = {"organization_id": uuid4(), "threshold": THRESHOLD}
    values.update(overrides)
    query = build_candidate_query(CandidateCriteria(**values))
    return str(query.compile(dialect=postgresql.dialect()))


class TestCandidateQuery:
    def test_always_scoped_to_organization(self):
        assert "leads.organization_id =" in _sql()

    def test_temperature_filter_only_when_given(self):
        assert "leads.temperature =" not in _sql()
        assert "leads.temperature =" in _sql(temperature="quente")

    def test_excluded_substatus_keeps_leads_without_one(self):
        sql = _sql(temperature="quente", excluded_substatus="aguardando_resposta")

        assert "leads.hot_substatus IS NULL" in sql
        assert "leads.hot_substatus !=" in sql

    def test_explicit_substatus_wins_over_exclusion(self):
        sql = _sql(substatus="em_conversa", excluded_substatus="aguardando_resposta")

        assert "leads.hot_substatus =" in sql
        assert "leads.hot_substatus IS NULL" not in sql

    def test_never_interacted_leads_are_candidates_by_default(self):
        sql = _sql()

        assert "leads.last_interaction_at <" in sql
        assert "leads.last_interaction_at IS NULL" in sql

    def test_never_interacted_leads_can_be_excluded(self):
        sql = _sql(include_never_interacted=False)

        assert "leads.last_interaction_at <" in sql
        assert "leads.last_interaction_at IS NULL" not in sql


class TestLeadListeners:
    def test_cold_lead_loses_substatus_on_flush(self):
        lead = SimpleNamespace(temperature="frio", hot_substatus="em_conversa")

        clear_substatus_for_cold_lead(None, None, lead)

        assert lead.hot_substatus is None

    def test_hot_lead_keeps_substatus(self):
        lead = SimpleNamespace(temperature="quente", hot_substatus="em_conversa")

        clear_substatus_for_cold_lead(None, None, lead)

        assert lead.hot_substatus == "em_conversa"

    def test_updated_at_is_refreshed(self):
        target = SimpleNamespace(updated_at=None)

        update_timestamp(None, None, target)

        assert target.updated_at.tzinfo is not None
