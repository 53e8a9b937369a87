from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from leadflow.core.exceptions import InvalidTemperatureStateError, LeadNotFoundError
from leadflow.schemas.lead import (
    InteractionCreate,
    LeadCreate,
    SubstatusUpdate,
    TemperatureUpdate,
)
from leadflow.services.lead_service import LeadService

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def service():
    return LeadService()


async def _hot_lead(lead_repo, organization_id, substatus="em_conversa"):
    return await lead_repo.create(
        organization_id=organization_id,
        name="Lead",
        phone="+5511977776666",
        temperature="quente",
        hot_substatus=substatus,
    )


class TestCreateLead:
    @pytest.mark.asyncio
    async def test_defaults_to_novo(self, service, lead_repo, organization_id):
        lead = await service.create_lead(
            organization_id, LeadCreate(name="Ana", phone="+5511977776666"), lead_repo
        )

        assert lead.temperature == "novo"
        assert lead.hot_substatus is None
        assert lead.scheduled is False
        assert lead_repo.store.commits == 1

    def test_substatus_requires_quente(self):
        with pytest.raises(ValidationError, match="quente"):
            LeadCreate(
                name="Ana",
                phone="+5511977776666",
                temperature="novo",
                hot_substatus="em_conversa",
            )

    @pytest.mark.asyncio
    async def test_missing_lead_raises(self, service, lead_repo, organization_id):
        with pytest.raises(LeadNotFoundError):
            await service.get_lead(organization_id, uuid4(), lead_repo)


class TestChangeTemperature:
    @pytest.mark.asyncio
    async def test_cooling_clears_substatus(self, service, lead_repo, organization_id):
        lead = await _hot_lead(lead_repo, organization_id)

        await service.change_temperature(
            organization_id, lead.id, TemperatureUpdate(temperature="frio"), lead_repo, now=NOW
        )

        assert lead.temperature == "frio"
        assert lead.hot_substatus is None
        assert lead.updated_at == NOW

    @pytest.mark.asyncio
    async def test_morno_is_allowed_manually(self, service, lead_repo, organization_id):
        lead = await _hot_lead(lead_repo, organization_id)

        await service.change_temperature(
            organization_id, lead.id, TemperatureUpdate(temperature="morno"), lead_repo
        )

        assert lead.temperature == "morno"
        assert lead.hot_substatus is None

    @pytest.mark.asyncio
    async def test_heating_refreshes_interaction(
        self, service, lead_repo, organization_id
    ):
        lead = await lead_repo.create(
            organization_id=organization_id, name="Lead", phone="+5511977776666"
        )

        await service.change_temperature(
            organization_id,
            lead.id,
            TemperatureUpdate(temperature="quente", hot_substatus="em_conversa"),
            lead_repo,
            now=NOW,
        )

        assert lead.temperature == "quente"
        assert lead.hot_substatus == "em_conversa"
        assert lead.last_interaction_at == NOW

    @pytest.mark.asyncio
    async def test_staying_quente_keeps_substatus(
        self, service, lead_repo, organization_id
    ):
        lead = await _hot_lead(lead_repo, organization_id, "em_negociacao")

        await service.change_temperature(
            organization_id, lead.id, TemperatureUpdate(temperature="quente"), lead_repo
        )

        assert lead.hot_substatus == "em_negociacao"

    @pytest.mark.asyncio
    async def test_substatus_for_cold_lead_is_rejected(
        self, service, lead_repo, organization_id
    ):
        lead = await _hot_lead(lead_repo, organization_id)

        with pytest.raises(InvalidTemperatureStateError):
            await service.change_temperature(
                organization_id,
                lead.id,
                TemperatureUpdate(temperature="frio", hot_substatus="em_conversa"),
                lead_repo,
            )
        assert lead.temperature == "quente"

    @pytest.mark.asyncio
    async def test_lost_reason_only_while_perdido(
        self, service, lead_repo, organization_id
    ):
        lead = await _hot_lead(lead_repo, organization_id)

        await service.change_temperature(
            organization_id,
            lead.id,
            TemperatureUpdate(temperature="perdido", lost_reason="comprou em outro lugar"),
            lead_repo,
        )
        assert lead.lost_reason == "comprou em outro lugar"

        await service.change_temperature(
            organization_id, lead.id, TemperatureUpdate(temperature="novo"), lead_repo
        )
        assert lead.lost_reason is None


class TestSubstatusAndInteractions:
    @pytest.mark.asyncio
    async def test_substatus_change_on_hot_lead(
        self, service, lead_repo, organization_id
    ):
        lead = await _hot_lead(lead_repo, organization_id)

        await service.change_substatus(
            organization_id,
            lead.id,
            SubstatusUpdate(hot_substatus="aguardando_resposta"),
            lead_repo,
        )

        assert lead.hot_substatus == "aguardando_resposta"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("temperature", ["novo", "morno", "frio", "perdido"])
    async def test_substatus_change_requires_quente(
        self, service, lead_repo, organization_id, temperature
    ):
        lead = await lead_repo.create(
            organization_id=organization_id,
            name="Lead",
            phone="+5511977776666",
            temperature=temperature,
        )

        with pytest.raises(InvalidTemperatureStateError):
            await service.change_substatus(
                organization_id,
                lead.id,
                SubstatusUpdate(hot_substatus="em_conversa"),
                lead_repo,
            )

    @pytest.mark.asyncio
    async def test_interaction_sets_anchor(self, service, lead_repo, organization_id):
        lead = await _hot_lead(lead_repo, organization_id)

        await service.record_interaction(
            organization_id, lead.id, InteractionCreate(occurred_at=NOW), lead_repo
        )

        assert lead.last_interaction_at == NOW

    @pytest.mark.asyncio
    async def test_interaction_defaults_to_now(
        self, service, lead_repo, organization_id
    ):
        lead = await _hot_lead(lead_repo, organization_id)
        before = datetime.now(timezone.utc)

        await service.record_interaction(
            organization_id, lead.id, InteractionCreate(), lead_repo
        )

        assert lead.last_interaction_at >= before


class TestTemperatureSummary:
    @pytest.mark.asyncio
    async def test_every_temperature_is_listed(
        self, service, lead_repo, organization_id
    ):
        await _hot_lead(lead_repo, organization_id)
        await _hot_lead(lead_repo, organization_id)
        await lead_repo.create(
            organization_id=organization_id, name="Lead", phone="+5511977776666"
        )

        summary = await service.temperature_summary(organization_id, lead_repo)

        assert summary["total"] == 3
        assert summary["counts"] == {
            "novo": 1,
            "quente": 2,
            "morno": 0,
            "frio": 0,
            "perdido": 0,
        }
