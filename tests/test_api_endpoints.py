from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from leadflow.api.deps import (
    get_appointment_service,
    get_lead_repo,
    get_transition_engine,
    get_transition_rule_service,
)
from leadflow.core.rate_limit import limiter
from leadflow.main import app
from leadflow.services.appointment_service import AppointmentService
from leadflow.services.appointment_sync import AppointmentSynchronizer
from leadflow.services.rule_service import TransitionRuleService
from leadflow.services.transition_engine import TransitionRunResult

RULE_BODY = {
    "name": "Quente parado",
    "trigger_event": "inactivity_timer",
    "from_temperature": "quente",
    "timer_minutes": 60,
    "actions": [
        {"kind": "set_temperature", "temperature": "frio"},
        {"kind": "clear_substatus"},
    ],
}


@pytest.fixture
def engine_returning():
    def _build(result: TransitionRunResult) -> MagicMock:
        engine = MagicMock()
        engine.run = AsyncMock(return_value=result)
        app.dependency_overrides[get_transition_engine] = lambda: engine
        return engine

    return _build


@pytest.fixture
def use_fake_rules(rule_repo):
    app.dependency_overrides[get_transition_rule_service] = (
        lambda: TransitionRuleService(rule_repo=rule_repo)
    )
    return rule_repo


@pytest.fixture
def use_fake_leads(lead_repo):
    app.dependency_overrides[get_lead_repo] = lambda: lead_repo
    return lead_repo


@pytest.fixture
def use_fake_appointments(lead_repo, appointment_repo, outbox_repo):
    service = AppointmentService(
        synchronizer=AppointmentSynchronizer(lead_repo, appointment_repo),
        appointment_repo=appointment_repo,
        lead_repo=lead_repo,
        outbox_repo=outbox_repo,
    )
    app.dependency_overrides[get_appointment_service] = lambda: service
    return service


class TestCORSMiddleware:
    @pytest.mark.asyncio
    async def test_cors_headers_on_preflight(self, async_client):
        response = await async_client.options(
            "/api/v1/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert "access-control-allow-origin" in response.headers

    @pytest.mark.asyncio
    async def test_configured_origin_is_echoed(self, async_client):
        response = await async_client.get(
            "/api/v1/health", headers={"Origin": "http://localhost:3000"}
        )
        assert response.status_code == 200
        assert (
            response.headers.get("access-control-allow-origin")
            == "http://localhost:3000"
        )


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, async_client):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestTransitionTrigger:
    @pytest.mark.asyncio
    async def test_successful_run_omits_errors(self, async_client, engine_returning):
        engine = engine_returning(
            TransitionRunResult(transitions_made=3, organizations_processed=1)
        )

        response = await async_client.post("/api/v1/transitions/run")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["transitions_made"] == 3
        assert "errors" not in body
        assert "timestamp" in body
        engine.run.assert_awaited_once_with(organization_id=None)

    @pytest.mark.asyncio
    async def test_failed_run_still_answers_200(self, async_client, engine_returning):
        engine_returning(
            TransitionRunResult(
                success=False, errors=["Transition rules could not be loaded"]
            )
        )

        response = await async_client.post("/api/v1/transitions/run")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["errors"] == ["Transition rules could not be loaded"]

    @pytest.mark.asyncio
    async def test_run_can_target_one_organization(
        self, async_client, engine_returning, organization_id
    ):
        engine = engine_returning(TransitionRunResult())

        response = await async_client.post(
            "/api/v1/transitions/run",
            json={"organization_id": str(organization_id)},
        )

        assert response.status_code == 200
        engine.run.assert_awaited_once_with(organization_id=organization_id)


    @pytest.mark.asyncio
    async def test_rate_limited_trigger_still_answers_200(
        self, async_client, engine_returning, monkeypatch
    ):
        engine = engine_returning(TransitionRunResult())
        monkeypatch.setattr(limiter, "enabled", True)
        limiter.reset()
        try:
            responses = [
                await async_client.post("/api/v1/transitions/run")
                for _ in range(31)
            ]
        finally:
            limiter.reset()

        assert {response.status_code for response in responses} == {200}
        last = responses[-1].json()
        assert last["success"] is False
        assert last["errors"][0].startswith("Rate limit exceeded")
        assert engine.run.await_count == 30


class TestTenantHeader:
    @pytest.mark.asyncio
    async def test_missing_header_is_a_validation_error(
        self, async_client, use_fake_rules
    ):
        response = await async_client.get("/api/v1/transition-rules")

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_malformed_header_is_a_validation_error(
        self, async_client, use_fake_rules
    ):
        response = await async_client.get(
            "/api/v1/transition-rules", headers={"X-Organization-ID": "not-a-uuid"}
        )

        assert response.status_code == 422


class TestTransitionRuleEndpoints:
    @pytest.mark.asyncio
    async def test_create_and_list(self, async_client, tenant_headers, use_fake_rules):
        created = await async_client.post(
            "/api/v1/transition-rules", json=RULE_BODY, headers=tenant_headers
        )
        listed = await async_client.get(
            "/api/v1/transition-rules", headers=tenant_headers
        )

        assert created.status_code == 201
        assert created.json()["priority"] == 0
        assert created.json()["actions"] == RULE_BODY["actions"]
        assert [rule["id"] for rule in listed.json()] == [created.json()["id"]]

    @pytest.mark.asyncio
    async def test_rules_are_tenant_scoped(
        self, async_client, tenant_headers, use_fake_rules
    ):
        await async_client.post(
            "/api/v1/transition-rules", json=RULE_BODY, headers=tenant_headers
        )

        response = await async_client.get(
            "/api/v1/transition-rules", headers={"X-Organization-ID": str(uuid4())}
        )

        assert response.json() == []

    @pytest.mark.asyncio
    async def test_conflicting_actions_are_rejected(
        self, async_client, tenant_headers, use_fake_rules
    ):
        body = dict(
            RULE_BODY,
            actions=[
                {"kind": "set_temperature", "temperature": "frio"},
                {"kind": "set_substatus", "substatus": "em_conversa"},
            ],
        )

        response = await async_client.post(
            "/api/v1/transition-rules", json=body, headers=tenant_headers
        )

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"
        assert response.json()["errors"]
        assert use_fake_rules.store.rules == {}

    @pytest.mark.asyncio
    async def test_unknown_action_kind_is_rejected(
        self, async_client, tenant_headers, use_fake_rules
    ):
        body = dict(RULE_BODY, actions=[{"kind": "send_email"}])

        response = await async_client.post(
            "/api/v1/transition-rules", json=body, headers=tenant_headers
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_reorder_with_foreign_rule_returns_422(
        self, async_client, tenant_headers, use_fake_rules
    ):
        created = await async_client.post(
            "/api/v1/transition-rules", json=RULE_BODY, headers=tenant_headers
        )

        response = await async_client.post(
            "/api/v1/transition-rules/reorder",
            json={"rule_ids": [created.json()["id"], str(uuid4())]},
            headers=tenant_headers,
        )

        assert response.status_code == 422
        assert response.json()["type"] == "invalid_transition_rule"

    @pytest.mark.asyncio
    async def test_patch_unknown_rule_returns_404(
        self, async_client, tenant_headers, use_fake_rules
    ):
        response = await async_client.patch(
            f"/api/v1/transition-rules/{uuid4()}",
            json={"active": False},
            headers=tenant_headers,
        )

        assert response.status_code == 404
        assert response.json()["type"] == "transition_rule_not_found"

    @pytest.mark.asyncio
    async def test_delete(self, async_client, tenant_headers, use_fake_rules):
        created = await async_client.post(
            "/api/v1/transition-rules", json=RULE_BODY, headers=tenant_headers
        )

        response = await async_client.delete(
            f"/api/v1/transition-rules/{created.json()['id']}", headers=tenant_headers
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert use_fake_rules.store.rules == {}

    @pytest.mark.asyncio
    async def test_dry_run(self, async_client, tenant_headers, use_fake_rules):
        created = await async_client.post(
            "/api/v1/transition-rules", json=RULE_BODY, headers=tenant_headers
        )

        response = await async_client.post(
            f"/api/v1/transition-rules/{created.json()['id']}/test",
            json={"temperature": "quente", "minutes_since_interaction": 61},
            headers=tenant_headers,
        )

        assert response.status_code == 200
        assert response.json()["matches"] is True


class TestLeadEndpoints:
    @pytest.mark.asyncio
    async def test_create_and_fetch(self, async_client, tenant_headers, use_fake_leads):
        created = await async_client.post(
            "/api/v1/leads",
            json={"name": "Ana", "phone": "+5511977776666"},
            headers=tenant_headers,
        )
        fetched = await async_client.get(
            f"/api/v1/leads/{created.json()['id']}", headers=tenant_headers
        )

        assert created.status_code == 201
        assert fetched.status_code == 200
        assert fetched.json()["temperature"] == "novo"
        assert fetched.json()["scheduled"] is False

    @pytest.mark.asyncio
    async def test_unknown_lead_returns_404(
        self, async_client, tenant_headers, use_fake_leads
    ):
        response = await async_client.get(
            f"/api/v1/leads/{uuid4()}", headers=tenant_headers
        )

        assert response.status_code == 404
        assert response.json()["type"] == "lead_not_found"

    @pytest.mark.asyncio
    async def test_substatus_on_cold_lead_returns_409(
        self, async_client, tenant_headers, use_fake_leads
    ):
        created = await async_client.post(
            "/api/v1/leads",
            json={"name": "Ana", "phone": "+5511977776666", "temperature": "frio"},
            headers=tenant_headers,
        )

        response = await async_client.put(
            f"/api/v1/leads/{created.json()['id']}/substatus",
            json={"hot_substatus": "em_conversa"},
            headers=tenant_headers,
        )

        assert response.status_code == 409
        assert response.json()["type"] == "invalid_temperature_state"

    @pytest.mark.asyncio
    async def test_temperature_summary(
        self, async_client, tenant_headers, use_fake_leads
    ):
        await async_client.post(
            "/api/v1/leads",
            json={"name": "Ana", "phone": "+5511977776666"},
            headers=tenant_headers,
        )

        response = await async_client.get(
            "/api/v1/leads/temperature-summary", headers=tenant_headers
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["counts"]["novo"] == 1
        assert response.json()["counts"]["morno"] == 0


class TestAppointmentEndpoints:
    @pytest.mark.asyncio
    async def test_create_reports_lead_scheduling(
        self, async_client, tenant_headers, organization_id, lead_repo, use_fake_appointments
    ):
        lead = await lead_repo.create(
            organization_id=organization_id, name="Ana", phone="+5511977776666"
        )

        response = await async_client.post(
            "/api/v1/appointments",
            json={
                "lead_id": str(lead.id),
                "appointment_date": "2025-03-20T14:00:00Z",
                "status": "confirmado",
            },
            headers=tenant_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["sync_status"] == "synced"
        assert body["appointment"]["status"] == "confirmado"
        assert body["appointment"]["canonical_status"] == "confirmed"
        assert body["appointment"]["status_class"] == "active"
        assert body["lead"] == {
            "id": str(lead.id),
            "scheduled": True,
            "appointment_date": "2025-03-20",
        }

    @pytest.mark.asyncio
    async def test_create_for_unknown_lead_returns_404(
        self, async_client, tenant_headers, use_fake_appointments
    ):
        response = await async_client.post(
            "/api/v1/appointments",
            json={"lead_id": str(uuid4()), "appointment_date": "2025-03-20T14:00:00Z"},
            headers=tenant_headers,
        )

        assert response.status_code == 404
        assert response.json()["type"] == "lead_not_found"

    @pytest.mark.asyncio
    async def test_delete_unknown_appointment_returns_404(
        self, async_client, tenant_headers, use_fake_appointments
    ):
        response = await async_client.delete(
            f"/api/v1/appointments/{uuid4()}", headers=tenant_headers
        )

        assert response.status_code == 404
        assert response.json()["type"] == "appointment_not_found"

    @pytest.mark.asyncio
    async def test_sync_retry_with_nothing_pending(
        self, async_client, use_fake_appointments
    ):
        response = await async_client.post("/api/v1/appointments/sync/retry")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "processed": 0,
            "succeeded": 0,
            "failed": 0,
        }
