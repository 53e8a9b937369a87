import os
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

# Must be set before leadflow.core.config builds its settings
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("TRANSITION_LOOP_ENABLED", "false")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from fakes import (  # noqa: E402
    FakeAppointmentRepository,
    FakeLeadRepository,
    FakeStore,
    FakeSyncOutboxRepository,
    FakeTransitionRuleRepository,
)
from leadflow.main import app  # noqa: E402


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def organization_id() -> UUID:
    return uuid4()


@pytest.fixture
def tenant_headers(organization_id) -> dict:
    return {"X-Organization-ID": str(organization_id)}


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock()
    redis.ping = AsyncMock()
    return redis


# ---------------------------------------------------------------------------
# In-memory repositories sharing one store
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def lead_repo(store) -> FakeLeadRepository:
    return FakeLeadRepository(store)


@pytest.fixture
def appointment_repo(store) -> FakeAppointmentRepository:
    return FakeAppointmentRepository(store)


@pytest.fixture
def outbox_repo(store) -> FakeSyncOutboxRepository:
    return FakeSyncOutboxRepository(store)


@pytest.fixture
def rule_repo(store) -> FakeTransitionRuleRepository:
    return FakeTransitionRuleRepository(store)
