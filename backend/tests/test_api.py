"""
API Integration Tests for DebtDesk.

Runs the FastAPI app in-process with an in-memory repository.
"""

import pytest
from httpx import AsyncClient, ASGITransport

from debtdesk.api.dependencies import set_repository
from debtdesk.api.main import app
from debtdesk.core.retry import RetryPolicy
from debtdesk.services.repository import Repository
from debtdesk.storage import InMemoryRecordStore, InMemoryRemoteStoreClient


@pytest.fixture
def remote():
    return InMemoryRemoteStoreClient(tables={
        "portfolios": [{"id": "p1", "name": "Spring", "total_face_value": 1000}],
        "payments": [{"id": "x1", "case_id": "c1", "amount": 100, "status": "completed"}],
        "cases": [{"id": "c1", "portfolio_id": "p1", "status": "paid"}],
    })


@pytest.fixture
def api_repo(remote):
    repo = Repository(InMemoryRecordStore(), remote, retry_policy=RetryPolicy.none())
    set_repository(repo)
    yield repo
    set_repository(None)


@pytest.fixture
async def client(api_repo):
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/api/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True


class TestEntityEndpoints:
    """Tests for generic entity CRUD endpoints."""

    @pytest.mark.asyncio
    async def test_list_entity_definitions(self, client: AsyncClient):
        response = await client.get("/api/entities")
        assert response.status_code == 200
        names = {e["name"] for e in response.json()["entities"]}
        assert {"cases", "portfolios", "activity_logs"} <= names

    @pytest.mark.asyncio
    async def test_create_and_get_case(self, client: AsyncClient):
        response = await client.post(
            "/api/entities/cases",
            json={"debtor_name": "Jane Doe", "status": "new"},
            headers={"X-Actor": "collector1"},
        )
        assert response.status_code == 201
        case = response.json()
        assert case["id"].startswith("local_")
        assert case["created_by"] == "collector1"
        assert case["_source"] == "local"

        response = await client.get(f"/api/entities/cases/{case['id']}")
        assert response.status_code == 200
        assert response.json()["debtor_name"] == "Jane Doe"

        response = await client.get("/api/entities/activity_logs", params={"case_id": case["id"]})
        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_filter_with_repeated_keys(self, client: AsyncClient):
        await client.post("/api/entities/cases", json={"debtor_name": "A", "status": "new"})
        await client.post("/api/entities/cases", json={"debtor_name": "B", "status": "disputed"})

        response = await client.get(
            "/api/entities/cases?status=new&status=paid&order_by=status"
        )

        data = response.json()
        assert data["total"] == 2
        assert [r["status"] for r in data["records"]] == ["new", "paid"]

    @pytest.mark.asyncio
    async def test_filter_on_numeric_field(self, client: AsyncClient):
        response = await client.get("/api/entities/payments", params={"amount": "100"})
        assert response.json()["total"] == 1

        response = await client.get("/api/entities/payments?amount=5&amount=100.0")
        assert response.json()["total"] == 1

        response = await client.get("/api/entities/payments", params={"amount": "99"})
        assert response.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: AsyncClient):
        response = await client.patch("/api/entities/portfolios/p1", json={"client": "Acme"})
        assert response.status_code == 200
        assert response.json()["name"] == "Spring"
        assert response.json()["client"] == "Acme"

        response = await client.delete("/api/entities/portfolios/p1")
        assert response.status_code == 200
        response = await client.delete("/api/entities/portfolios/p1")
        assert response.status_code == 200

        response = await client.get("/api/entities/portfolios/p1")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "NotFound"

    @pytest.mark.asyncio
    async def test_bulk_create(self, client: AsyncClient):
        response = await client.post(
            "/api/entities/debtors/bulk",
            json={"rows": [{"name": "A"}, {"name": "B"}]},
        )
        assert response.status_code == 201
        assert response.json()["created"] == 2

    @pytest.mark.asyncio
    async def test_validation_error(self, client: AsyncClient):
        response = await client.post("/api/entities/portfolios", json={"client": "Acme"})
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_remote_outage_without_fallback(self, client: AsyncClient, api_repo, remote):
        remote.available = False

        response = await client.post("/api/entities/portfolios", json={"name": "Q3"})

        assert response.status_code == 503
        assert response.json()["error"] == "RemoteUnavailable"


class TestPortfolioEndpoints:
    """Tests for portfolio analytics endpoint."""

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient):
        response = await client.get("/api/portfolios/stats")
        assert response.status_code == 200
        [stats] = response.json()["portfolios"]
        assert stats["portfolio_id"] == "p1"
        assert stats["collection_rate"] == pytest.approx(10.0)
        assert stats["success_percent"] == pytest.approx(100.0)


class TestDashboardEndpoints:
    """Tests for the dashboard summary endpoint."""

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient):
        response = await client.get("/api/dashboard/stats")
        assert response.status_code == 200
        data = response.json()
        assert data["total_cases"] == 1
        assert data["total_portfolios"] == 1
        assert data["total_collected"] == pytest.approx(100.0)
        assert data["monthly_collection"] == 0.0
        assert data["active_cases"] == 0
