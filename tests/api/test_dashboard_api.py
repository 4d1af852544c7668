"""End-to-end tests for the dashboard HTTP surface driven through ASGITransport."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from aegis_dashboard.api.dependencies import get_entity_store, get_gateway, get_vendor_evaluator
from aegis_dashboard.api.main import app
from aegis_dashboard.integrations.gateway import IntegrationGateway
from aegis_dashboard.integrations.vendor_status import VendorStatusEvaluator
from aegis_dashboard.store.entity_store import EntityStore

CREDENTIALS = {"SERVICENOW_USERNAME": "svc", "SERVICENOW_PASSWORD": "pw"}


def servicenow_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/cmdb_ci_outage"):
        return httpx.Response(
            200,
            json={
                "result": [
                    {
                        "sys_id": "o-1",
                        "cmdb_ci.name": "Payroll, EU",
                        "u_impact_level": "SEV1",
                        "begin": "2024-03-01 10:15:00",
                        "end": "2024-03-01 11:00:00",
                        "short_description": "Jobs stuck",
                    }
                ]
            },
            request=request,
        )
    if request.url.path.endswith("/incident"):
        return httpx.Response(503, text="maintenance", request=request)
    return httpx.Response(404, request=request)


def vendor_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"status": {"indicator": "minor"}}, request=request)


@pytest.fixture
def wired_app(store: EntityStore) -> Iterator[None]:
    """Route every dependency through the test store and mock transports."""

    app.dependency_overrides[get_entity_store] = lambda: store
    app.dependency_overrides[get_gateway] = lambda: IntegrationGateway(
        store,
        env=CREDENTIALS,
        transport=httpx.MockTransport(servicenow_handler),
    )
    app.dependency_overrides[get_vendor_evaluator] = lambda: VendorStatusEvaluator(
        transport=httpx.MockTransport(vendor_handler)
    )
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(wired_app: None) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


async def enable_servicenow(client: AsyncClient) -> dict[str, Any]:
    response = await client.post(
        "/api/servicenow/config",
        json={"enabled": True, "instanceUrl": "https://acme.service-now.com/"},
    )
    assert response.status_code == 200
    return response.json()["data"]


@pytest.mark.asyncio
async def test_list_vendors_seeds_once(client: AsyncClient) -> None:
    first = await client.get("/api/vendors")
    second = await client.get("/api/vendors")

    assert first.status_code == 200
    body = first.json()
    assert body["success"] is True
    assert len(body["data"]) == 6
    assert second.json()["data"] == body["data"]


@pytest.mark.asyncio
async def test_vendor_crud_round(client: AsyncClient) -> None:
    created = await client.post(
        "/api/vendors",
        json={"name": "Okta", "url": "https://status.okta.com", "statusType": "MANUAL"},
    )
    assert created.status_code == 200
    vendor_id = created.json()["data"]["id"]

    replaced = await client.put(
        f"/api/vendors/{vendor_id}",
        json={"name": "Okta Inc", "url": "https://status.okta.com", "statusType": "MANUAL"},
    )
    assert replaced.json()["data"]["name"] == "Okta Inc"

    deleted = await client.delete(f"/api/vendors/{vendor_id}")
    assert deleted.json() == {"success": True, "data": {"id": vendor_id, "deleted": True}}

    again = await client.delete(f"/api/vendors/{vendor_id}")
    assert again.status_code == 404
    assert again.json()["success"] is False


@pytest.mark.asyncio
async def test_put_unknown_vendor_is_not_found(client: AsyncClient) -> None:
    response = await client.put(
        "/api/vendors/nope",
        json={"name": "Ghost", "url": "https://ghost.test", "statusType": "MANUAL"},
    )

    assert response.status_code == 404
    assert response.json()["errorType"] == "NotFoundError"


@pytest.mark.asyncio
async def test_api_json_vendor_without_check_settings_is_rejected(client: AsyncClient) -> None:
    response = await client.post(
        "/api/vendors",
        json={"name": "Half", "url": "https://half.test", "statusType": "API_JSON"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_vendor_with_unparseable_api_url_is_rejected(client: AsyncClient) -> None:
    response = await client.post(
        "/api/vendors",
        json={
            "name": "Broken",
            "url": "https://broken.test",
            "statusType": "API_JSON",
            "apiUrl": "http://[::1",
            "jsonPath": "status.indicator",
            "expectedValue": "none",
        },
    )

    assert response.status_code == 400
    assert response.json()["errorType"] == "ValidationError"
    assert len((await client.get("/api/vendors")).json()["data"]) == 6


@pytest.mark.asyncio
async def test_missing_required_fields_is_bad_request(client: AsyncClient) -> None:
    response = await client.post("/api/vendors", json={"name": "No URL"})

    assert response.status_code == 400
    assert response.json()["errorType"] == "ValidationError"


@pytest.mark.asyncio
async def test_vendor_statuses(client: AsyncClient) -> None:
    response = await client.get("/api/vendors/status")

    statuses = {item["name"]: item["status"] for item in response.json()["data"]}
    assert statuses["CrowdStrike"] == "Outage"
    assert statuses["Citrix"] == "Operational"


@pytest.mark.asyncio
async def test_bridge_update_merges_fields(client: AsyncClient) -> None:
    listed = await client.get("/api/collaboration/bridges")
    bridge = listed.json()["data"][0]

    response = await client.put(
        f"/api/collaboration/bridges/{bridge['id']}",
        json={"title": "SEV1: Gateway", "teamsCallUrl": "https://teams.test/1", "participants": 20},
    )

    updated = response.json()["data"]
    assert updated["participants"] == 20
    assert updated["duration"] == bridge["duration"]
    assert updated["isHighSeverity"] == bridge["isHighSeverity"]


@pytest.mark.asyncio
async def test_create_bridge_defaults(client: AsyncClient) -> None:
    response = await client.post(
        "/api/collaboration/bridges",
        json={"title": "War room", "teamsCallUrl": "https://teams.test/2", "participants": 2},
    )

    data = response.json()["data"]
    assert data["duration"] == "0m"
    assert data["isHighSeverity"] is False


@pytest.mark.asyncio
async def test_servicenow_config_defaults_and_save(client: AsyncClient) -> None:
    initial = (await client.get("/api/servicenow/config")).json()["data"]
    assert initial["enabled"] is False
    assert initial["fieldMapping"]["systemName"] == "cmdb_ci.name"

    saved = await enable_servicenow(client)
    assert saved["instanceUrl"] == "https://acme.service-now.com"

    invalid = await client.post("/api/servicenow/config", json={"instanceUrl": "ftp://nope"})
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_outages_not_configured_is_bad_request(client: AsyncClient) -> None:
    response = await client.get("/api/outages/active")

    assert response.status_code == 400
    assert response.json()["errorType"] == "NotConfiguredError"


@pytest.mark.asyncio
async def test_active_outages_after_configuration(client: AsyncClient) -> None:
    await enable_servicenow(client)

    response = await client.get("/api/outages/active")

    assert response.status_code == 200
    assert response.json()["data"][0]["systemName"] == "Payroll, EU"


@pytest.mark.asyncio
async def test_upstream_failure_is_bad_gateway(client: AsyncClient) -> None:
    await enable_servicenow(client)

    response = await client.get("/api/servicenow/tickets")

    assert response.status_code == 502
    assert response.json()["errorType"] == "UpstreamError"


@pytest.mark.asyncio
async def test_history_csv_and_trends(client: AsyncClient) -> None:
    await enable_servicenow(client)

    csv_response = await client.get("/api/outages/history.csv")
    assert csv_response.headers["content-type"].startswith("text/csv")
    lines = csv_response.text.strip().split("\n")
    assert lines[0] == "ID,System Name,Impact Level,Start Time,ETA,Description,Teams Bridge URL"
    assert lines[1].startswith('o-1,"Payroll, EU",SEV1,')

    trends = await client.get("/api/outages/trends", params={"breakdown": "system", "days": 3})
    rows = trends.json()["data"]
    assert len(rows) == 3
    assert set(rows[0]) == {"date", "Payroll, EU"}


@pytest.mark.asyncio
async def test_solarwinds_alerts_not_configured(client: AsyncClient) -> None:
    response = await client.get("/api/monitoring/alerts")

    assert response.status_code == 400
    assert response.json()["errorType"] == "NotConfiguredError"


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient) -> None:
    health = await client.get("/health")
    assert health.json()["status"] == "healthy"

    metrics = await client.get("/metrics")
    assert metrics.status_code == 200
    assert "upstream_reads_total" in metrics.text
