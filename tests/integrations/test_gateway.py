"""Tests for configuration-gated integration reads using HTTPX MockTransport."""

from __future__ import annotations

import base64
import json
from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

from aegis_dashboard.exceptions import (
    MalformedUpstreamDataError,
    MissingCredentialsError,
    NotConfiguredError,
    UpstreamError,
)
from aegis_dashboard.integrations.gateway import IntegrationGateway
from aegis_dashboard.schemas.integrations import ServiceNowConfig, SolarWindsConfig
from aegis_dashboard.schemas.records import AlertSeverity, ImpactLevel, TicketStatus
from aegis_dashboard.store.entities import SERVICENOW_CONFIG, SOLARWINDS_CONFIG
from aegis_dashboard.store.entity_store import EntityStore

INSTANCE_URL = "https://acme.service-now.com"
SOLARWINDS_URL = "https://orion.acme.test:17778"
CREDENTIALS = {
    "SERVICENOW_USERNAME": "svc-dashboard",
    "SERVICENOW_PASSWORD": "s3cret",
    "SOLARWINDS_USERNAME": "orion-reader",
    "SOLARWINDS_PASSWORD": "0rion",
}


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it served."""

    def __init__(self, status_code: int = 200, data: Any = None) -> None:
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            content = json.dumps(data).encode("utf-8") if isinstance(data, (dict, list)) else data
            return httpx.Response(
                status_code,
                headers={"content-type": "application/json"},
                content=content or b"",
                request=request,
            )

        super().__init__(handler)


async def enable_servicenow(store: EntityStore, **overrides: Any) -> None:
    config = ServiceNowConfig(enabled=True, instance_url=INSTANCE_URL, **overrides)
    await store.save_singleton(SERVICENOW_CONFIG, config)


async def enable_solarwinds(store: EntityStore) -> None:
    await store.save_singleton(SOLARWINDS_CONFIG, SolarWindsConfig(enabled=True, api_url=SOLARWINDS_URL))


def make_gateway(
    store: EntityStore,
    transport: httpx.MockTransport,
    env: dict[str, str] | None = None,
) -> IntegrationGateway:
    return IntegrationGateway(
        store,
        env=CREDENTIALS if env is None else env,
        transport=transport,
        timeout=2,
    )


@pytest.mark.asyncio
async def test_disabled_integration_is_not_configured_without_network(store: EntityStore) -> None:
    """Default (disabled) configuration never reaches the network."""

    transport = RecordingTransport(200, {"result": []})
    gateway = make_gateway(store, transport)

    for read in (
        gateway.fetch_active_outages,
        gateway.fetch_outage_history,
        gateway.fetch_tickets,
        gateway.fetch_alerts,
    ):
        with pytest.raises(NotConfiguredError):
            await read()

    assert transport.requests == []


@pytest.mark.asyncio
async def test_enabled_without_url_is_not_configured(store: EntityStore) -> None:
    await store.save_singleton(SERVICENOW_CONFIG, ServiceNowConfig(enabled=True))
    transport = RecordingTransport(200, {"result": []})

    with pytest.raises(NotConfiguredError) as exc_info:
        await make_gateway(store, transport).fetch_active_outages()

    assert exc_info.value.integration == "ServiceNow"
    assert transport.requests == []


@pytest.mark.asyncio
async def test_missing_credentials_names_only_the_variables(store: EntityStore) -> None:
    await enable_servicenow(store)
    transport = RecordingTransport(200, {"result": []})
    env = {"SERVICENOW_USERNAME": "svc-dashboard"}

    with pytest.raises(MissingCredentialsError) as exc_info:
        await make_gateway(store, transport, env=env).fetch_active_outages()

    assert exc_info.value.missing_vars == ["SERVICENOW_PASSWORD"]
    assert "svc-dashboard" not in str(exc_info.value)
    assert transport.requests == []


@pytest.mark.asyncio
async def test_credentials_resolve_through_configured_variable_names(store: EntityStore) -> None:
    await enable_servicenow(store, username_var="SN_USER", password_var="SN_PASS")
    transport = RecordingTransport(200, {"result": []})
    env = {"SN_USER": "renamed", "SN_PASS": "binding"}

    assert await make_gateway(store, transport, env=env).fetch_active_outages() == []

    expected = base64.b64encode(b"renamed:binding").decode()
    assert transport.requests[0].headers["authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
async def test_active_outages_request_and_mapping(store: EntityStore) -> None:
    await enable_servicenow(store)
    transport = RecordingTransport(
        200,
        {
            "result": [
                {
                    "sys_id": "a1",
                    "cmdb_ci.name": "Payroll",
                    "u_impact_level": "SEV2",
                    "begin": "2024-03-01 10:15:00",
                    "end": "2024-03-01 12:00:00",
                    "short_description": "Batch delays",
                    "u_teams_bridge_url": "",
                },
                {"sys_id": "a2"},
            ]
        },
    )

    outages = await make_gateway(store, transport).fetch_active_outages()

    request = transport.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/api/now/table/cmdb_ci_outage"
    assert request.headers["accept"] == "application/json"
    assert request.url.params["sysparm_query"] == "end>javascript:gs.now()^ORendISEMPTY"
    assert request.url.params["sysparm_display_value"] == "true"
    assert request.url.params["sysparm_fields"] == (
        "sys_id,cmdb_ci.name,u_impact_level,begin,end,short_description,u_teams_bridge_url"
    )

    assert [outage.id for outage in outages] == ["a1", "a2"]
    assert outages[0].impact_level is ImpactLevel.SEV2
    assert outages[0].eta == "2024-03-01T12:00:00.000Z"
    assert outages[0].teams_bridge_url is None
    assert outages[1].system_name == "Unknown System"


@pytest.mark.asyncio
async def test_outage_history_queries_trailing_window(store: EntityStore) -> None:
    await enable_servicenow(store)
    transport = RecordingTransport(200, {"result": []})
    now = datetime(2024, 3, 8, 9, 30, tzinfo=timezone.utc)

    await make_gateway(store, transport).fetch_outage_history(now=now)

    assert transport.requests[0].url.params["sysparm_query"] == "end>=2024-03-01 09:30:00"


@pytest.mark.asyncio
async def test_tickets_query_limit_and_ticket_url(store: EntityStore) -> None:
    await enable_servicenow(store)
    transport = RecordingTransport(
        200,
        {
            "result": [
                {
                    "sys_id": "f00d",
                    "number": "INC001",
                    "short_description": "VPN down",
                    "cmdb_ci.name": "VPN",
                    "state": "On Hold",
                    "assignment_group.name": "Network",
                }
            ]
        },
    )

    tickets = await make_gateway(store, transport).fetch_tickets()

    params = transport.requests[0].url.params
    assert transport.requests[0].url.path == "/api/now/table/incident"
    assert params["sysparm_query"] == "stateNOT IN 6,7,8^ORDERBYDESCsys_updated_on^priority=1"
    assert params["sysparm_limit"] == "20"
    assert params["sysparm_fields"].startswith("sys_id,number,")

    ticket = tickets[0]
    assert ticket.id == "INC001"
    assert ticket.status is TicketStatus.ON_HOLD
    assert ticket.assigned_team == "Network"
    assert ticket.ticket_url == f"{INSTANCE_URL}/nav_to.do?uri=incident.do?sys_id=f00d"


@pytest.mark.asyncio
async def test_alerts_post_query_and_mapping(store: EntityStore) -> None:
    await enable_solarwinds(store)
    transport = RecordingTransport(
        200,
        {
            "results": [
                {
                    "AlertObjectID": 501,
                    "EntityCaption": "High CPU",
                    "EntityDetailsUrl": "/Orion/NetPerfMon/NodeDetails.aspx?NetObject=N:1",
                    "TriggerTimeStamp": "2024-03-01T10:15:00.000Z",
                    "Severity": 2,
                    "Acknowledged": False,
                }
            ]
        },
    )

    alerts = await make_gateway(store, transport).fetch_alerts()

    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == f"{SOLARWINDS_URL}/SolarWinds/InformationService/v3/Json/Query"
    assert "Orion.AlertActive" in json.loads(request.content)["query"]

    assert alerts[0].id == "501"
    assert alerts[0].severity is AlertSeverity.CRITICAL
    assert alerts[0].timestamp == "2024-03-01T10:15:00.000Z"


@pytest.mark.asyncio
async def test_non_success_status_raises_upstream_error(store: EntityStore) -> None:
    await enable_servicenow(store)
    transport = RecordingTransport(401, {"error": {"message": "User Not Authenticated"}})

    with pytest.raises(UpstreamError) as exc_info:
        await make_gateway(store, transport).fetch_tickets()

    assert exc_info.value.status == 401
    assert exc_info.value.as_dict()["status"] == 401
    assert "s3cret" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_failure_raises_upstream_error_without_status(store: EntityStore) -> None:
    await enable_servicenow(store)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(UpstreamError) as exc_info:
        await make_gateway(store, httpx.MockTransport(handler)).fetch_active_outages()

    assert exc_info.value.status is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_non_json_body_raises_malformed_data(store: EntityStore) -> None:
    await enable_servicenow(store)
    transport = RecordingTransport(200, b"<html>login</html>")

    with pytest.raises(MalformedUpstreamDataError):
        await make_gateway(store, transport).fetch_active_outages()


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"result": {"not": "a list"}}, {"rows": []}, [1, 2, 3]])
async def test_unexpected_shape_degrades_to_empty(store: EntityStore, body: Any) -> None:
    await enable_servicenow(store)
    transport = RecordingTransport(200, body)

    assert await make_gateway(store, transport).fetch_active_outages() == []


@pytest.mark.asyncio
async def test_ticket_without_sys_id_links_to_empty_id(store: EntityStore) -> None:
    await enable_servicenow(store)
    transport = RecordingTransport(200, {"result": [{"number": "INC002"}]})

    tickets = await make_gateway(store, transport).fetch_tickets()

    assert tickets[0].ticket_url == f"{INSTANCE_URL}/nav_to.do?uri=incident.do?sys_id="
    assert tickets[0].status is TicketStatus.NEW
