"""Configuration-gated reads against the ticketing and monitoring integrations."""

from __future__ import annotations

import json
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel

from ..exceptions import (
    MalformedUpstreamDataError,
    MissingCredentialsError,
    NotConfiguredError,
    UpstreamError,
)
from ..monitoring.metrics import observe_upstream_duration, record_upstream_read
from ..normalization.mapper import ABSENT, extract, map_collection, stringify
from ..normalization.schemas import ALERT_SCHEMA, OUTAGE_SCHEMA, TICKET_SCHEMA, RecordSchema
from ..schemas.integrations import IntegrationConfig, ServiceNowConfig, SolarWindsConfig
from ..schemas.records import MonitoringAlert, Outage, ServiceNowTicket
from ..store.entities import SERVICENOW_CONFIG, SOLARWINDS_CONFIG, EntityType
from ..store.entity_store import EntityStore
from ..utils.config import get_settings
from ..utils.logging import log_upstream_read, setup_logger

C = TypeVar("C", bound=IntegrationConfig)
R = TypeVar("R", bound=BaseModel)

SERVICENOW = "ServiceNow"
SOLARWINDS = "SolarWinds"

ACTIVE_OUTAGE_QUERY = "end>javascript:gs.now()^ORendISEMPTY"
OPEN_TICKET_QUERY = "stateNOT IN 6,7,8^ORDERBYDESCsys_updated_on"


@dataclass(frozen=True)
class UpstreamRequest:
    """One HTTP call against an integration."""

    method: str
    url: str
    params: Mapping[str, str] = field(default_factory=dict)
    json_body: Any = None


@dataclass(frozen=True)
class IntegrationRead(Generic[C, R]):
    """Everything that differs between integration reads.

    The gate, the call and the mapping are shared; a read only supplies how to
    build the request from the stored configuration, where the rows live in
    the response body, and which field mapping and record schema apply.
    """

    integration: str
    operation: str
    config_type: EntityType[C]
    build_request: Callable[[C], UpstreamRequest]
    result_key: str
    field_mapping: Callable[[C], Mapping[str, str]]
    schema: RecordSchema[R]
    extra_for: Callable[[C], Callable[[Any], Mapping[str, Any]] | None] = lambda _config: None


def _servicenow_fields(mapping: Mapping[str, str]) -> str:
    paths = [path for path in mapping.values() if path]
    return ",".join(["sys_id", *dict.fromkeys(paths)])


def _table_url(config: ServiceNowConfig, table: str) -> str:
    return f"{config.instance_url}/api/now/table/{table}"


class IntegrationGateway:
    """
    Gate every external read behind configuration and credentials, then map.

    ``env`` is the ``name -> value`` lookup used to resolve the credential
    variable names stored in each integration's configuration. Values are
    only ever placed in the outgoing Authorization header.
    """

    logger = setup_logger(__name__, context={"integration": "gateway"})

    def __init__(
        self,
        store: EntityStore,
        *,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        history_days: int | None = None,
        ticket_limit: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        settings = get_settings()
        self._store = store
        self._env = env if env is not None else os.environ
        self._timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport
        self._history_days = history_days or settings.outage_history_days
        self._ticket_limit = ticket_limit or settings.ticket_limit
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # --------------------------------------------------------------- reads

    async def fetch_active_outages(self) -> list[Outage]:
        """Outages whose end is in the future or unset."""

        read: IntegrationRead[ServiceNowConfig, Outage] = IntegrationRead(
            integration=SERVICENOW,
            operation="active-outages",
            config_type=SERVICENOW_CONFIG,
            build_request=lambda config: UpstreamRequest(
                method="GET",
                url=_table_url(config, config.outage_table),
                params={
                    "sysparm_display_value": "true",
                    "sysparm_query": ACTIVE_OUTAGE_QUERY,
                    "sysparm_fields": _servicenow_fields(config.field_mapping.paths()),
                },
            ),
            result_key="result",
            field_mapping=lambda config: config.field_mapping.paths(),
            schema=OUTAGE_SCHEMA,
        )
        return await self.read(read)

    async def fetch_outage_history(self, now: datetime | None = None) -> list[Outage]:
        """Outages that ended within the configured history window."""

        reference = now or self._clock()
        since = (reference - timedelta(days=self._history_days)).strftime("%Y-%m-%d %H:%M:%S")

        read: IntegrationRead[ServiceNowConfig, Outage] = IntegrationRead(
            integration=SERVICENOW,
            operation="outage-history",
            config_type=SERVICENOW_CONFIG,
            build_request=lambda config: UpstreamRequest(
                method="GET",
                url=_table_url(config, config.outage_table),
                params={
                    "sysparm_display_value": "true",
                    "sysparm_query": f"end>={since}",
                    "sysparm_fields": _servicenow_fields(config.field_mapping.paths()),
                },
            ),
            result_key="result",
            field_mapping=lambda config: config.field_mapping.paths(),
            schema=OUTAGE_SCHEMA,
        )
        return await self.read(read)

    async def fetch_tickets(self) -> list[ServiceNowTicket]:
        """Open priority-1 tickets, most recently updated first."""

        def _request(config: ServiceNowConfig) -> UpstreamRequest:
            mapping = config.ticket_field_mapping
            return UpstreamRequest(
                method="GET",
                url=_table_url(config, config.ticket_table),
                params={
                    "sysparm_display_value": "true",
                    "sysparm_query": f"{OPEN_TICKET_QUERY}^{mapping.priority}=1",
                    "sysparm_limit": str(self._ticket_limit),
                    "sysparm_fields": _servicenow_fields(mapping.paths()),
                },
            )

        def _ticket_url(config: ServiceNowConfig) -> Callable[[Any], Mapping[str, Any]]:
            def _extra(item: Any) -> Mapping[str, Any]:
                raw_id = extract(item, "sys_id")
                sys_id = "" if raw_id is ABSENT or raw_id is None else stringify(raw_id)
                return {
                    "ticketUrl": (
                        f"{config.instance_url}/nav_to.do?uri="
                        f"{config.ticket_table}.do?sys_id={sys_id}"
                    )
                }

            return _extra

        read: IntegrationRead[ServiceNowConfig, ServiceNowTicket] = IntegrationRead(
            integration=SERVICENOW,
            operation="tickets",
            config_type=SERVICENOW_CONFIG,
            build_request=_request,
            result_key="result",
            field_mapping=lambda config: config.ticket_field_mapping.paths(),
            schema=TICKET_SCHEMA,
            extra_for=_ticket_url,
        )
        return await self.read(read)

    async def fetch_alerts(self) -> list[MonitoringAlert]:
        """Active monitoring alerts, newest first."""

        read: IntegrationRead[SolarWindsConfig, MonitoringAlert] = IntegrationRead(
            integration=SOLARWINDS,
            operation="alerts",
            config_type=SOLARWINDS_CONFIG,
            build_request=lambda config: UpstreamRequest(
                method="POST",
                url=f"{config.api_url}/SolarWinds/InformationService/v3/Json/Query",
                json_body={"query": config.alert_query},
            ),
            result_key="results",
            field_mapping=lambda config: config.alert_field_mapping.paths(),
            schema=ALERT_SCHEMA,
        )
        return await self.read(read)

    # --------------------------------------------------------------- core

    async def read(self, read: IntegrationRead[C, R]) -> list[R]:
        """Gate, call and map one integration read."""

        config = await self._store.get_singleton(read.config_type)
        try:
            credentials = self._resolve_credentials(read.integration, config)
        except NotConfiguredError:
            record_upstream_read(read.integration, read.operation, "not_configured")
            log_upstream_read(self.logger, read.integration, read.operation, 0, "not_configured")
            raise
        except MissingCredentialsError as exc:
            record_upstream_read(read.integration, read.operation, "missing_credentials")
            log_upstream_read(
                self.logger,
                read.integration,
                read.operation,
                0,
                "missing_credentials",
                missing_vars=exc.missing_vars,
            )
            raise

        request = read.build_request(config)
        body = await self._call(read, request, credentials)
        rows = self._rows(read, body)
        return map_collection(
            rows,
            read.field_mapping(config),
            read.schema,
            extra_for=read.extra_for(config),
        )

    def _resolve_credentials(self, integration: str, config: IntegrationConfig) -> tuple[str, str]:
        if not config.enabled or not config.base_url:
            raise NotConfiguredError(integration)

        username = self._env.get(config.username_var)
        password = self._env.get(config.password_var)
        missing = [
            name
            for name, value in ((config.username_var, username), (config.password_var, password))
            if not value
        ]
        if missing:
            raise MissingCredentialsError(integration, missing)
        return username, password  # type: ignore[return-value]

    async def _call(
        self,
        read: IntegrationRead[Any, Any],
        request: UpstreamRequest,
        credentials: tuple[str, str],
    ) -> Any:
        client_kwargs: dict[str, Any] = {"timeout": self._timeout}
        if self._transport is not None:
            client_kwargs["transport"] = self._transport

        request_kwargs: dict[str, Any] = {
            "headers": {"Accept": "application/json"},
            "params": dict(request.params),
            "auth": httpx.BasicAuth(*credentials),
        }
        if request.json_body is not None:
            request_kwargs["json"] = request.json_body

        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                response = await client.request(request.method, request.url, **request_kwargs)
        except httpx.TimeoutException as exc:
            self._finish(read, started, "timeout")
            raise UpstreamError(
                read.integration,
                f"{read.integration} request timed out after {self._timeout} seconds",
            ) from exc
        except httpx.HTTPError as exc:
            self._finish(read, started, "transport_error")
            raise UpstreamError(
                read.integration,
                f"Failed to reach {read.integration}: {exc.__class__.__name__}",
            ) from exc

        if not response.is_success:
            self._finish(read, started, "upstream_error", status_code=response.status_code)
            raise UpstreamError(
                read.integration,
                f"Failed to fetch {read.operation} from {read.integration}: "
                f"HTTP {response.status_code} {response.reason_phrase}".rstrip(),
                status=response.status_code,
            )

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._finish(read, started, "malformed", status_code=response.status_code)
            raise MalformedUpstreamDataError(
                read.integration,
                f"{read.integration} returned a response that is not valid JSON",
            ) from exc

        self._finish(read, started, "success", status_code=response.status_code)
        return body

    def _finish(
        self,
        read: IntegrationRead[Any, Any],
        started: float,
        outcome: str,
        **context: Any,
    ) -> None:
        elapsed = time.perf_counter() - started
        record_upstream_read(read.integration, read.operation, outcome)
        observe_upstream_duration(read.integration, elapsed)
        log_upstream_read(
            self.logger,
            read.integration,
            read.operation,
            int(elapsed * 1000),
            outcome,
            **context,
        )

    def _rows(self, read: IntegrationRead[Any, Any], body: Any) -> list[Any]:
        rows = body.get(read.result_key) if isinstance(body, Mapping) else None
        if not isinstance(rows, list):
            self.logger.warning(
                "Unexpected %s response shape for %s: expected '%s' to be a list",
                read.integration,
                read.operation,
                read.result_key,
                extra={"integration": read.integration, "status": "malformed"},
            )
            record_upstream_read(read.integration, read.operation, "unexpected_shape")
            return []
        return rows
