"""Configuration singletons for the external integrations the dashboard reads from."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SINGLETON_ID = "global-config"

DEFAULT_ALERT_QUERY = (
    "SELECT AlertObjectID, EntityCaption, EntityDetailsUrl, TriggerTimeStamp, "
    "Acknowledged, Severity FROM Orion.AlertActive ORDER BY TriggerTimeStamp DESC"
)


def normalize_url(value: Any) -> Any:
    """Strip trailing slashes and require an absolute http(s) URL or the empty string."""

    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError("URL must be a string")
    value = value.strip().rstrip("/")
    if value == "":
        return value
    try:
        url = httpx.URL(value)
    except (TypeError, ValueError, httpx.InvalidURL) as exc:
        raise ValueError(f"Invalid URL: {exc}") from exc
    if url.scheme not in {"http", "https"} or not url.host:
        raise ValueError("URL must be an absolute http(s) URL")
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FieldMapping(_CamelModel):
    """Canonical field name -> dotted path into the upstream record."""

    def paths(self) -> dict[str, str]:
        """Return the mapping keyed by canonical (camelCase) field name."""

        return {
            key: value
            for key, value in self.model_dump(by_alias=True).items()
            if isinstance(value, str)
        }


class ServiceNowFieldMapping(FieldMapping):
    system_name: str = Field(default="cmdb_ci.name", min_length=1)
    impact_level: str = Field(default="u_impact_level", min_length=1)
    start_time: str = Field(default="begin", min_length=1)
    eta: str = Field(default="end", min_length=1)
    description: str = Field(default="short_description", min_length=1)
    teams_bridge_url: str = "u_teams_bridge_url"


class ServiceNowTicketFieldMapping(FieldMapping):
    id: str = Field(default="number", min_length=1)
    summary: str = Field(default="short_description", min_length=1)
    affected_ci: str = Field(default="cmdb_ci.name", min_length=1, alias="affectedCI")
    status: str = Field(default="state", min_length=1)
    assigned_team: str = Field(default="assignment_group.name", min_length=1)
    priority: str = Field(default="priority", min_length=1)


class SolarWindsAlertFieldMapping(FieldMapping):
    id: str = Field(default="AlertObjectID", min_length=1)
    type: str = Field(default="EntityCaption", min_length=1)
    affected_system: str = Field(default="EntityDetailsUrl", min_length=1)
    timestamp: str = Field(default="TriggerTimeStamp", min_length=1)
    severity: str = Field(default="Severity", min_length=1)
    validated: str = Field(default="Acknowledged", min_length=1)


class IntegrationConfig(_CamelModel):
    """Fields shared by every integration singleton.

    Only the *names* of the credential environment variables are stored; the
    values are resolved at read time and never persisted.
    """

    id: str = SINGLETON_ID
    enabled: bool = False
    username_var: str = Field(..., min_length=1)
    password_var: str = Field(..., min_length=1)

    @property
    def base_url(self) -> str:
        raise NotImplementedError


class ServiceNowConfig(IntegrationConfig):
    instance_url: str = ""
    username_var: str = Field(default="SERVICENOW_USERNAME", min_length=1)
    password_var: str = Field(default="SERVICENOW_PASSWORD", min_length=1)
    outage_table: str = Field(default="cmdb_ci_outage", min_length=1)
    field_mapping: ServiceNowFieldMapping = Field(default_factory=ServiceNowFieldMapping)
    ticket_table: str = Field(default="incident", min_length=1)
    ticket_field_mapping: ServiceNowTicketFieldMapping = Field(
        default_factory=ServiceNowTicketFieldMapping
    )

    @field_validator("instance_url", mode="before")
    @classmethod
    def _check_instance_url(cls, value: Any) -> Any:
        return normalize_url(value)

    @property
    def base_url(self) -> str:
        return self.instance_url


class SolarWindsConfig(IntegrationConfig):
    api_url: str = ""
    username_var: str = Field(default="SOLARWINDS_USERNAME", min_length=1)
    password_var: str = Field(default="SOLARWINDS_PASSWORD", min_length=1)
    alert_query: str = Field(default=DEFAULT_ALERT_QUERY, min_length=1)
    alert_field_mapping: SolarWindsAlertFieldMapping = Field(
        default_factory=SolarWindsAlertFieldMapping
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def _check_api_url(cls, value: Any) -> Any:
        return normalize_url(value)

    @property
    def base_url(self) -> str:
        return self.api_url
