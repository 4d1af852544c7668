"""Canonical dashboard record types produced from local storage and integrations."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .integrations import normalize_url


class ImpactLevel(str, Enum):
    """Outage impact levels."""

    SEV1 = "SEV1"
    SEV2 = "SEV2"
    SEV3 = "SEV3"
    DEGRADED = "Degraded"


class VendorStatusOption(str, Enum):
    """Tri-state vendor health."""

    OPERATIONAL = "Operational"
    DEGRADED = "Degraded"
    OUTAGE = "Outage"


class AlertSeverity(str, Enum):
    """Monitoring alert severities."""

    CRITICAL = "Critical"
    WARNING = "Warning"
    INFO = "Info"


class TicketStatus(str, Enum):
    """Ticket workflow states surfaced on the dashboard."""

    NEW = "New"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    RESOLVED = "Resolved"


class VendorStatusType(str, Enum):
    """How a vendor's health is determined."""

    API_JSON = "API_JSON"
    MANUAL = "MANUAL"


class CanonicalRecord(BaseModel):
    """Base model serializing attributes under their camelCase dashboard names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    id: str

    def to_api(self) -> dict[str, object]:
        """Return the JSON-ready representation used by the API and storage."""

        return self.model_dump(mode="json", by_alias=True)


class Outage(CanonicalRecord):
    system_name: str
    impact_level: ImpactLevel
    start_time: str = Field(..., description="ISO-8601 UTC instant")
    eta: str = Field(..., description="ISO-8601 UTC instant")
    teams_bridge_url: str | None = None
    description: str


class MonitoringAlert(CanonicalRecord):
    type: str
    affected_system: str
    timestamp: str = Field(..., description="ISO-8601 UTC instant")
    severity: AlertSeverity
    validated: bool


class ServiceNowTicket(CanonicalRecord):
    summary: str
    affected_ci: str = Field(..., alias="affectedCI")
    status: TicketStatus
    assigned_team: str
    ticket_url: str


class Vendor(CanonicalRecord):
    """Vendor whose status page the dashboard tracks."""

    name: str
    url: str
    status_type: VendorStatusType = VendorStatusType.MANUAL
    api_url: str | None = None
    json_path: str | None = None
    expected_value: str | None = None

    @field_validator("api_url", mode="before")
    @classmethod
    def _normalize_api_url(cls, value: Any) -> Any:
        if value is None:
            return None
        return normalize_url(value) or None

    @model_validator(mode="after")
    def _require_check_settings(self) -> Vendor:
        if self.status_type is VendorStatusType.API_JSON:
            missing = [
                alias
                for alias, value in (
                    ("apiUrl", self.api_url),
                    ("jsonPath", self.json_path),
                    ("expectedValue", self.expected_value),
                )
                if not value
            ]
            if missing:
                raise ValueError(
                    f"API_JSON vendors require {', '.join(missing)} to be set"
                )
        return self


class VendorStatus(CanonicalRecord):
    name: str
    status: VendorStatusOption
    url: str


class CollaborationBridge(CanonicalRecord):
    """Active incident bridge call."""

    title: str
    participants: int = Field(default=0, ge=0)
    duration: str = "0m"
    is_high_severity: bool = False
    teams_call_url: str
