"""Per-record-type field rules: how each canonical field is coerced and defaulted."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from ..schemas.records import (
    AlertSeverity,
    ImpactLevel,
    MonitoringAlert,
    Outage,
    ServiceNowTicket,
    TicketStatus,
)
from .mapper import as_bool, as_enum, as_text, as_timestamp

R = TypeVar("R", bound=BaseModel)

EPOCH_INSTANT = "1970-01-01T00:00:00.000Z"


@dataclass(frozen=True)
class FieldRule:
    """Coercion for one canonical field plus the value used when it is absent."""

    coerce: Callable[[Any], Any]
    default: Any = None
    default_factory: Callable[[], Any] | None = None

    def resolve_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default


@dataclass(frozen=True)
class RecordSchema(Generic[R]):
    """Field rules for one canonical record type.

    ``fixed_paths`` locate fields that are not part of the operator's field
    mapping, such as the upstream native identifier.
    """

    model: type[R]
    fields: Mapping[str, FieldRule]
    fixed_paths: Mapping[str, str] = field(default_factory=dict)


_SEVERITY = as_enum(
    AlertSeverity,
    aliases={"2": AlertSeverity.CRITICAL, "3": AlertSeverity.WARNING, "1": AlertSeverity.INFO},
)

# ServiceNow incident state codes, for instances queried without display values.
_TICKET_STATUS = as_enum(
    TicketStatus,
    aliases={
        "1": TicketStatus.NEW,
        "2": TicketStatus.IN_PROGRESS,
        "3": TicketStatus.ON_HOLD,
        "6": TicketStatus.RESOLVED,
        "work in progress": TicketStatus.IN_PROGRESS,
        "pending": TicketStatus.ON_HOLD,
    },
)

OUTAGE_SCHEMA: RecordSchema[Outage] = RecordSchema(
    model=Outage,
    fields={
        "id": FieldRule(as_text, default="N/A"),
        "systemName": FieldRule(as_text, default="Unknown System"),
        "impactLevel": FieldRule(as_enum(ImpactLevel), default=ImpactLevel.DEGRADED),
        "startTime": FieldRule(as_timestamp, default=EPOCH_INSTANT),
        "eta": FieldRule(as_timestamp, default=EPOCH_INSTANT),
        "description": FieldRule(as_text, default="No description provided."),
        "teamsBridgeUrl": FieldRule(as_text, default=None),
    },
    fixed_paths={"id": "sys_id"},
)

TICKET_SCHEMA: RecordSchema[ServiceNowTicket] = RecordSchema(
    model=ServiceNowTicket,
    fields={
        "id": FieldRule(as_text, default="N/A"),
        "summary": FieldRule(as_text, default="No summary"),
        "affectedCI": FieldRule(as_text, default="N/A"),
        "status": FieldRule(_TICKET_STATUS, default=TicketStatus.NEW),
        "assignedTeam": FieldRule(as_text, default="Unassigned"),
        "ticketUrl": FieldRule(as_text, default=""),
    },
)

ALERT_SCHEMA: RecordSchema[MonitoringAlert] = RecordSchema(
    model=MonitoringAlert,
    fields={
        "id": FieldRule(as_text, default="N/A"),
        "type": FieldRule(as_text, default="Unknown Alert"),
        "affectedSystem": FieldRule(as_text, default="N/A"),
        "timestamp": FieldRule(as_timestamp, default=EPOCH_INSTANT),
        "severity": FieldRule(_SEVERITY, default=AlertSeverity.INFO),
        "validated": FieldRule(as_bool, default=False),
    },
)

__all__ = [
    "ALERT_SCHEMA",
    "EPOCH_INSTANT",
    "FieldRule",
    "OUTAGE_SCHEMA",
    "RecordSchema",
    "TICKET_SCHEMA",
]
