"""Schemas package initialization."""
from .integrations import (
    SINGLETON_ID,
    ServiceNowConfig,
    ServiceNowFieldMapping,
    ServiceNowTicketFieldMapping,
    SolarWindsAlertFieldMapping,
    SolarWindsConfig,
)
from .records import (
    AlertSeverity,
    CollaborationBridge,
    ImpactLevel,
    MonitoringAlert,
    Outage,
    ServiceNowTicket,
    TicketStatus,
    Vendor,
    VendorStatus,
    VendorStatusOption,
    VendorStatusType,
)

__all__ = [
    "SINGLETON_ID",
    "ServiceNowConfig",
    "ServiceNowFieldMapping",
    "ServiceNowTicketFieldMapping",
    "SolarWindsAlertFieldMapping",
    "SolarWindsConfig",
    "AlertSeverity",
    "CollaborationBridge",
    "ImpactLevel",
    "MonitoringAlert",
    "Outage",
    "ServiceNowTicket",
    "TicketStatus",
    "Vendor",
    "VendorStatus",
    "VendorStatusOption",
    "VendorStatusType",
]
