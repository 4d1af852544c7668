"""Reads against external systems: ticketing, monitoring and vendor status pages."""
from .gateway import IntegrationGateway, IntegrationRead, UpstreamRequest
from .vendor_status import VendorStatusEvaluator

__all__ = [
    "IntegrationGateway",
    "IntegrationRead",
    "UpstreamRequest",
    "VendorStatusEvaluator",
]
