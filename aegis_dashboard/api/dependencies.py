"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends

from ..integrations.gateway import IntegrationGateway
from ..integrations.vendor_status import VendorStatusEvaluator
from ..store.entity_store import EntityStore

_STORE: EntityStore | None = None


def get_entity_store() -> EntityStore:
    """Return the process-wide entity store bound to the configured database."""

    global _STORE
    if _STORE is None:
        _STORE = EntityStore()
    return _STORE


def reset_entity_store() -> None:
    """Drop the cached store (useful for testing)."""

    global _STORE
    _STORE = None


def get_gateway(store: EntityStore = Depends(get_entity_store)) -> IntegrationGateway:
    """Gateway reading credentials from the process environment."""

    return IntegrationGateway(store)


def get_vendor_evaluator() -> VendorStatusEvaluator:
    return VendorStatusEvaluator()
