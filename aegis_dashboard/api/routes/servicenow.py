"""ServiceNow configuration and ticket endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...integrations.gateway import IntegrationGateway
from ...schemas.integrations import SINGLETON_ID, ServiceNowConfig
from ...store.entities import SERVICENOW_CONFIG
from ...store.entity_store import EntityStore
from ..dependencies import get_entity_store, get_gateway
from ..responses import ok

router = APIRouter()


@router.get("/config")
async def get_config(store: EntityStore = Depends(get_entity_store)) -> dict[str, Any]:
    return ok(await store.get_singleton(SERVICENOW_CONFIG))


@router.post("/config")
async def save_config(
    body: ServiceNowConfig,
    store: EntityStore = Depends(get_entity_store),
) -> dict[str, Any]:
    config = body.model_copy(update={"id": SINGLETON_ID})
    return ok(await store.save_singleton(SERVICENOW_CONFIG, config))


@router.get("/tickets")
async def list_tickets(gateway: IntegrationGateway = Depends(get_gateway)) -> dict[str, Any]:
    return ok(await gateway.fetch_tickets())
