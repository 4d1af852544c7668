"""SolarWinds configuration and monitoring alert endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...integrations.gateway import IntegrationGateway
from ...schemas.integrations import SINGLETON_ID, SolarWindsConfig
from ...store.entities import SOLARWINDS_CONFIG
from ...store.entity_store import EntityStore
from ..dependencies import get_entity_store, get_gateway
from ..responses import ok

router = APIRouter()


@router.get("/solarwinds/config")
async def get_config(store: EntityStore = Depends(get_entity_store)) -> dict[str, Any]:
    return ok(await store.get_singleton(SOLARWINDS_CONFIG))


@router.post("/solarwinds/config")
async def save_config(
    body: SolarWindsConfig,
    store: EntityStore = Depends(get_entity_store),
) -> dict[str, Any]:
    config = body.model_copy(update={"id": SINGLETON_ID})
    return ok(await store.save_singleton(SOLARWINDS_CONFIG, config))


@router.get("/monitoring/alerts")
async def list_alerts(gateway: IntegrationGateway = Depends(get_gateway)) -> dict[str, Any]:
    return ok(await gateway.fetch_alerts())
