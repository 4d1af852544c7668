"""Collaboration bridge CRUD endpoints."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...exceptions import NotFoundError
from ...schemas.records import CollaborationBridge
from ...store.entities import COLLABORATION_BRIDGES
from ...store.entity_store import EntityStore
from ..dependencies import get_entity_store
from ..responses import ok

router = APIRouter()


class BridgeInput(BaseModel):
    """Body accepted when creating or updating a bridge."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(..., min_length=1)
    teams_call_url: str = Field(..., min_length=1)
    participants: int = Field(..., ge=0)
    duration: str | None = None
    is_high_severity: bool | None = None


@router.get("")
async def list_bridges(store: EntityStore = Depends(get_entity_store)) -> dict[str, Any]:
    await store.ensure_seed(COLLABORATION_BRIDGES)
    return ok(await store.list(COLLABORATION_BRIDGES))


@router.post("")
async def create_bridge(
    body: BridgeInput,
    store: EntityStore = Depends(get_entity_store),
) -> dict[str, Any]:
    bridge = CollaborationBridge.model_validate(
        {"id": str(uuid4()), **body.model_dump(by_alias=True, exclude_none=True)}
    )
    return ok(await store.create(COLLABORATION_BRIDGES, bridge))


@router.put("/{bridge_id}")
async def update_bridge(
    bridge_id: str,
    body: BridgeInput,
    store: EntityStore = Depends(get_entity_store),
) -> dict[str, Any]:
    """Merge the supplied fields into the stored bridge."""

    changes = body.model_dump(by_alias=True, exclude_none=True)

    def _merge(current: CollaborationBridge) -> CollaborationBridge:
        return CollaborationBridge.model_validate({**current.to_api(), **changes, "id": bridge_id})

    return ok(await store.mutate(COLLABORATION_BRIDGES, bridge_id, _merge))


@router.delete("/{bridge_id}")
async def delete_bridge(
    bridge_id: str,
    store: EntityStore = Depends(get_entity_store),
) -> dict[str, Any]:
    if not await store.delete(COLLABORATION_BRIDGES, bridge_id):
        raise NotFoundError(COLLABORATION_BRIDGES.name, bridge_id)
    return ok({"id": bridge_id, "deleted": True})
