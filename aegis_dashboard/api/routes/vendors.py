"""Vendor CRUD and live vendor status endpoints."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ...exceptions import NotFoundError
from ...integrations.vendor_status import VendorStatusEvaluator
from ...schemas.integrations import normalize_url
from ...schemas.records import Vendor, VendorStatusType
from ...store.entities import VENDORS
from ...store.entity_store import EntityStore
from ..dependencies import get_entity_store, get_vendor_evaluator
from ..responses import ok

router = APIRouter()


class VendorInput(BaseModel):
    """Body accepted when creating or replacing a vendor."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    status_type: VendorStatusType
    api_url: str | None = None
    json_path: str | None = None
    expected_value: str | None = None

    @field_validator("api_url", mode="before")
    @classmethod
    def _check_api_url(cls, value: Any) -> Any:
        if value is None:
            return None
        return normalize_url(value) or None

    def to_vendor(self, vendor_id: str) -> Vendor:
        return Vendor.model_validate({"id": vendor_id, **self.model_dump(by_alias=True)})


@router.get("")
async def list_vendors(store: EntityStore = Depends(get_entity_store)) -> dict[str, Any]:
    await store.ensure_seed(VENDORS)
    return ok(await store.list(VENDORS))


@router.post("")
async def create_vendor(
    body: VendorInput,
    store: EntityStore = Depends(get_entity_store),
) -> dict[str, Any]:
    vendor = body.to_vendor(str(uuid4()))
    return ok(await store.create(VENDORS, vendor))


@router.get("/status")
async def vendor_statuses(
    store: EntityStore = Depends(get_entity_store),
    evaluator: VendorStatusEvaluator = Depends(get_vendor_evaluator),
) -> dict[str, Any]:
    """Evaluate every stored vendor's health."""

    await store.ensure_seed(VENDORS)
    vendors = await store.list(VENDORS)
    return ok(await evaluator.evaluate_all(vendors))


@router.put("/{vendor_id}")
async def replace_vendor(
    vendor_id: str,
    body: VendorInput,
    store: EntityStore = Depends(get_entity_store),
) -> dict[str, Any]:
    replacement = body.to_vendor(vendor_id)
    updated = await store.mutate(VENDORS, vendor_id, lambda _current: replacement)
    return ok(updated)


@router.delete("/{vendor_id}")
async def delete_vendor(
    vendor_id: str,
    store: EntityStore = Depends(get_entity_store),
) -> dict[str, Any]:
    if not await store.delete(VENDORS, vendor_id):
        raise NotFoundError(VENDORS.name, vendor_id)
    return ok({"id": vendor_id, "deleted": True})
