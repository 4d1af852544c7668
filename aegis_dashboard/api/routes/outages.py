"""Active outages, outage history, trends and CSV export."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query, Response

from ...integrations.gateway import IntegrationGateway
from ...reports import outage_trends, outages_to_csv, trends_to_records
from ..dependencies import get_gateway
from ..responses import ok

router = APIRouter()


@router.get("/active")
async def active_outages(gateway: IntegrationGateway = Depends(get_gateway)) -> dict[str, Any]:
    return ok(await gateway.fetch_active_outages())


@router.get("/history")
async def outage_history(gateway: IntegrationGateway = Depends(get_gateway)) -> dict[str, Any]:
    return ok(await gateway.fetch_outage_history())


@router.get("/history.csv")
async def outage_history_csv(gateway: IntegrationGateway = Depends(get_gateway)) -> Response:
    """Download outage history as a CSV attachment."""

    outages = await gateway.fetch_outage_history()
    filename = f"aegis-outage-history-{datetime.now(timezone.utc):%Y-%m-%d}.csv"
    return Response(
        content=outages_to_csv(outages),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/trends")
async def trends(
    breakdown: Literal["impact", "system"] = Query("impact"),
    days: int = Query(7, ge=1, le=90),
    gateway: IntegrationGateway = Depends(get_gateway),
) -> dict[str, Any]:
    """Daily outage counts over the trailing window."""

    outages = await gateway.fetch_outage_history()
    frame = outage_trends(outages, breakdown=breakdown, days=days)
    return ok(trends_to_records(frame))
