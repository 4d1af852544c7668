"""Tri-state health evaluation for vendor status pages."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence

import httpx

from ..monitoring.metrics import record_vendor_check
from ..normalization.mapper import ABSENT, extract, stringify
from ..schemas.records import Vendor, VendorStatus, VendorStatusOption, VendorStatusType
from ..utils.config import get_settings
from ..utils.logging import setup_logger


class VendorStatusEvaluator:
    """
    Decide whether a vendor is Operational, Degraded or in Outage.

    Checks run in this order and the first match wins:

    1. Manual vendors are always Operational.
    2. A JSON check that cannot be performed or read (incomplete settings,
       unusable URL, transport failure, non-2xx, unparseable body, missing
       path) is Degraded.
    3. A readable value equal to the expected value is Operational.
    4. A readable value that differs is an Outage.

    Nothing is persisted between calls.
    """

    logger = setup_logger(__name__, context={"integration": "vendor-status"})

    def __init__(
        self,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._timeout = timeout if timeout is not None else settings.vendor_check_timeout_seconds
        self._user_agent = user_agent or settings.user_agent
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        client_kwargs: dict[str, object] = {
            "timeout": self._timeout,
            "headers": {"User-Agent": self._user_agent, "Accept": "application/json"},
            "follow_redirects": True,
        }
        if self._transport is not None:
            client_kwargs["transport"] = self._transport
        return httpx.AsyncClient(**client_kwargs)  # type: ignore[arg-type]

    async def evaluate(
        self,
        vendor: Vendor,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> VendorStatus:
        """Evaluate a single vendor."""

        if client is None:
            async with self._client() as owned_client:
                status = await self._determine(vendor, owned_client)
        else:
            status = await self._determine(vendor, client)

        record_vendor_check(status.value)
        return VendorStatus(id=vendor.id, name=vendor.name, url=vendor.url, status=status)

    async def evaluate_all(self, vendors: Sequence[Vendor]) -> list[VendorStatus]:
        """Evaluate every vendor concurrently; results follow input order."""

        if not vendors:
            return []
        async with self._client() as client:
            return list(
                await asyncio.gather(*(self.evaluate(vendor, client=client) for vendor in vendors))
            )

    async def _determine(self, vendor: Vendor, client: httpx.AsyncClient) -> VendorStatusOption:
        if vendor.status_type is VendorStatusType.MANUAL:
            return VendorStatusOption.OPERATIONAL

        context = {"entity_type": "vendor", "entity_id": vendor.id}
        if not (vendor.api_url and vendor.json_path and vendor.expected_value is not None):
            self.logger.warning(
                "Vendor %s has an incomplete JSON check configuration",
                vendor.name,
                extra={**context, "status": "degraded"},
            )
            return VendorStatusOption.DEGRADED

        try:
            response = await client.get(vendor.api_url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            # Stored endpoints may predate URL validation.
            self.logger.warning(
                "Failed to fetch status for %s: %s",
                vendor.name,
                exc.__class__.__name__,
                extra={**context, "status": "degraded"},
            )
            return VendorStatusOption.DEGRADED

        if not response.is_success:
            self.logger.warning(
                "Status endpoint for %s returned HTTP %s",
                vendor.name,
                response.status_code,
                extra={**context, "status": "degraded"},
            )
            return VendorStatusOption.DEGRADED

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            self.logger.warning(
                "Status endpoint for %s returned a non-JSON body",
                vendor.name,
                extra={**context, "status": "degraded"},
            )
            return VendorStatusOption.DEGRADED

        value = extract(body, vendor.json_path)
        if value is ABSENT:
            self.logger.warning(
                "Path '%s' not found in status for %s",
                vendor.json_path,
                vendor.name,
                extra={**context, "status": "degraded"},
            )
            return VendorStatusOption.DEGRADED

        if stringify(value) == vendor.expected_value:
            return VendorStatusOption.OPERATIONAL
        return VendorStatusOption.OUTAGE
