"""Health check endpoint."""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ...models.base import session_scope
from ...utils.logging import setup_logger

logger = setup_logger(__name__, context={"integration": "health"})
router = APIRouter()


def _check_database() -> dict[str, Any]:
    try:
        with session_scope() as session:
            session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc, extra={"status": "error"})
        return {"status": "error", "message": exc.__class__.__name__}
    return {"status": "ok"}


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint including entity store connectivity."""

    database = await asyncio.to_thread(_check_database)
    return {
        "status": "healthy" if database["status"] == "ok" else "unhealthy",
        "service": "aegis_dashboard",
        "database": database,
    }
