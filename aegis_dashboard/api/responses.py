"""Response envelope shared by every dashboard endpoint."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel


def _jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        return [_jsonable(item) for item in data]
    return data


def ok(data: Any) -> dict[str, Any]:
    """Wrap a successful result."""

    return {"success": True, "data": _jsonable(data)}


def error_response(
    status_code: int,
    message: str,
    *,
    error_type: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build the failure envelope; ``error_type`` lets clients branch on the cause."""

    content: dict[str, Any] = {"success": False, "error": message}
    if error_type is not None:
        content["errorType"] = error_type
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)
