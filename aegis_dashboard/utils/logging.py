"""Structured logging for dashboard reads, checks and store operations."""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Final

from .config import get_settings

LOG_FORMAT: Final[str] = (
    "%(asctime)s | %(levelname)s | %(name)s | "
    "integration=%(integration)s | entity_type=%(entity_type)s | "
    "entity_id=%(entity_id)s | correlation_id=%(correlation_id)s | "
    "status=%(status)s | duration_ms=%(duration_ms)s | %(message)s"
)

CONTEXT_FIELDS: Final[tuple[str, ...]] = (
    "integration",
    "entity_type",
    "entity_id",
    "correlation_id",
    "status",
    "duration_ms",
)

DEFAULT_CONTEXT: Final[dict[str, str]] = dict.fromkeys(CONTEXT_FIELDS, "-")


class ContextualFormatter(logging.Formatter):
    """Formatter that tolerates records emitted without the structured fields."""

    def __init__(self, fmt: str, defaults: Mapping[str, str] | None = None) -> None:
        super().__init__(fmt)
        self._defaults = dict(defaults or {})

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        for key, value in self._defaults.items():
            record.__dict__.setdefault(key, value)
        return super().format(record)


class _ContextAdapter(logging.LoggerAdapter):
    # Per-call ``extra`` wins over the adapter's bound context.
    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


@lru_cache(maxsize=1)
def _install_root_handler() -> None:
    level = getattr(logging, get_settings().log_level.upper(), logging.INFO)
    formatter = ContextualFormatter(LOG_FORMAT, DEFAULT_CONTEXT)

    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        root.addHandler(logging.StreamHandler(sys.stdout))
    for handler in root.handlers:
        handler.setFormatter(formatter)


def setup_logger(name: str, *, context: Mapping[str, Any] | None = None) -> logging.LoggerAdapter:
    """Return a logger bound to ``context`` on top of the blank structured fields."""

    _install_root_handler()
    return _ContextAdapter(logging.getLogger(name), {**DEFAULT_CONTEXT, **(context or {})})


def log_upstream_read(
    logger: logging.Logger | logging.LoggerAdapter,
    integration: str,
    operation: str,
    duration_ms: int,
    status: str,
    **extra_context: Any,
) -> None:
    """
    Log one read against an external integration.

    Successful reads log at INFO, every other outcome at WARNING. Anything in
    ``extra_context`` is appended to the message; never pass credential values.
    """

    fields: dict[str, Any] = {
        "integration": integration,
        "duration_ms": duration_ms,
        "status": status,
        "correlation_id": extra_context.pop("correlation_id", None) or "-",
    }
    suffix = f" | context={extra_context}" if extra_context else ""

    log = logger.info if status == "success" else logger.warning
    log(f"Upstream read {operation} {status}{suffix}", extra=fields)
