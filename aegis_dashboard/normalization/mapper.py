"""Translate arbitrarily shaped upstream JSON into canonical dashboard records."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Final, TypeVar

from pydantic import BaseModel

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .schemas import RecordSchema

R = TypeVar("R", bound=BaseModel)
E = TypeVar("E", bound=Enum)


class _Absent:
    """Marker for a value that could not be located or coerced."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()

_FRACTION_RE: Final = re.compile(r"(\.\d{6})\d+")
_TIMESTAMP_FORMATS: Final = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d", "%m/%d/%Y %H:%M:%S")
# Epoch values above this are taken as milliseconds.
_EPOCH_MS_THRESHOLD: Final = 100_000_000_000


def extract(obj: Any, dotted_path: str | None) -> Any:
    """Walk ``dotted_path`` through nested mappings and sequences.

    Keys that themselves contain dots (ServiceNow returns dot-walked fields
    such as ``"cmdb_ci.name"`` verbatim) are matched as well. Returns
    :data:`ABSENT` when any step is missing or hits a scalar; never raises.
    """

    if not isinstance(dotted_path, str) or not dotted_path.strip():
        return ABSENT
    return _walk(obj, dotted_path.strip().split("."))


def _walk(current: Any, parts: list[str]) -> Any:
    if not parts:
        return current
    if isinstance(current, Mapping):
        # Nested walk first, then progressively longer literal keys.
        for size in range(1, len(parts) + 1):
            key = ".".join(parts[:size])
            if key in current:
                found = _walk(current[key], parts[size:])
                if found is not ABSENT:
                    return found
        return ABSENT
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes, bytearray)):
        head = parts[0]
        if head.lstrip("-").isdigit():
            index = int(head)
            if -len(current) <= index < len(current):
                return _walk(current[index], parts[1:])
    return ABSENT


def stringify(value: Any) -> str:
    """Render a JSON value the way it appears in the upstream document."""

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


# ---------------------------------------------------------------------------
# Coercions. Each returns ABSENT instead of raising when the value is unusable.
# ---------------------------------------------------------------------------


def _unwrap(value: Any) -> Any:
    """Reduce ServiceNow reference objects to their display value."""

    if isinstance(value, Mapping):
        for key in ("display_value", "value"):
            if key in value:
                return value[key]
    return value


def as_text(value: Any) -> Any:
    value = _unwrap(value)
    if value is ABSENT or value is None:
        return ABSENT
    if isinstance(value, (Mapping, list)):
        return ABSENT
    text = stringify(value).strip()
    return text if text else ABSENT


def as_bool(value: Any) -> Any:
    value = _unwrap(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "y"}:
            return True
        if lowered in {"false", "no", "0", "n"}:
            return False
    return ABSENT


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _EPOCH_MS_THRESHOLD else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.isdigit():
        return _parse_datetime(int(text))
    candidate = _FRACTION_RE.sub(r"\1", text)
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        pass
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_instant(moment: datetime) -> str:
    """Serialize an instant as UTC ISO-8601 with millisecond precision and ``Z``."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def as_timestamp(value: Any) -> Any:
    """Parse an upstream timestamp into the canonical instant string.

    Naive values are taken as UTC.
    """
    value = _unwrap(value)
    try:
        parsed = _parse_datetime(value)
    except (OverflowError, OSError, ValueError):
        return ABSENT
    if parsed is None:
        return ABSENT
    return format_instant(parsed)


def as_enum(
    enum_cls: type[E],
    aliases: Mapping[str, E] | None = None,
) -> Callable[[Any], Any]:
    """Build a coercion accepting members by value or name, case-insensitively."""

    lookup: dict[str, E] = {}
    for member in enum_cls:
        lookup[str(member.value).lower()] = member
        lookup[member.name.lower()] = member
    for key, member in (aliases or {}).items():
        lookup[key.lower()] = member

    def _coerce(value: Any) -> Any:
        text = as_text(value)
        if text is ABSENT:
            return ABSENT
        return lookup.get(text.lower(), ABSENT)

    _coerce.__name__ = f"as_{enum_cls.__name__}"
    return _coerce


def _coerce_safely(coerce: Callable[[Any], Any], value: Any) -> Any:
    if value is ABSENT:
        return ABSENT
    try:
        return coerce(value)
    except (TypeError, ValueError, OverflowError, AttributeError):
        return ABSENT


# ---------------------------------------------------------------------------
# Record mapping
# ---------------------------------------------------------------------------


def map_record(
    obj: Any,
    mapping: Mapping[str, str],
    schema: RecordSchema[R],
    *,
    extra: Mapping[str, Any] | None = None,
) -> R:
    """Produce one fully populated canonical record from ``obj``.

    Each schema field is looked up through ``mapping`` (falling back to the
    schema's fixed paths), coerced, and replaced by its documented default
    when absent or unusable. ``extra`` supplies values computed by the caller.
    Total: any input yields a record.
    """

    values: dict[str, Any] = {}
    for field_name, rule in schema.fields.items():
        path = mapping.get(field_name) or schema.fixed_paths.get(field_name)
        value = _coerce_safely(rule.coerce, extract(obj, path))
        values[field_name] = rule.resolve_default() if value is ABSENT else value

    if extra:
        values.update(extra)
    return schema.model.model_validate(values)


def map_collection(
    items: Iterable[Any],
    mapping: Mapping[str, str],
    schema: RecordSchema[R],
    *,
    extra_for: Callable[[Any], Mapping[str, Any]] | None = None,
) -> list[R]:
    """Apply :func:`map_record` to each item, preserving order."""

    return [
        map_record(item, mapping, schema, extra=extra_for(item) if extra_for else None)
        for item in items
    ]
