"""Tabular reports over outage history: daily trend breakdowns and CSV export."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timezone
from typing import Any, Literal

import pandas as pd

from .schemas.records import ImpactLevel, Outage

Breakdown = Literal["impact", "system"]

CSV_COLUMNS: dict[str, str] = {
    "id": "ID",
    "systemName": "System Name",
    "impactLevel": "Impact Level",
    "startTime": "Start Time",
    "eta": "ETA",
    "description": "Description",
    "teamsBridgeUrl": "Teams Bridge URL",
}


def _outage_frame(outages: Sequence[Outage]) -> pd.DataFrame:
    return pd.DataFrame(
        [outage.to_api() for outage in outages],
        columns=list(CSV_COLUMNS),
    )


def outage_trends(
    outages: Sequence[Outage],
    breakdown: Breakdown = "impact",
    days: int = 7,
    today: date | None = None,
) -> pd.DataFrame:
    """
    Count outages per calendar day over the trailing window.

    Args:
        outages: Outage history to summarize
        breakdown: ``"impact"`` for one column per impact level (fixed order)
            or ``"system"`` for one column per system name (first-seen order)
        days: Window length, ending with ``today``
        today: Last day of the window; defaults to the current UTC date

    Returns:
        DataFrame with a ``date`` column (``YYYY-MM-DD``, oldest first) and an
        integer count column per breakdown key. Outages starting outside the
        window are not counted.
    """
    if breakdown not in ("impact", "system"):
        raise ValueError(f"Unknown breakdown '{breakdown}'; expected 'impact' or 'system'")
    if days < 1:
        raise ValueError("days must be at least 1")

    end = pd.Timestamp(today or datetime.now(timezone.utc).date())
    window = pd.date_range(end=end, periods=days, freq="D")

    frame = _outage_frame(outages)
    if breakdown == "impact":
        column = "impactLevel"
        keys = [level.value for level in ImpactLevel]
    else:
        column = "systemName"
        keys = list(dict.fromkeys(frame[column].tolist()))

    table = pd.DataFrame(0, index=window, columns=keys, dtype="int64")
    if not frame.empty:
        started = pd.to_datetime(frame["startTime"], utc=True, errors="coerce")
        frame = frame.assign(day=started.dt.tz_convert(None).dt.normalize())
        frame = frame[frame["day"].isin(window) & frame[column].isin(keys)]
        if not frame.empty:
            counts = frame.groupby(["day", column]).size().unstack(fill_value=0)
            table = counts.reindex(index=window, columns=keys, fill_value=0).astype("int64")

    table.index = window.strftime("%Y-%m-%d")
    table.index.name = "date"
    table.columns.name = None
    return table.reset_index()


def trends_to_records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """Return trend rows as plain dictionaries for JSON responses."""

    return frame.to_dict(orient="records")


def outages_to_csv(outages: Sequence[Outage]) -> str:
    """Render outages as CSV with a human-readable header row."""

    frame = _outage_frame(outages).rename(columns=CSV_COLUMNS)
    return frame.to_csv(index=False, na_rep="", lineterminator="\n")
