"""Normalization of upstream JSON into canonical records."""
from .mapper import ABSENT, extract, map_collection, map_record, stringify
from .schemas import ALERT_SCHEMA, OUTAGE_SCHEMA, TICKET_SCHEMA, FieldRule, RecordSchema

__all__ = [
    "ABSENT",
    "ALERT_SCHEMA",
    "FieldRule",
    "OUTAGE_SCHEMA",
    "RecordSchema",
    "TICKET_SCHEMA",
    "extract",
    "map_collection",
    "map_record",
    "stringify",
]
