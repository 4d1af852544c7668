"""Keyed entity store and the registry of stored entity types."""
from .entities import (
    COLLABORATION_BRIDGES,
    SERVICENOW_CONFIG,
    SOLARWINDS_CONFIG,
    VENDORS,
    EntityType,
    get_entity_type,
    list_entity_types,
    register_entity_type,
)
from .entity_store import EntityStore, KeyedLocks

__all__ = [
    "COLLABORATION_BRIDGES",
    "SERVICENOW_CONFIG",
    "SOLARWINDS_CONFIG",
    "VENDORS",
    "EntityStore",
    "EntityType",
    "KeyedLocks",
    "get_entity_type",
    "list_entity_types",
    "register_entity_type",
]
