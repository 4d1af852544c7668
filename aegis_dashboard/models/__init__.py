"""Persistence models for the entity store."""
from .base import Base, get_engine, get_session_factory, reset_engine, session_scope
from .entity_record import EntityIndexEntry, EntityRecord

__all__ = [
    "Base",
    "EntityIndexEntry",
    "EntityRecord",
    "get_engine",
    "get_session_factory",
    "reset_engine",
    "session_scope",
]
