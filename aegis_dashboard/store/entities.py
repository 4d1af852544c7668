"""Entity type registry for the keyed entity store."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from ..exceptions import UnknownEntityTypeError
from ..schemas.integrations import SINGLETON_ID, ServiceNowConfig, SolarWindsConfig
from ..schemas.records import CollaborationBridge, Vendor

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class EntityType(Generic[M]):
    """Describes how one kind of domain object is stored.

    Indexed types declare ``index_name`` (and optionally seed records);
    singleton types declare ``singleton_id`` and an ``initial_state`` factory.
    """

    name: str
    model: type[M]
    index_name: str | None = None
    seed: tuple[Mapping[str, Any], ...] = ()
    singleton_id: str | None = None
    initial_state: Callable[[], M] | None = field(default=None, compare=False)

    @property
    def indexed(self) -> bool:
        return self.index_name is not None

    @property
    def singleton(self) -> bool:
        return self.singleton_id is not None

    def seed_records(self) -> list[M]:
        return [self.model.model_validate(dict(item)) for item in self.seed]

    def default_state(self) -> M:
        if self.initial_state is None:
            raise ValueError(f"Entity type '{self.name}' has no initial state")
        return self.initial_state()


VENDORS: EntityType[Vendor] = EntityType(
    name="vendor",
    model=Vendor,
    index_name="vendors",
    seed=(
        {
            "id": "vendor-01",
            "name": "CrowdStrike",
            "url": "https://status.crowdstrike.com/",
            "statusType": "API_JSON",
            "apiUrl": "https://status.crowdstrike.com/api/v2/status.json",
            "jsonPath": "status.indicator",
            "expectedValue": "none",
        },
        {"id": "vendor-02", "name": "Citrix", "url": "https://status.cloud.com/", "statusType": "MANUAL"},
        {"id": "vendor-03", "name": "FIS", "url": "#", "statusType": "MANUAL"},
        {"id": "vendor-04", "name": "Sectigo", "url": "https://sectigo.status.io/", "statusType": "MANUAL"},
        {"id": "vendor-05", "name": "Five9", "url": "https://status.five9.com/", "statusType": "MANUAL"},
        {
            "id": "vendor-06",
            "name": "SolarWinds",
            "url": "https://status.solarwinds.com/",
            "statusType": "MANUAL",
        },
    ),
)

COLLABORATION_BRIDGES: EntityType[CollaborationBridge] = EntityType(
    name="collaboration-bridge",
    model=CollaborationBridge,
    index_name="collaboration-bridges",
    seed=(
        {
            "id": "bridge-01",
            "title": "SEV1: API Gateway Latency",
            "participants": 12,
            "duration": "42m",
            "isHighSeverity": True,
            "teamsCallUrl": "#",
        },
        {
            "id": "bridge-02",
            "title": "SEV2: Auth Service Errors",
            "participants": 7,
            "duration": "1h 15m",
            "isHighSeverity": True,
            "teamsCallUrl": "#",
        },
        {
            "id": "bridge-03",
            "title": "War Room: Database Performance",
            "participants": 5,
            "duration": "23m",
            "isHighSeverity": False,
            "teamsCallUrl": "#",
        },
    ),
)

SERVICENOW_CONFIG: EntityType[ServiceNowConfig] = EntityType(
    name="servicenow-config",
    model=ServiceNowConfig,
    singleton_id=SINGLETON_ID,
    initial_state=ServiceNowConfig,
)

SOLARWINDS_CONFIG: EntityType[SolarWindsConfig] = EntityType(
    name="solarwinds-config",
    model=SolarWindsConfig,
    singleton_id=SINGLETON_ID,
    initial_state=SolarWindsConfig,
)

# Entity registry - register new entity types here
_ENTITY_REGISTRY: dict[str, EntityType[Any]] = {}


def register_entity_type(entity_type: EntityType[Any]) -> None:
    """
    Register an entity type under its name.

    Args:
        entity_type: Entity type descriptor to register
    """
    _ENTITY_REGISTRY[entity_type.name] = entity_type


def get_entity_type(name: str) -> EntityType[Any]:
    """
    Resolve an entity type by name.

    Raises:
        UnknownEntityTypeError: If the name is not registered
    """
    if name not in _ENTITY_REGISTRY:
        available = ", ".join(sorted(_ENTITY_REGISTRY)) or "none"
        raise UnknownEntityTypeError(
            f"Entity type '{name}' is not registered. Available types: {available}."
        )
    return _ENTITY_REGISTRY[name]


def list_entity_types() -> list[EntityType[Any]]:
    """Return registered entity types in registration order."""
    return list(_ENTITY_REGISTRY.values())


register_entity_type(VENDORS)
register_entity_type(COLLABORATION_BRIDGES)
register_entity_type(SERVICENOW_CONFIG)
register_entity_type(SOLARWINDS_CONFIG)
