"""Pytest configuration - no path manipulation, rely on proper package installation."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from aegis_dashboard.api.dependencies import reset_entity_store
from aegis_dashboard.models.base import (
    build_engine,
    build_session_factory,
    create_schema,
    reset_engine,
)
from aegis_dashboard.store.entity_store import EntityStore
from aegis_dashboard.utils.config import get_service_configuration, get_settings

CREDENTIAL_VARS = (
    "SERVICENOW_USERNAME",
    "SERVICENOW_PASSWORD",
    "SOLARWINDS_USERNAME",
    "SOLARWINDS_PASSWORD",
)


@pytest.fixture(autouse=True)
def _isolated_runtime(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path_factory: pytest.TempPathFactory,
) -> Iterator[None]:
    """Point the global engine at a throwaway SQLite file and clear cached settings."""

    db_path = tmp_path_factory.mktemp("sqlite-db") / "aegis.sqlite"
    monkeypatch.setenv("AEGIS_DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("AEGIS_CONFIG_DIR", str(Path(__file__).resolve().parent.parent / "config"))
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)

    get_settings(reload=True)
    get_service_configuration(reload=True)
    yield
    monkeypatch.undo()
    reset_entity_store()
    reset_engine()
    get_settings(reload=True)


@pytest.fixture
def session_factory(tmp_path: Path) -> Iterator[sessionmaker[Session]]:
    """Session factory bound to a fresh SQLite file with the store schema."""

    engine = build_engine(f"sqlite:///{tmp_path / 'store.sqlite'}")
    create_schema(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory: sessionmaker[Session]) -> EntityStore:
    return EntityStore(session_factory)
