"""Keyed entity store with secondary listing index and seed support."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Hashable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..exceptions import AlreadyExistsError, NotFoundError
from ..models.base import get_session_factory, session_scope
from ..models.entity_record import EntityIndexEntry, EntityRecord
from ..monitoring.metrics import record_store_operation
from ..utils.logging import setup_logger
from .entities import EntityType, get_entity_type

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

logger = setup_logger(__name__)


class KeyedLocks:
    """Per-key asyncio locks that are discarded once nobody holds or awaits them."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class EntityStore:
    """
    Durable CRUD for entities keyed by id.

    Every write is a single database transaction, so a record and its index
    entry are always added or removed together. Writes to the same
    ``(type, id)`` are serialized through in-process locks while writes to
    different ids proceed independently. Blocking database work runs in a
    worker thread so the event loop keeps serving other requests.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory
        self._record_locks = KeyedLocks()
        self._seed_locks = KeyedLocks()

    # ------------------------------------------------------------------ helpers

    def _factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def _run_in_thread(self, func: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(func, *args)

    @staticmethod
    def _resolve(entity_type: EntityType[M] | str) -> EntityType[M]:
        if isinstance(entity_type, str):
            return get_entity_type(entity_type)
        return entity_type

    @staticmethod
    def _require_indexed(entity_type: EntityType[Any]) -> None:
        if not entity_type.indexed:
            raise ValueError(f"Entity type '{entity_type.name}' has no listing index")

    @staticmethod
    def _require_singleton(entity_type: EntityType[Any]) -> None:
        if not entity_type.singleton:
            raise ValueError(f"Entity type '{entity_type.name}' is not a singleton")

    @staticmethod
    def _serialize(record: BaseModel) -> dict[str, Any]:
        return record.model_dump(mode="json", by_alias=True)

    @staticmethod
    def _with_id(record: M, entity_id: str) -> M:
        if getattr(record, "id", entity_id) == entity_id:
            return record
        return record.model_copy(update={"id": entity_id})

    def _index_member(
        self,
        session: Session,
        entity_type: EntityType[Any],
        entity_id: str,
    ) -> EntityIndexEntry | None:
        return session.scalars(
            select(EntityIndexEntry).where(
                EntityIndexEntry.index_name == entity_type.index_name,
                EntityIndexEntry.entity_id == entity_id,
            )
        ).first()

    def _insert(
        self,
        session: Session,
        entity_type: EntityType[Any],
        entity_id: str,
        state: dict[str, Any],
    ) -> None:
        session.add(EntityRecord(entity_type=entity_type.name, entity_id=entity_id, state=state))
        if entity_type.indexed and self._index_member(session, entity_type, entity_id) is None:
            session.add(EntityIndexEntry(index_name=entity_type.index_name, entity_id=entity_id))
        session.flush()

    # --------------------------------------------------------------- keyed API

    async def create(self, entity_type: EntityType[M] | str, record: M) -> M:
        """Persist a new record; raises :class:`AlreadyExistsError` on id collision."""

        etype = self._resolve(entity_type)
        entity_id = record.id  # type: ignore[attr-defined]
        state = self._serialize(record)

        def _create() -> None:
            try:
                with session_scope(self._factory()) as session:
                    if session.get(EntityRecord, (etype.name, entity_id)) is not None:
                        raise AlreadyExistsError(etype.name, entity_id)
                    self._insert(session, etype, entity_id, state)
            except IntegrityError as exc:
                raise AlreadyExistsError(etype.name, entity_id) from exc

        async with self._record_locks.hold((etype.name, entity_id)):
            await self._run_in_thread(_create)

        record_store_operation(etype.name, "create")
        logger.debug(
            "Entity created",
            extra={"entity_type": etype.name, "entity_id": entity_id, "status": "success"},
        )
        return record

    async def get(self, entity_type: EntityType[M] | str, entity_id: str) -> M:
        """Return the stored record or raise :class:`NotFoundError`."""

        etype = self._resolve(entity_type)

        def _get() -> dict[str, Any] | None:
            with session_scope(self._factory()) as session:
                row = session.get(EntityRecord, (etype.name, entity_id))
                return dict(row.state) if row is not None else None

        state = await self._run_in_thread(_get)
        if state is None:
            raise NotFoundError(etype.name, entity_id)
        return etype.model.model_validate(state)

    async def exists(self, entity_type: EntityType[Any] | str, entity_id: str) -> bool:
        """Return True when a record is stored under ``entity_id``."""

        etype = self._resolve(entity_type)

        def _exists() -> bool:
            with session_scope(self._factory()) as session:
                return session.get(EntityRecord, (etype.name, entity_id)) is not None

        return await self._run_in_thread(_exists)

    async def save(self, entity_type: EntityType[M] | str, entity_id: str, record: M) -> M:
        """Upsert ``record`` under ``entity_id``.

        The index is only touched when the record did not exist before.
        """

        etype = self._resolve(entity_type)
        record = self._with_id(record, entity_id)
        state = self._serialize(record)

        def _save() -> None:
            with session_scope(self._factory()) as session:
                row = session.get(EntityRecord, (etype.name, entity_id), with_for_update=True)
                if row is None:
                    self._insert(session, etype, entity_id, state)
                else:
                    row.state = state

        async with self._record_locks.hold((etype.name, entity_id)):
            await self._run_in_thread(_save)

        record_store_operation(etype.name, "save")
        return record

    async def mutate(
        self,
        entity_type: EntityType[M] | str,
        entity_id: str,
        update: Callable[[M], M],
    ) -> M:
        """Apply ``update`` to the current state and persist the result.

        ``update`` must be a pure function of the current record. Singleton
        types start from their default state when nothing is stored yet;
        keyed types raise :class:`NotFoundError`.
        """

        etype = self._resolve(entity_type)

        def _mutate() -> M:
            with session_scope(self._factory()) as session:
                row = session.get(EntityRecord, (etype.name, entity_id), with_for_update=True)
                if row is None:
                    if not etype.singleton:
                        raise NotFoundError(etype.name, entity_id)
                    current = etype.default_state()
                else:
                    current = etype.model.model_validate(dict(row.state))

                updated = self._with_id(update(current), entity_id)
                state = self._serialize(updated)
                if row is None:
                    self._insert(session, etype, entity_id, state)
                else:
                    row.state = state
                return updated

        async with self._record_locks.hold((etype.name, entity_id)):
            result = await self._run_in_thread(_mutate)

        record_store_operation(etype.name, "mutate")
        return result

    async def delete(self, entity_type: EntityType[Any] | str, entity_id: str) -> bool:
        """Remove the record and its index entry; return whether a record existed."""

        etype = self._resolve(entity_type)

        def _delete() -> bool:
            with session_scope(self._factory()) as session:
                removed = session.execute(
                    delete(EntityRecord).where(
                        EntityRecord.entity_type == etype.name,
                        EntityRecord.entity_id == entity_id,
                    )
                ).rowcount
                if etype.indexed:
                    session.execute(
                        delete(EntityIndexEntry).where(
                            EntityIndexEntry.index_name == etype.index_name,
                            EntityIndexEntry.entity_id == entity_id,
                        )
                    )
                return bool(removed)

        async with self._record_locks.hold((etype.name, entity_id)):
            existed = await self._run_in_thread(_delete)

        record_store_operation(etype.name, "delete")
        logger.debug(
            "Entity delete",
            extra={
                "entity_type": etype.name,
                "entity_id": entity_id,
                "status": "success" if existed else "absent",
            },
        )
        return existed

    async def list(self, entity_type: EntityType[M] | str) -> list[M]:
        """Return every indexed record in insertion order."""

        etype = self._resolve(entity_type)
        self._require_indexed(etype)

        def _list() -> list[dict[str, Any]]:
            with session_scope(self._factory()) as session:
                rows = session.scalars(
                    select(EntityRecord)
                    .join(
                        EntityIndexEntry,
                        EntityIndexEntry.entity_id == EntityRecord.entity_id,
                    )
                    .where(
                        EntityIndexEntry.index_name == etype.index_name,
                        EntityRecord.entity_type == etype.name,
                    )
                    .order_by(EntityIndexEntry.position)
                ).all()
                return [dict(row.state) for row in rows]

        states = await self._run_in_thread(_list)
        return [etype.model.model_validate(state) for state in states]

    async def list_ids(self, entity_type: EntityType[Any] | str) -> list[str]:
        """Return the raw index contents in order."""

        etype = self._resolve(entity_type)
        self._require_indexed(etype)

        def _ids() -> list[str]:
            with session_scope(self._factory()) as session:
                return list(
                    session.scalars(
                        select(EntityIndexEntry.entity_id)
                        .where(EntityIndexEntry.index_name == etype.index_name)
                        .order_by(EntityIndexEntry.position)
                    ).all()
                )

        return await self._run_in_thread(_ids)

    async def ensure_seed(self, entity_type: EntityType[Any] | str) -> bool:
        """Install the type's seed records when its index is empty.

        Returns True only for the call whose seeding pass took effect.
        """

        etype = self._resolve(entity_type)
        self._require_indexed(etype)
        if not etype.seed:
            return False
        records = etype.seed_records()

        def _seed() -> bool:
            try:
                with session_scope(self._factory()) as session:
                    count = session.scalar(
                        select(func.count())
                        .select_from(EntityIndexEntry)
                        .where(EntityIndexEntry.index_name == etype.index_name)
                    )
                    if count:
                        return False
                    for record in records:
                        state = self._serialize(record)
                        row = session.get(EntityRecord, (etype.name, record.id))
                        if row is None:
                            self._insert(session, etype, record.id, state)
                        else:
                            row.state = state
                            session.add(
                                EntityIndexEntry(index_name=etype.index_name, entity_id=record.id)
                            )
                    return True
            except IntegrityError:
                logger.info(
                    "Seed already installed by a concurrent writer",
                    extra={"entity_type": etype.name, "status": "skipped"},
                )
                return False

        async with self._seed_locks.hold(etype.name):
            seeded = await self._run_in_thread(_seed)

        if seeded:
            record_store_operation(etype.name, "seed")
            logger.info(
                "Seeded %d records",
                len(records),
                extra={"entity_type": etype.name, "status": "success"},
            )
        return seeded

    # ----------------------------------------------------------- singleton API

    async def get_singleton(self, entity_type: EntityType[M] | str) -> M:
        """Return the singleton, materializing its default state on first read."""

        etype = self._resolve(entity_type)
        self._require_singleton(etype)
        entity_id = etype.singleton_id

        def _load_or_init() -> dict[str, Any]:
            try:
                with session_scope(self._factory()) as session:
                    row = session.get(EntityRecord, (etype.name, entity_id))
                    if row is not None:
                        return dict(row.state)
                    state = self._serialize(etype.default_state())
                    self._insert(session, etype, entity_id, state)
                    return state
            except IntegrityError:
                # Initialized concurrently; read what the other writer stored.
                with session_scope(self._factory()) as session:
                    row = session.get(EntityRecord, (etype.name, entity_id))
                    if row is None:
                        raise
                    return dict(row.state)

        state = await self._run_in_thread(_load_or_init)
        return etype.model.model_validate(state)

    async def save_singleton(self, entity_type: EntityType[M] | str, record: M) -> M:
        """Replace the singleton's state."""

        etype = self._resolve(entity_type)
        self._require_singleton(etype)
        return await self.save(etype, etype.singleton_id, record)
