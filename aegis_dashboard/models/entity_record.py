"""SQLAlchemy tables backing the keyed entity store."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class EntityRecord(Base):
    """Current state of one entity, keyed by ``(entity_type, entity_id)``."""

    __tablename__ = "entity_records"

    entity_type: Mapped[str] = mapped_column(String(128), primary_key=True)
    entity_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    state: Mapped[dict[str, object]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        """Return a developer-friendly string representation."""

        return f"<EntityRecord type={self.entity_type} id={self.entity_id}>"


class EntityIndexEntry(Base):
    """Membership of an entity id in a listing index.

    ``position`` is monotonically assigned, so ordering by it yields insertion
    order regardless of deletions.
    """

    __tablename__ = "entity_index"
    __table_args__ = (
        UniqueConstraint("index_name", "entity_id", name="uq_entity_index_member"),
        {"sqlite_autoincrement": True},
    )

    position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    index_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<EntityIndexEntry index={self.index_name} id={self.entity_id}>"
