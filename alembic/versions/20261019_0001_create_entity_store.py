"""Create entity_records and entity_index tables for the keyed entity store."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op as alembic_op  # type: ignore[import-untyped]

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the store tables and the listing index lookup."""

    alembic_op.create_table(
        "entity_records",
        sa.Column("entity_type", sa.String(length=128), primary_key=True),
        sa.Column("entity_id", sa.String(length=255), primary_key=True),
        sa.Column("state", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    alembic_op.create_table(
        "entity_index",
        sa.Column("position", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("index_name", sa.String(length=128), nullable=False),
        sa.Column("entity_id", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("index_name", "entity_id", name="uq_entity_index_member"),
        sqlite_autoincrement=True,
    )

    alembic_op.create_index(
        "ix_entity_index_index_name",
        "entity_index",
        ["index_name"],
    )


def downgrade() -> None:
    """Drop the store tables."""

    alembic_op.drop_index("ix_entity_index_index_name", table_name="entity_index")
    alembic_op.drop_table("entity_index")
    alembic_op.drop_table("entity_records")
