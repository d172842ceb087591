"""Create the per-table and per-record digest tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from seedsync.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "seed_tables",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("table_name", sa.String(length=255), nullable=False),
        sa.Column("digest", sa.String(length=64), nullable=True),
        sa.Column("cache_disabled", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_seed_tables"),
        sa.UniqueConstraint("table_name", name="uq_seed_tables_table_name"),
    )
    op.create_table(
        "seed_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("table_name", sa.String(length=255), nullable=False),
        sa.Column("record_id", sa.String(length=255), nullable=False),
        sa.Column("digest", sa.String(length=64), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_seed_records"),
        sa.UniqueConstraint(
            "table_name",
            "record_id",
            name="uq_seed_records_table_name_record_id",
        ),
    )
    op.create_index("ix_seed_records_table_name", "seed_records", ["table_name"])


def downgrade() -> None:
    op.drop_index("ix_seed_records_table_name", table_name="seed_records")
    op.drop_table("seed_records")
    op.drop_table("seed_tables")
