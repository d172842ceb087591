"""SQLAlchemy mapping metadata for the ledger and table-state tables."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import Final

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    false,
    orm,
)
from sqlalchemy.orm import configure_mappers

from seedsync.domain.types import DigestEntry, TableDigestRecord

log = logging.getLogger(__name__)

SEED_TABLES: Final[str] = "seed_tables"
SEED_RECORDS: Final[str] = "seed_records"
ALEMBIC_VERSION_TABLE: Final[str] = "alembic_version"
BOOKKEEPING_TABLES: Final[frozenset[str]] = frozenset(
    {SEED_TABLES, SEED_RECORDS, ALEMBIC_VERSION_TABLE}
)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

seed_table_table = Table(
    SEED_TABLES,
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_name", String(255), nullable=False),
    Column("digest", String(64), nullable=True),
    Column("cache_disabled", Boolean, nullable=False, default=False, server_default=false()),
    Column("updated_at", UTCDateTime, nullable=True),
    UniqueConstraint("table_name"),
)

seed_record_table = Table(
    SEED_RECORDS,
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_name", String(255), nullable=False),
    Column("record_id", String(255), nullable=False),
    Column("digest", String(64), nullable=True),
    Column("created_at", UTCDateTime, nullable=True),
    Column("updated_at", UTCDateTime, nullable=True),
    UniqueConstraint("table_name", "record_id"),
    Index("ix_seed_records_table_name", "table_name"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the bookkeeping records."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(TableDigestRecord, seed_table_table)
    mapper_registry.map_imperatively(DigestEntry, seed_record_table)

    configure_mappers()
    return mapper_registry

