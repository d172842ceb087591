"""SQLAlchemy adapter package for seedsync."""

from __future__ import annotations

from .mappings import BOOKKEEPING_TABLES, mapper_registry, start_mappers
from .reflection import SqlAlchemyColumnMetadataProvider, TableReflector, reflect_registry
from .repositories import (
    SqlAlchemyDigestLedgerRepository,
    SqlAlchemyTableStateRepository,
    SqlAlchemyTargetTableRepository,
)
from .unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "BOOKKEEPING_TABLES",
    "SqlAlchemyColumnMetadataProvider",
    "SqlAlchemyDigestLedgerRepository",
    "SqlAlchemySyncUnitOfWork",
    "SqlAlchemyTableStateRepository",
    "SqlAlchemyTargetTableRepository",
    "StartupError",
    "TableReflector",
    "configured_engine",
    "is_started",
    "mapper_registry",
    "reflect_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
