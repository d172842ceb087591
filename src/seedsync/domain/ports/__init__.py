"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import DigestLedgerRepository, TableStateRepository, TargetTableRepository
from .source import ColumnMetadataProvider, RecordSource
from .unit_of_work import SyncRepositories, SyncUnitOfWork

__all__ = [
    "ColumnMetadataProvider",
    "DigestLedgerRepository",
    "RecordSource",
    "SyncRepositories",
    "SyncUnitOfWork",
    "TableStateRepository",
    "TargetTableRepository",
]
