"""Synchronisation engine: pure domain logic and the ports it depends on."""

from __future__ import annotations

from .errors import (
    DuplicateIdError,
    FieldValidationError,
    IntegrityCountError,
    PostValidationViolation,
    SyncError,
    UnknownColumnError,
    UnknownTableError,
)
from .progress import LoggingProgressObserver, ProgressEvent, ProgressObserver, SyncPhase
from .registry import EntityDescriptor, TableRegistry
from .sync import SyncOrchestrator
from .types import (
    ColumnInfo,
    ColumnKind,
    DigestEntry,
    FieldError,
    SourceRecord,
    SyncedIds,
    SyncOptions,
    SyncResult,
    SyncStatus,
    TableDigestRecord,
)

__all__ = [
    "ColumnInfo",
    "ColumnKind",
    "DigestEntry",
    "DuplicateIdError",
    "EntityDescriptor",
    "FieldError",
    "FieldValidationError",
    "IntegrityCountError",
    "LoggingProgressObserver",
    "PostValidationViolation",
    "ProgressEvent",
    "ProgressObserver",
    "SourceRecord",
    "SyncError",
    "SyncOptions",
    "SyncOrchestrator",
    "SyncPhase",
    "SyncResult",
    "SyncStatus",
    "SyncedIds",
    "TableDigestRecord",
    "TableRegistry",
    "UnknownColumnError",
    "UnknownTableError",
]
