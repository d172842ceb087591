"""Core value types shared by the synchronisation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from seedsync.domain.errors import SyncError

type RecordId = int | str
type Digest = str

DEFAULT_ID_COLUMN = "id"
DEFAULT_BATCH_SIZE = 1000


class DatabaseDefault(Enum):
    """Marker for a column default that only the database can compute."""

    DATABASE_DEFAULT = "database_default"


DATABASE_DEFAULT = DatabaseDefault.DATABASE_DEFAULT


def ledger_key(record_id: object) -> str:
    """Return the text form of ``record_id`` used as the ledger key."""

    return str(record_id)


@dataclass(frozen=True, slots=True)
class SourceRecord:
    """One logical row read from the upstream source."""

    id: RecordId
    attributes: Mapping[str, Any]

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, Any],
        *,
        id_column: str = DEFAULT_ID_COLUMN,
    ) -> SourceRecord:
        if id_column not in values:
            raise KeyError(f"Record has no '{id_column}' value: {dict(values)!r}")
        record_id = values[id_column]
        if record_id is None:
            raise ValueError(f"Record has an empty '{id_column}' value: {dict(values)!r}")
        return cls(id=record_id, attributes=MappingProxyType(dict(values)))


class ColumnKind(StrEnum):
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    """Column metadata of a target table."""

    name: str
    kind: ColumnKind
    nullable: bool = True
    has_default: bool = False
    default: object = None
    primary_key: bool = False
    timezone: bool = False


@dataclass(eq=False, kw_only=True)
class DigestEntry:
    """Last known content digest of one stored row."""

    table_name: str
    record_id: str
    digest: Digest | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(eq=False, kw_only=True)
class TableDigestRecord:
    """Whole-source digest of the last successful run for a target table."""

    table_name: str
    digest: Digest | None = None
    cache_disabled: bool = False
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncOptions:
    """Per-run switches for :meth:`SyncOrchestrator.sync`."""

    truncate_mode: bool = False
    force_update_mode: bool = False
    nvl_mode: bool = False
    datetime_offset: timedelta = timedelta(0)
    parent_table: str | None = None
    batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be positive")


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncedIds:
    """Ids touched by one run, handed to post-validation and cascade."""

    inserted_ids: tuple[RecordId, ...] = ()
    updated_ids: tuple[RecordId, ...] = ()
    actual_updated_ids: tuple[RecordId, ...] = ()
    deleted_ids: tuple[RecordId, ...] = ()


class SyncStatus(StrEnum):
    OK = "ok"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncResult:
    """Outcome of one table synchronisation."""

    status: SyncStatus
    inserted_count: int = 0
    updated_count: int = 0
    actual_updated_count: int = 0
    deleted_count: int = 0
    errors: tuple[SyncError, ...] = field(default=())

    @classmethod
    def skipped(cls) -> SyncResult:
        return cls(status=SyncStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return self.status is not SyncStatus.ERROR
