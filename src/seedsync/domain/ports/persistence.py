"""Ports for the target tables and the bookkeeping tables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from seedsync.domain.types import Digest, RecordId, TableDigestRecord


@runtime_checkable
class TargetTableRepository(Protocol):
    """Rows of one synchronised table, handled as plain mappings."""

    @property
    def table_name(self) -> str: ...

    def existing_ids(self) -> set[RecordId]: ...

    def count(self, *, consistent: bool = False) -> int:
        """Count rows; ``consistent=True`` must read committed primary state."""
        ...

    def delete_all(self) -> int: ...

    def delete_ids(self, ids: Iterable[RecordId]) -> int: ...

    def insert_rows(self, rows: Sequence[Mapping[str, object]]) -> None:
        """Insert rows, silently skipping rows that collide on a unique key."""
        ...

    def fetch_rows(self, ids: Iterable[RecordId]) -> dict[RecordId, dict[str, object]]: ...

    def update_row(self, record_id: RecordId, values: Mapping[str, object]) -> None: ...

    def distinct_values(self, column: str, ids: Iterable[RecordId]) -> set[object]: ...


@runtime_checkable
class DigestLedgerRepository(Protocol):
    """Per-record digests keyed by ``(table_name, ledger_key(id))``."""

    def digests(self, table_name: str) -> dict[str, Digest | None]: ...

    def record_ids(self, table_name: str) -> set[str]: ...

    def delete_all(self, table_name: str) -> int: ...

    def delete_ids(self, table_name: str, record_ids: Iterable[str]) -> int: ...

    def add_entries(self, table_name: str, digests: Mapping[str, Digest]) -> None: ...

    def bulk_update_digests(self, table_name: str, digests: Mapping[str, Digest]) -> None:
        """Update many existing entries in one statement."""
        ...

    def invalidate(self, table_name: str, record_ids: Iterable[str]) -> int: ...


@runtime_checkable
class TableStateRepository(Protocol):
    """One :class:`TableDigestRecord` per target table."""

    def get(self, table_name: str) -> TableDigestRecord | None: ...

    def get_or_create(self, table_name: str) -> TableDigestRecord: ...

    def set_digest(self, table_name: str, digest: Digest) -> None: ...

    def clear_digest(self, table_name: str) -> None: ...

    def disable_cache(self, table_name: str) -> None: ...

    def enable_cache(self, table_name: str) -> None: ...
