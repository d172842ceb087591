"""Ports for reading upstream records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from seedsync.domain.types import ColumnInfo, SourceRecord


@runtime_checkable
class RecordSource(Protocol):
    """Upstream dataset; ``read`` may be called more than once per run."""

    def read(self) -> Iterable[SourceRecord]: ...

    def raw_bytes(self) -> bytes: ...


@runtime_checkable
class ColumnMetadataProvider(Protocol):
    """Column metadata of target tables."""

    def columns(self, table_name: str) -> Mapping[str, ColumnInfo]: ...


__all__ = ["ColumnMetadataProvider", "RecordSource"]
