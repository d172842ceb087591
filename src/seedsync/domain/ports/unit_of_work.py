"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from seedsync.domain.types import DEFAULT_ID_COLUMN

if TYPE_CHECKING:
    from types import TracebackType

    from seedsync.domain.ports.persistence import (
        DigestLedgerRepository,
        TableStateRepository,
        TargetTableRepository,
    )


@dataclass(slots=True)
class SyncRepositories:
    """Bookkeeping repositories shared by every table."""

    ledger: DigestLedgerRepository
    table_states: TableStateRepository


@runtime_checkable
class SyncUnitOfWork(Protocol):
    """Transaction boundary around the bookkeeping and target repositories."""

    @property
    def repositories(self) -> SyncRepositories: ...

    def target_table(
        self,
        table_name: str,
        *,
        id_column: str = DEFAULT_ID_COLUMN,
    ) -> TargetTableRepository: ...

    def __enter__(self) -> SyncUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
