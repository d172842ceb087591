"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from seedsync.adapters.files import CsvRecordSource, JsonRecordSource
from seedsync.adapters.sqlalchemy import (
    SqlAlchemyColumnMetadataProvider,
    SqlAlchemySyncUnitOfWork,
    configured_engine,
    reflect_registry,
    startup,
)
from seedsync.config import get_sync_config
from seedsync.domain import LoggingProgressObserver, SyncOptions, SyncOrchestrator
from seedsync.domain.ports import SyncUnitOfWork
from seedsync.domain.types import DEFAULT_ID_COLUMN

if TYPE_CHECKING:
    from datetime import timedelta

    from sqlalchemy.engine import Engine

    from seedsync.domain import ProgressObserver, SyncResult, TableDigestRecord, TableRegistry
    from seedsync.domain.ports import ColumnMetadataProvider, RecordSource

UnitOfWorkFactory = Callable[[], SyncUnitOfWork]
SourceFormat = Literal["csv", "json"]


log = getLogger(__name__)


def init_database(*, database_uri: str | None = None) -> Engine:
    """Start the adapter (once) and bring the bookkeeping tables up to date."""

    engine = configured_engine()
    if engine is None:
        engine = startup(database_uri=database_uri)
    return engine


def open_source(
    path: Path | str,
    *,
    source_format: SourceFormat | None = None,
    columns: ColumnMetadataProvider | None = None,
    table_name: str | None = None,
    id_column: str = DEFAULT_ID_COLUMN,
) -> RecordSource:
    """Return a record source for ``path``, guessing the format from its suffix."""

    path = Path(path)
    resolved = source_format or ("json" if path.suffix.lower() in {".json", ".jsonl"} else "csv")
    if resolved == "json":
        return JsonRecordSource(path, id_column=id_column)
    column_info = columns.columns(table_name) if columns and table_name else None
    return CsvRecordSource(path, column_info, id_column=id_column)


def sync_table(
    table_name: str,
    source: RecordSource | Path | str,
    *,
    truncate: bool = False,
    force_update: bool = False,
    nvl_mode: bool | None = None,
    datetime_offset: timedelta | None = None,
    parent_table: str | None = None,
    batch_size: int | None = None,
    source_format: SourceFormat | None = None,
    registry: TableRegistry | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    observer: ProgressObserver | None = None,
) -> SyncResult:
    """Synchronise ``table_name`` from ``source`` using the configured adapters.

    Options left as ``None`` fall back to :func:`seedsync.config.get_sync_config`.
    """

    engine = init_database()
    config = get_sync_config()
    effective_registry = registry or reflect_registry(engine, tables=[table_name])
    descriptor = effective_registry.resolve(table_name)
    columns = SqlAlchemyColumnMetadataProvider(engine)

    if isinstance(source, Path | str):
        source = open_source(
            source,
            source_format=source_format,
            columns=columns,
            table_name=table_name,
            id_column=descriptor.id_column,
        )

    options = SyncOptions(
        truncate_mode=truncate,
        force_update_mode=force_update,
        nvl_mode=config.nvl_mode if nvl_mode is None else nvl_mode,
        datetime_offset=config.datetime_offset if datetime_offset is None else datetime_offset,
        parent_table=parent_table,
        batch_size=batch_size or config.batch_size,
    )
    log.info(
        "Starting sync of %s: truncate=%s, force_update=%s, nvl=%s, parent=%s, batch_size=%s",
        table_name,
        options.truncate_mode,
        options.force_update_mode,
        options.nvl_mode,
        options.parent_table,
        options.batch_size,
    )

    orchestrator = SyncOrchestrator(
        unit_of_work_factory=unit_of_work_factory or SqlAlchemySyncUnitOfWork,
        registry=effective_registry,
        columns=columns,
        observer=observer or LoggingProgressObserver(),
    )
    return orchestrator.sync(table_name, source, options)


def table_status(
    table_name: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> TableDigestRecord | None:
    init_database()
    with (unit_of_work_factory or SqlAlchemySyncUnitOfWork)() as uow:
        return uow.repositories.table_states.get(table_name)


def enable_cache(
    table_name: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    """Re-enable the record cache after a forced or cascaded invalidation."""

    init_database()
    with (unit_of_work_factory or SqlAlchemySyncUnitOfWork)() as uow:
        uow.repositories.table_states.enable_cache(table_name)
        uow.commit()
    log.info("Enabled record cache of %s", table_name)
