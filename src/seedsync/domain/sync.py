"""End-to-end synchronisation of one table.

Sequence of a run:
1) read the source and reject duplicate ids before anything is written
2) truncate, disable the cache (force update) or skip on an unchanged source
3) delete rows missing from the source
4) reconcile the rest into insert and update sets
5) write both sets in chunks
6) clean the ledger, post-validate, invalidate the parent table
7) refresh ledger digests unless post-validation failed
8) commit the table digest only without errors
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from seedsync.domain._internal import transaction
from seedsync.domain.batch_writer import BatchWriter
from seedsync.domain.cascade import CascadeInvalidator, run_post_validation
from seedsync.domain.conversion import ValueConverter
from seedsync.domain.digest import table_digest
from seedsync.domain.ledger import LedgerMaintainer
from seedsync.domain.progress import ProgressReporter, SyncPhase
from seedsync.domain.reconciliation import ensure_unique_ids, ids_to_delete, reconcile
from seedsync.domain.types import SyncedIds, SyncOptions, SyncResult, SyncStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from seedsync.domain.errors import SyncError
    from seedsync.domain.ports import (
        ColumnMetadataProvider,
        RecordSource,
        SyncUnitOfWork,
        TargetTableRepository,
    )
    from seedsync.domain.progress import ProgressObserver
    from seedsync.domain.registry import TableRegistry
    from seedsync.domain.types import RecordId, SourceRecord

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncOrchestrator:
    """Drive a synchronisation run using the configured ports."""

    unit_of_work_factory: Callable[[], SyncUnitOfWork]
    registry: TableRegistry
    columns: ColumnMetadataProvider
    observer: ProgressObserver | None = None

    def sync(
        self,
        table_name: str,
        source: RecordSource,
        options: SyncOptions | None = None,
    ) -> SyncResult:
        options = options or SyncOptions()
        descriptor = self.registry.resolve(table_name)
        progress = ProgressReporter(table_name, self.observer)

        progress.before(SyncPhase.READING_DATA)
        records = list(source.read())
        progress.after(SyncPhase.READING_DATA, len(records), len(records))
        ensure_unique_ids(records)
        source_digest = table_digest(source.raw_bytes())

        converter = ValueConverter(
            self.columns.columns(table_name),
            table_name=table_name,
            nvl_mode=options.nvl_mode,
            datetime_offset=options.datetime_offset,
        )
        if options.parent_table:
            # the parent key column must exist before anything is written
            converter.column(descriptor.parent_key_column(options.parent_table))

        with self.unit_of_work_factory() as uow:
            target = uow.target_table(table_name, id_column=descriptor.id_column)
            states = uow.repositories.table_states
            ledger = uow.repositories.ledger

            with transaction(uow):
                state = states.get_or_create(table_name)
                last_digest, cache_disabled = state.digest, state.cache_disabled

            if options.truncate_mode:
                self._truncate(uow, target, progress)
            elif options.force_update_mode:
                progress.before(SyncPhase.DISABLING_RECORD_CACHE)
                with transaction(uow):
                    states.disable_cache(table_name)
                progress.after(SyncPhase.DISABLING_RECORD_CACHE)
                cache_disabled = True
            elif not cache_disabled and last_digest == source_digest:
                log.info("Skipping %s: source unchanged since the last run", table_name)
                return SyncResult.skipped()

            deleted_ids = self._delete_missing(uow, target, records, progress)

            # a disabled cache sends every stored row through the field-level check
            known_digests = {} if cache_disabled else ledger.digests(table_name)
            plan = reconcile(target.existing_ids(), known_digests, records)
            log.info(
                "Reconciled %s: insert=%s, update=%s, unchanged=%s, delete=%s",
                table_name,
                len(plan.to_insert),
                len(plan.to_update),
                plan.unchanged,
                len(deleted_ids),
            )

            writer = BatchWriter(
                uow,
                target,
                descriptor=descriptor,
                converter=converter,
                batch_size=options.batch_size,
                progress=progress,
            )
            inserted = writer.insert_batch(plan.to_insert)
            updated = writer.update_batch(plan.to_update)

            maintainer = LedgerMaintainer(
                uow,
                table_name,
                batch_size=options.batch_size,
                progress=progress,
            )
            maintainer.delete_waste(target.existing_ids())

            synced = SyncedIds(
                inserted_ids=tuple(inserted.inserted_ids),
                updated_ids=tuple(updated.updated_ids),
                actual_updated_ids=tuple(updated.actual_updated_ids),
                deleted_ids=tuple(deleted_ids),
            )
            violations = run_post_validation(descriptor, synced)
            errors: list[SyncError] = [*inserted.errors, *updated.errors, *violations]

            if options.parent_table and (synced.inserted_ids or synced.updated_ids):
                CascadeInvalidator(uow, batch_size=options.batch_size).invalidate_parent(
                    target,
                    descriptor=descriptor,
                    parent_table=options.parent_table,
                    ids=[*synced.inserted_ids, *synced.updated_ids],
                )

            if violations:
                # stale digests send the same ids through post-validation on the next run
                log.warning("Keeping stale digests of %s until post-validation passes", table_name)
            else:
                failed_ids = updated.failed_ids
                maintainer.refresh(
                    inserted_ids=inserted.inserted_ids,
                    updated_ids=[i for i in updated.updated_ids if i not in failed_ids],
                    digests_by_id=plan.digests_by_id,
                )

            if not errors:
                with transaction(uow):
                    states.set_digest(table_name, source_digest)
                    if cache_disabled:
                        states.enable_cache(table_name)

        status = SyncStatus.ERROR if errors else SyncStatus.OK
        result = SyncResult(
            status=status,
            inserted_count=len(synced.inserted_ids),
            updated_count=len(synced.updated_ids),
            actual_updated_count=len(synced.actual_updated_ids),
            deleted_count=len(synced.deleted_ids),
            errors=tuple(errors),
        )
        log.info(
            "Finished %s: result=%s, inserted=%s, updated=%s, actual_updated=%s, deleted=%s",
            table_name,
            result.status,
            result.inserted_count,
            result.updated_count,
            result.actual_updated_count,
            result.deleted_count,
        )
        return result

    def _truncate(
        self,
        uow: SyncUnitOfWork,
        target: TargetTableRepository,
        progress: ProgressReporter,
    ) -> None:
        progress.before(SyncPhase.TRUNCATING)
        with transaction(uow):
            target.delete_all()
            uow.repositories.ledger.delete_all(target.table_name)
        progress.after(SyncPhase.TRUNCATING)

    def _delete_missing(
        self,
        uow: SyncUnitOfWork,
        target: TargetTableRepository,
        records: Sequence[SourceRecord],
        progress: ProgressReporter,
    ) -> list[RecordId]:
        delete_ids = sorted(ids_to_delete(target.existing_ids(), records), key=str)
        progress.before(SyncPhase.DELETING, 0, len(delete_ids))
        if delete_ids:
            with transaction(uow):
                target.delete_ids(delete_ids)
        progress.after(SyncPhase.DELETING, len(delete_ids), len(delete_ids))
        return delete_ids
