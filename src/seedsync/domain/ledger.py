"""Post-write maintenance of the per-record digest ledger."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from seedsync.domain._internal import chunked, transaction
from seedsync.domain.progress import ProgressReporter, SyncPhase
from seedsync.domain.types import DEFAULT_BATCH_SIZE, ledger_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from seedsync.domain.ports import DigestLedgerRepository, SyncUnitOfWork
    from seedsync.domain.types import Digest, RecordId

log = logging.getLogger(__name__)


class LedgerMaintainer:
    """Keep the ledger of one table in line with the rows just written."""

    def __init__(
        self,
        uow: SyncUnitOfWork,
        table_name: str,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress: ProgressReporter | None = None,
    ) -> None:
        self._uow = uow
        self._table_name = table_name
        self._batch_size = batch_size
        self._progress = progress or ProgressReporter(table_name)

    @property
    def _ledger(self) -> DigestLedgerRepository:
        return self._uow.repositories.ledger

    def delete_waste(self, current_ids: Iterable[RecordId]) -> int:
        """Drop entries whose record is no longer in the target table."""

        live = {ledger_key(record_id) for record_id in current_ids}
        waste = sorted(self._ledger.record_ids(self._table_name) - live)
        deleted = 0
        for chunk in chunked(waste, self._batch_size):
            with transaction(self._uow):
                deleted += self._ledger.delete_ids(self._table_name, chunk)
        if deleted:
            log.info("Deleted %s stale digests of %s", deleted, self._table_name)
        return deleted

    def refresh(
        self,
        *,
        inserted_ids: Sequence[RecordId],
        updated_ids: Sequence[RecordId],
        digests_by_id: Mapping[RecordId, Digest],
    ) -> None:
        """Store the new digests of inserted and updated records.

        Existing entries are rewritten with one bulk statement per chunk; ids
        without an entry get a new one.
        """

        tracked = self._ledger.record_ids(self._table_name)
        pending: dict[str, Digest] = {}

        # an inserted id can still have an entry when its row was removed by other means
        rewrite = [*updated_ids, *(i for i in inserted_ids if ledger_key(i) in tracked)]
        total = len(rewrite)
        counter = 0
        self._progress.before(SyncPhase.UPDATING_DIGESTS, counter, total)
        for chunk in chunked(rewrite, self._batch_size):
            self._progress.before(SyncPhase.UPDATING_DIGESTS_CHUNK, counter, total)
            existing: dict[str, Digest] = {}
            for record_id in chunk:
                key = ledger_key(record_id)
                if key in tracked:
                    existing[key] = digests_by_id[record_id]
                else:
                    pending[key] = digests_by_id[record_id]
            if existing:
                with transaction(self._uow):
                    self._ledger.bulk_update_digests(self._table_name, existing)
            counter += len(chunk)
            self._progress.after(SyncPhase.UPDATING_DIGESTS_CHUNK, counter, total)
        self._progress.after(SyncPhase.UPDATING_DIGESTS, counter, total)

        for record_id in inserted_ids:
            key = ledger_key(record_id)
            if key not in tracked:
                pending[key] = digests_by_id[record_id]

        new_entries = list(pending.items())
        total = len(new_entries)
        counter = 0
        self._progress.before(SyncPhase.INSERTING_DIGESTS, counter, total)
        for chunk in chunked(new_entries, self._batch_size):
            self._progress.before(SyncPhase.INSERTING_DIGESTS_CHUNK, counter, total)
            with transaction(self._uow):
                self._ledger.add_entries(self._table_name, dict(chunk))
            counter += len(chunk)
            self._progress.after(SyncPhase.INSERTING_DIGESTS_CHUNK, counter, total)
        self._progress.after(SyncPhase.INSERTING_DIGESTS, counter, total)
