"""Post-sync validation and invalidation of a parent table's cached state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from seedsync.domain._internal import chunked, transaction
from seedsync.domain.errors import PostValidationViolation
from seedsync.domain.types import DEFAULT_BATCH_SIZE, ledger_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from seedsync.domain.ports import SyncUnitOfWork, TargetTableRepository
    from seedsync.domain.registry import EntityDescriptor
    from seedsync.domain.types import RecordId, SyncedIds

log = logging.getLogger(__name__)


def run_post_validation(
    descriptor: EntityDescriptor,
    synced: SyncedIds,
) -> list[PostValidationViolation]:
    """Run the descriptor's table-level check, if it has one."""

    if descriptor.after_sync_validate is None:
        return []
    violations = [
        PostValidationViolation(f"{descriptor.table_name}: {message}")
        for message in descriptor.after_sync_validate(synced)
    ]
    for violation in violations:
        log.warning("Post-sync validation failed: %s", violation)
    return violations


class CascadeInvalidator:
    """Mark a parent table stale after rows referencing it changed.

    The parent gets its cache flag disabled and its table digest cleared, and
    the ledger digests of the referenced parent rows are invalidated so its
    next run re-checks them.
    """

    def __init__(self, uow: SyncUnitOfWork, *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self._uow = uow
        self._batch_size = batch_size

    def invalidate_parent(
        self,
        target: TargetTableRepository,
        *,
        descriptor: EntityDescriptor,
        parent_table: str,
        ids: Iterable[RecordId],
    ) -> set[object]:
        column = descriptor.parent_key_column(parent_table)
        parent_ids: set[object] = set()
        for chunk in chunked(list(ids), self._batch_size):
            parent_ids |= target.distinct_values(column, chunk)
        parent_ids.discard(None)

        repositories = self._uow.repositories
        with transaction(self._uow):
            repositories.table_states.disable_cache(parent_table)
            repositories.table_states.clear_digest(parent_table)
            invalidated = repositories.ledger.invalidate(
                parent_table,
                [ledger_key(parent_id) for parent_id in parent_ids],
            )
        log.info(
            "Disabled cache of %s for %s referenced rows (%s digests invalidated)",
            parent_table,
            len(parent_ids),
            invalidated,
        )
        return parent_ids
