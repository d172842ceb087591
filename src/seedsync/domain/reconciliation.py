"""Classify incoming records against the current store state.

Deletion is decided separately (``ids_to_delete``) and applied before
``reconcile`` runs, so the existing ids handed to ``reconcile`` are the
post-delete ids.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from seedsync.domain.digest import record_digest
from seedsync.domain.errors import DuplicateIdError
from seedsync.domain.types import ledger_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence, Set

    from seedsync.domain.types import Digest, RecordId, SourceRecord


@dataclass(slots=True)
class ReconciliationPlan:
    """Insert and update sets plus the digest of every record in them."""

    to_insert: list[SourceRecord] = field(default_factory=list["SourceRecord"])
    to_update: list[SourceRecord] = field(default_factory=list["SourceRecord"])
    digests_by_id: dict[RecordId, Digest] = field(default_factory=dict["RecordId", "Digest"])
    unchanged: int = 0


def find_duplicate_ids(records: Iterable[SourceRecord]) -> dict[RecordId, int]:
    """Return ids occurring more than once, with their counts."""

    counts = Counter(record.id for record in records)
    return {record_id: count for record_id, count in counts.items() if count > 1}


def ensure_unique_ids(records: Iterable[SourceRecord]) -> None:
    duplicates = find_duplicate_ids(records)
    if duplicates:
        raise DuplicateIdError(duplicates)


def ids_to_delete(existing_ids: Set[RecordId], records: Iterable[SourceRecord]) -> set[RecordId]:
    incoming_ids = {record.id for record in records}
    return set(existing_ids) - incoming_ids


def reconcile(
    existing_ids: Set[RecordId],
    existing_digests: Mapping[str, Digest | None],
    incoming: Sequence[SourceRecord],
) -> ReconciliationPlan:
    """Split ``incoming`` into inserts, updates and no-ops.

    ``existing_digests`` is keyed by :func:`ledger_key`. A stored row without a
    ledger entry is treated as changed so that the field-level check of the
    update path settles it.
    """

    ensure_unique_ids(incoming)

    plan = ReconciliationPlan()
    for record in incoming:
        digest = record_digest(record)
        if record.id not in existing_ids:
            plan.to_insert.append(record)
            plan.digests_by_id[record.id] = digest
        elif existing_digests.get(ledger_key(record.id)) != digest:
            plan.to_update.append(record)
            plan.digests_by_id[record.id] = digest
        else:
            plan.unchanged += 1
    return plan
