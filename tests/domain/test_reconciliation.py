from __future__ import annotations

import pytest

from seedsync.domain.digest import record_digest
from seedsync.domain.errors import DuplicateIdError
from seedsync.domain.reconciliation import (
    ensure_unique_ids,
    find_duplicate_ids,
    ids_to_delete,
    reconcile,
)
from seedsync.domain.types import SourceRecord


def _records(*rows: dict[str, object]) -> list[SourceRecord]:
    return [SourceRecord.from_mapping(row) for row in rows]


def test_reconcile_partitions_incoming_records() -> None:
    records = _records(
        {"id": 1, "name": "same"},
        {"id": 2, "name": "changed"},
        {"id": 3, "name": "untracked"},
        {"id": 4, "name": "new"},
    )
    digests = {"1": record_digest(records[0]), "2": "stale"}

    plan = reconcile({1, 2, 3}, digests, records)

    assert [record.id for record in plan.to_insert] == [4]
    assert [record.id for record in plan.to_update] == [2, 3]
    assert plan.unchanged == 1
    assert set(plan.digests_by_id) == {2, 3, 4}
    assert plan.digests_by_id[4] == record_digest(records[3])


def test_reconcile_matches_ledger_keys_as_text() -> None:
    records = _records({"id": "A-1", "name": "x"}, {"id": 7, "name": "y"})
    digests = {"A-1": record_digest(records[0]), "7": record_digest(records[1])}

    plan = reconcile({"A-1", 7}, digests, records)

    assert plan.to_insert == []
    assert plan.to_update == []
    assert plan.unchanged == 2


def test_reconcile_rejects_duplicate_ids() -> None:
    records = _records({"id": 1}, {"id": 1}, {"id": 2})

    with pytest.raises(DuplicateIdError) as exc:
        reconcile(set(), {}, records)

    assert exc.value.duplicates == {1: 2}


def test_find_duplicate_ids_counts_only_repeats() -> None:
    records = _records({"id": 1}, {"id": 2}, {"id": 2}, {"id": 3}, {"id": 3}, {"id": 3})

    assert find_duplicate_ids(records) == {2: 2, 3: 3}
    ensure_unique_ids(records[:2])


def test_ids_to_delete_is_existing_minus_incoming() -> None:
    records = _records({"id": 1}, {"id": 3})

    assert ids_to_delete({1, 2, 3, 4}, records) == {2, 4}
    assert ids_to_delete(set(), records) == set()
