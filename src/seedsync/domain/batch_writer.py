"""Chunked, per-chunk transactional writes of insert and update sets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from seedsync.domain._internal import chunked, transaction
from seedsync.domain.errors import FieldValidationError, IntegrityCountError
from seedsync.domain.progress import ProgressReporter, SyncPhase
from seedsync.domain.types import DATABASE_DEFAULT, DEFAULT_BATCH_SIZE, FieldError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from seedsync.domain.conversion import ValueConverter
    from seedsync.domain.ports import SyncUnitOfWork, TargetTableRepository
    from seedsync.domain.registry import EntityDescriptor
    from seedsync.domain.types import RecordId, SourceRecord

log = logging.getLogger(__name__)


@dataclass(slots=True)
class InsertOutcome:
    inserted_ids: list[RecordId] = field(default_factory=list["RecordId"])
    errors: list[FieldValidationError] = field(default_factory=list[FieldValidationError])

    @property
    def has_error(self) -> bool:
        return bool(self.errors)


@dataclass(slots=True)
class UpdateOutcome:
    """``updated_ids`` holds every considered id, ``actual_updated_ids`` the written ones."""

    updated_ids: list[RecordId] = field(default_factory=list["RecordId"])
    actual_updated_ids: list[RecordId] = field(default_factory=list["RecordId"])
    errors: list[FieldValidationError] = field(default_factory=list[FieldValidationError])

    @property
    def has_error(self) -> bool:
        return bool(self.errors)

    @property
    def failed_ids(self) -> set[RecordId]:
        return {error.record_id for error in self.errors}


class BatchWriter:
    """Apply insert and update sets to one target table in bounded chunks."""

    def __init__(
        self,
        uow: SyncUnitOfWork,
        target: TargetTableRepository,
        *,
        descriptor: EntityDescriptor,
        converter: ValueConverter,
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress: ProgressReporter | None = None,
    ) -> None:
        self._uow = uow
        self._target = target
        self._descriptor = descriptor
        self._converter = converter
        self._batch_size = batch_size
        self._progress = progress or ProgressReporter(target.table_name)

    def insert_batch(self, records: Sequence[SourceRecord]) -> InsertOutcome:
        """Insert ``records``; invalid ones are reported and left out.

        The strongly-consistent row count is compared before and after all
        chunks, catching rows the store dropped on a non-id unique key.
        """

        outcome = InsertOutcome()
        total = len(records)
        processed = 0
        self._progress.before(SyncPhase.INSERTING, 0, total)

        existing_count = self._target.count(consistent=True)
        for chunk in chunked(records, self._batch_size):
            self._progress.before(SyncPhase.INSERTING_CHUNK, processed, total)
            rows: list[dict[str, object]] = []
            chunk_ids: list[RecordId] = []
            for record in chunk:
                row, errors = self._build_row(record)
                if errors:
                    outcome.errors.append(self._reject(record, errors))
                    continue
                rows.append(row)
                chunk_ids.append(record.id)

            if rows:
                with transaction(self._uow):
                    self._target.insert_rows(rows)
            outcome.inserted_ids.extend(chunk_ids)
            processed += len(chunk)
            self._progress.after(SyncPhase.INSERTING_CHUNK, processed, total)

        if total:
            current_count = self._target.count(consistent=True)
            expected_count = existing_count + len(outcome.inserted_ids)
            if current_count != expected_count:
                raise IntegrityCountError(
                    self._target.table_name,
                    expected=expected_count,
                    actual=current_count,
                )

        self._progress.after(SyncPhase.INSERTING, len(outcome.inserted_ids), total)
        return outcome

    def update_batch(self, records: Sequence[SourceRecord]) -> UpdateOutcome:
        """Write only the records whose converted fields differ from the stored row."""

        outcome = UpdateOutcome()
        total = len(records)
        processed = 0
        self._progress.before(SyncPhase.UPDATING, 0, total)

        for chunk in chunked(records, self._batch_size):
            self._progress.before(SyncPhase.UPDATING_CHUNK, processed, total)
            with transaction(self._uow):
                stored_rows = self._target.fetch_rows(record.id for record in chunk)
                for record in chunk:
                    outcome.updated_ids.append(record.id)
                    self._update_one(record, stored_rows.get(record.id), outcome)
            processed += len(chunk)
            self._progress.after(SyncPhase.UPDATING_CHUNK, processed, total)

        self._progress.after(SyncPhase.UPDATING, len(outcome.updated_ids), total)
        return outcome

    def _update_one(
        self,
        record: SourceRecord,
        stored: Mapping[str, object] | None,
        outcome: UpdateOutcome,
    ) -> None:
        if stored is None:
            error = FieldError(self._descriptor.id_column, "row disappeared before update")
            outcome.errors.append(self._reject(record, {error}))
            return

        converted, errors = self._convert(record)
        if errors:
            outcome.errors.append(self._reject(record, errors))
            return

        changes = {
            name: value
            for name, value in converted.items()
            if name not in stored or stored[name] != value
        }
        if not changes:
            return

        candidate = {**stored, **changes}
        errors = self._validate(candidate)
        if errors:
            outcome.errors.append(self._reject(record, errors))
            return
        self._target.update_row(record.id, changes)
        outcome.actual_updated_ids.append(record.id)

    def _build_row(self, record: SourceRecord) -> tuple[dict[str, object], set[FieldError]]:
        row, errors = self._convert(record)
        if errors:
            return row, errors
        return row, self._validate(row)

    def _convert(self, record: SourceRecord) -> tuple[dict[str, object], set[FieldError]]:
        row: dict[str, object] = {}
        errors: set[FieldError] = set()
        for name, value in record.attributes.items():
            try:
                converted = self._converter.convert(name, value)
            except (TypeError, ValueError) as exc:
                errors.add(FieldError(name, str(exc)))
                continue
            if converted is not DATABASE_DEFAULT:
                row[name] = converted
        return row, errors

    def _validate(self, row: Mapping[str, object]) -> set[FieldError]:
        errors: set[FieldError] = set()
        for validator in self._descriptor.validators:
            errors |= validator(row, columns=self._converter.columns)
        return errors

    def _reject(self, record: SourceRecord, errors: set[FieldError]) -> FieldValidationError:
        error = FieldValidationError(record.id, errors)
        log.warning("Skipping record of %s: %s", self._target.table_name, error)
        return error
