"""Error taxonomy of the synchronisation engine.

Fatal errors are raised and abort the remaining phases of a run. Per-record and
table-level validation problems are collected on :class:`SyncResult.errors`
instead, so a batch can finish.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from seedsync.domain.types import FieldError, RecordId


class SyncError(RuntimeError):
    """Base class for synchronisation errors."""


class DuplicateIdError(SyncError):
    """Raised when the source contains the same id more than once."""

    def __init__(self, duplicates: Mapping[RecordId, int]) -> None:
        self.duplicates = dict(duplicates)
        super().__init__(f"There are duplicate ids ({{id: count}}: {self.duplicates!r})")


class IntegrityCountError(SyncError):
    """Raised when the row count after inserting does not add up."""

    def __init__(self, table_name: str, *, expected: int, actual: int) -> None:
        self.table_name = table_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Inserting into {table_name} left {actual} rows, expected {expected}. "
            "This is usually a duplicated key on a non-id unique column; "
            "try truncate mode."
        )


class FieldValidationError(SyncError):
    """A single record failed row validation and was not written."""

    def __init__(self, record_id: RecordId, field_errors: Iterable[FieldError]) -> None:
        self.record_id = record_id
        self.field_errors = frozenset(field_errors)
        details = ", ".join(
            f"{error.field}: {error.message}"
            for error in sorted(self.field_errors, key=lambda e: (e.field, e.message))
        )
        super().__init__(f"When id is {record_id}: {details}")


class PostValidationViolation(SyncError):
    """Table-level check reported a problem after the writes were committed."""


class UnknownTableError(SyncError):
    """Raised when a table has no registered entity descriptor."""


class UnknownColumnError(SyncError):
    """Raised when a record carries a column the target table does not have."""
