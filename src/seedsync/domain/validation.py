"""Row validators run on every candidate row before it is written."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ValidationError

from seedsync.domain.types import FieldError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from seedsync.domain.types import ColumnInfo


class RowValidator(Protocol):
    """Return the field errors of ``row``; an empty set means the row is valid."""

    def __call__(
        self,
        row: Mapping[str, object],
        *,
        columns: Mapping[str, ColumnInfo],
    ) -> set[FieldError]: ...


def not_null_without_default_columns(columns: Mapping[str, ColumnInfo]) -> list[str]:
    return [
        name
        for name, column in columns.items()
        if not column.primary_key and not column.nullable and not column.has_default
    ]


def require_non_null_columns(
    row: Mapping[str, object],
    *,
    columns: Mapping[str, ColumnInfo],
) -> set[FieldError]:
    """Non-nullable columns without a database default must be set."""

    return {
        FieldError(name, "must be set")
        for name in not_null_without_default_columns(columns)
        if row.get(name) is None
    }


class PydanticRowValidator:
    """Validate candidate rows against a pydantic model."""

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model

    def __call__(
        self,
        row: Mapping[str, object],
        *,
        columns: Mapping[str, ColumnInfo],
    ) -> set[FieldError]:
        _ = columns
        try:
            self.model.model_validate(dict(row))
        except ValidationError as exc:
            return {
                FieldError(".".join(str(part) for part in error["loc"]) or "__root__", error["msg"])
                for error in exc.errors()
            }
        return set()
