"""Column-level value conversion applied before rows are written."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Final

from seedsync.domain.errors import UnknownColumnError
from seedsync.domain.types import ColumnKind

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from seedsync.domain.types import ColumnInfo

DEFAULT_NVL_VALUES: Final[dict[ColumnKind, object]] = {
    ColumnKind.INTEGER: 0,
    ColumnKind.STRING: "",
}

_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE_STRINGS: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


def parse_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        return datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc


def _to_integer(value: object) -> object:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _to_float(value: object) -> object:
    if isinstance(value, str):
        return float(value.strip())
    if isinstance(value, int | Decimal) and not isinstance(value, bool):
        return float(value)
    return value


def _to_decimal(value: object) -> object:
    if isinstance(value, str | int | float) and not isinstance(value, bool):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid decimal: {value}") from exc
    return value


def _to_boolean(value: object) -> object:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"Invalid boolean: {value}")
    if isinstance(value, int):
        return bool(value)
    return value


def _to_date(value: object) -> object:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    return value


class ValueConverter:
    """Convert raw source values into values fit for one target table.

    ``None`` becomes the column's database default when it has one; otherwise,
    in NVL mode, the per-kind substitute from :data:`DEFAULT_NVL_VALUES`.
    Datetimes are shifted by ``datetime_offset``; aware values bound for a
    column without a time zone are converted to naive UTC first.
    """

    def __init__(
        self,
        columns: Mapping[str, ColumnInfo],
        *,
        table_name: str,
        nvl_mode: bool = False,
        datetime_offset: timedelta = timedelta(0),
        nvl_values: Mapping[ColumnKind, object] | None = None,
    ) -> None:
        self._columns = columns
        self._table_name = table_name
        self._nvl_mode = nvl_mode
        self._datetime_offset = datetime_offset
        self._nvl_values = dict(DEFAULT_NVL_VALUES if nvl_values is None else nvl_values)
        self._coercions: dict[ColumnKind, Callable[[object], object]] = {
            ColumnKind.INTEGER: _to_integer,
            ColumnKind.FLOAT: _to_float,
            ColumnKind.DECIMAL: _to_decimal,
            ColumnKind.BOOLEAN: _to_boolean,
            ColumnKind.DATE: _to_date,
        }

    @property
    def columns(self) -> Mapping[str, ColumnInfo]:
        return self._columns

    def column(self, name: str) -> ColumnInfo:
        try:
            return self._columns[name]
        except KeyError:
            raise UnknownColumnError(f"{self._table_name}.{name} is not found") from None

    def convert(self, name: str, value: object) -> object:
        column = self.column(name)
        if value is None:
            if column.has_default:
                return column.default
            return self._nvl(column)
        if column.kind is ColumnKind.DATETIME:
            return self._to_datetime(value, timezone=column.timezone)
        coercion = self._coercions.get(column.kind)
        if coercion is None:
            return value
        return coercion(value)

    def convert_row(self, attributes: Mapping[str, Any]) -> dict[str, object]:
        return {name: self.convert(name, value) for name, value in attributes.items()}

    def _nvl(self, column: ColumnInfo) -> object:
        if not self._nvl_mode:
            return None
        return self._nvl_values.get(column.kind)

    def _to_datetime(self, value: object, *, timezone: bool) -> object:
        if isinstance(value, str):
            value = parse_datetime(value)
        elif isinstance(value, date) and not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day, tzinfo=None)
        if not isinstance(value, datetime):
            return value
        # naive columns hold UTC wall time
        if not timezone and value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value + self._datetime_offset


_SOURCE_COERCIONS: Final[dict[ColumnKind, Callable[[object], object]]] = {
    ColumnKind.INTEGER: _to_integer,
    ColumnKind.FLOAT: _to_float,
    ColumnKind.DECIMAL: _to_decimal,
    ColumnKind.BOOLEAN: _to_boolean,
}


def coerce_text(value: str, kind: ColumnKind) -> object:
    """Best-effort typing of a text cell; unparsable text is returned unchanged.

    Temporal kinds stay text so that :class:`ValueConverter` applies the offset.
    """

    coercion = _SOURCE_COERCIONS.get(kind)
    if coercion is None:
        return value
    try:
        return coercion(value)
    except ValueError:
        return value
