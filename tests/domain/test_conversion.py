from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from seedsync.domain.conversion import ValueConverter, coerce_text, parse_datetime
from seedsync.domain.errors import UnknownColumnError
from seedsync.domain.types import DATABASE_DEFAULT, ColumnInfo, ColumnKind

COLUMNS = {
    "id": ColumnInfo("id", ColumnKind.INTEGER, nullable=False, primary_key=True),
    "name": ColumnInfo("name", ColumnKind.STRING, nullable=False),
    "population": ColumnInfo("population", ColumnKind.INTEGER),
    "area": ColumnInfo("area", ColumnKind.DECIMAL),
    "capital": ColumnInfo("capital", ColumnKind.BOOLEAN),
    "rank": ColumnInfo("rank", ColumnKind.INTEGER, nullable=False, has_default=True, default=1),
    "founded_on": ColumnInfo("founded_on", ColumnKind.DATE),
    "founded_at": ColumnInfo("founded_at", ColumnKind.DATETIME),
    "seen_at": ColumnInfo("seen_at", ColumnKind.DATETIME, timezone=True),
    "created_at": ColumnInfo(
        "created_at", ColumnKind.DATETIME, has_default=True, default=DATABASE_DEFAULT
    ),
}


def _converter(**kwargs: object) -> ValueConverter:
    return ValueConverter(COLUMNS, table_name="cities", **kwargs)  # type: ignore[arg-type]


def test_none_uses_column_default_before_nvl() -> None:
    converter = _converter(nvl_mode=True)

    assert converter.convert("rank", None) == 1
    assert converter.convert("created_at", None) is DATABASE_DEFAULT
    assert converter.convert("population", None) == 0
    assert converter.convert("name", None) == ""
    assert converter.convert("area", None) is None


def test_none_stays_none_without_nvl_mode() -> None:
    converter = _converter()

    assert converter.convert("population", None) is None
    assert converter.convert("name", None) is None


def test_text_values_are_coerced_by_column_kind() -> None:
    converter = _converter()

    assert converter.convert("population", " 42 ") == 42
    assert converter.convert("area", "83.42") == Decimal("83.42")
    assert converter.convert("capital", "yes") is True
    assert converter.convert("capital", 0) is False
    assert converter.convert("founded_on", "1922-08-01") == date(1922, 8, 1)
    assert converter.convert("name", 12) == 12


def test_datetime_values_are_shifted_by_offset() -> None:
    converter = _converter(datetime_offset=timedelta(hours=9))

    assert converter.convert("founded_at", "2020-01-01T00:00:00") == datetime(2020, 1, 1, 9)
    assert converter.convert("founded_at", datetime(2020, 1, 1, 23)) == datetime(2020, 1, 2, 8)


def test_invalid_values_raise_value_error() -> None:
    converter = _converter()

    with pytest.raises(ValueError, match="Invalid boolean"):
        converter.convert("capital", "maybe")
    with pytest.raises(ValueError):
        converter.convert("population", "many")


def test_unknown_column_raises() -> None:
    with pytest.raises(UnknownColumnError, match=r"cities\.colour is not found"):
        _converter().convert("colour", "green")


def test_convert_row_converts_every_attribute() -> None:
    row = _converter().convert_row({"id": "7", "name": "Otaru", "rank": None})

    assert row == {"id": 7, "name": "Otaru", "rank": 1}


def test_parse_datetime_accepts_trailing_z() -> None:
    assert parse_datetime("2020-01-01T00:00:00Z") == datetime(2020, 1, 1, tzinfo=UTC)
    with pytest.raises(ValueError, match="Invalid ISO timestamp"):
        parse_datetime("yesterday")


def test_coerce_text_leaves_unparsable_and_temporal_text_alone() -> None:
    assert coerce_text("12", ColumnKind.INTEGER) == 12
    assert coerce_text("twelve", ColumnKind.INTEGER) == "twelve"
    assert coerce_text("true", ColumnKind.BOOLEAN) is True
    assert coerce_text("2020-01-01", ColumnKind.DATE) == "2020-01-01"


def test_aware_datetimes_become_naive_utc_for_naive_columns() -> None:
    converter = _converter()

    assert converter.convert("founded_at", "2020-01-01T00:00:00Z") == datetime(2020, 1, 1)
    assert converter.convert("founded_at", "2020-01-01T09:00:00+09:00") == datetime(2020, 1, 1)
    assert converter.convert("seen_at", "2020-01-01T00:00:00Z") == datetime(
        2020, 1, 1, tzinfo=UTC
    )
