from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from seedsync.adapters.files import CsvRecordSource, JsonRecordSource, SourceFormatError
from seedsync.domain.types import ColumnInfo, ColumnKind

if TYPE_CHECKING:
    from pathlib import Path

COLUMNS = {
    "id": ColumnInfo("id", ColumnKind.INTEGER, nullable=False, primary_key=True),
    "name": ColumnInfo("name", ColumnKind.STRING, nullable=False),
    "area": ColumnInfo("area", ColumnKind.DECIMAL),
    "capital": ColumnInfo("capital", ColumnKind.BOOLEAN),
    "founded_at": ColumnInfo("founded_at", ColumnKind.DATETIME),
}


def test_csv_rows_become_records(tmp_path: Path) -> None:
    path = tmp_path / "cities.csv"
    path.write_text(
        "id,name,area,capital,founded_at\n"
        "10,Sapporo,1121.26,true,1922-08-01T00:00:00\n"
        "11,Hakodate,,false,\n",
        encoding="utf-8",
    )

    records = list(CsvRecordSource(path, COLUMNS).read())

    assert [record.id for record in records] == [10, 11]
    assert dict(records[0].attributes) == {
        "id": 10,
        "name": "Sapporo",
        "area": Decimal("1121.26"),
        "capital": True,
        "founded_at": "1922-08-01T00:00:00",
    }
    assert records[1].attributes["area"] is None
    assert records[1].attributes["founded_at"] is None


def test_csv_without_columns_keeps_text(tmp_path: Path) -> None:
    path = tmp_path / "cities.csv"
    path.write_bytes(b"\xef\xbb\xbfcode,name\nA-1,Sapporo\n")

    source = CsvRecordSource(path, id_column="code")

    (record,) = source.read()
    assert record.id == "A-1"
    assert source.raw_bytes() == path.read_bytes()


def test_csv_requires_id_column(tmp_path: Path) -> None:
    path = tmp_path / "cities.csv"
    path.write_text("name\nSapporo\n", encoding="utf-8")

    with pytest.raises(SourceFormatError, match="no 'id' column"):
        list(CsvRecordSource(path).read())


def test_csv_rejects_empty_id(tmp_path: Path) -> None:
    path = tmp_path / "cities.csv"
    path.write_text("id,name\n,Sapporo\n", encoding="utf-8")

    with pytest.raises(SourceFormatError, match="record 1"):
        list(CsvRecordSource(path).read())


def test_json_array_and_json_lines(tmp_path: Path) -> None:
    array = tmp_path / "cities.json"
    array.write_text('[{"id": 10, "name": "Sapporo"}, {"id": 11, "name": null}]', "utf-8")
    lines = tmp_path / "cities.jsonl"
    lines.write_text('{"id": 10, "name": "Sapporo"}\n\n{"id": 11, "name": null}\n', "utf-8")

    from_array = list(JsonRecordSource(array).read())
    from_lines = list(JsonRecordSource(lines).read())

    assert [record.id for record in from_array] == [10, 11]
    assert [dict(r.attributes) for r in from_array] == [dict(r.attributes) for r in from_lines]
    assert from_array[1].attributes["name"] is None


def test_json_errors(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text('[{"id": 1}', "utf-8")
    scalar = tmp_path / "scalar.json"
    scalar.write_text("[1, 2]", "utf-8")
    empty = tmp_path / "empty.json"
    empty.write_text("", "utf-8")

    with pytest.raises(SourceFormatError, match="invalid JSON"):
        list(JsonRecordSource(broken).read())
    with pytest.raises(SourceFormatError, match="not an object"):
        list(JsonRecordSource(scalar).read())
    assert list(JsonRecordSource(empty).read()) == []
