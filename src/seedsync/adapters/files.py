"""Record sources reading CSV and JSON files."""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

from seedsync.domain.conversion import coerce_text
from seedsync.domain.types import DEFAULT_ID_COLUMN, SourceRecord

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from seedsync.domain.types import ColumnInfo

log = logging.getLogger(__name__)


class SourceFormatError(ValueError):
    """Raised when a source file cannot be parsed into records."""


class _FileSource:
    def __init__(self, path: Path | str, *, id_column: str = DEFAULT_ID_COLUMN) -> None:
        self.path = Path(path)
        self.id_column = id_column
        self._raw: bytes | None = None

    def raw_bytes(self) -> bytes:
        if self._raw is None:
            self._raw = self.path.read_bytes()
        return self._raw

    def _text(self) -> str:
        return self.raw_bytes().decode("utf-8-sig")

    def _record(self, values: Mapping[str, Any], position: int) -> SourceRecord:
        try:
            return SourceRecord.from_mapping(values, id_column=self.id_column)
        except (KeyError, ValueError) as exc:
            raise SourceFormatError(f"{self.path}: record {position}: {exc}") from exc


class CsvRecordSource(_FileSource):
    """Rows of a CSV file with a header line.

    Empty cells are read as ``None``. When ``columns`` is given, cells of numeric
    and boolean columns are typed so that ids and values compare equal to what
    the database returns.
    """

    def __init__(
        self,
        path: Path | str,
        columns: Mapping[str, ColumnInfo] | None = None,
        *,
        id_column: str = DEFAULT_ID_COLUMN,
    ) -> None:
        super().__init__(path, id_column=id_column)
        self.columns = columns or {}

    def read(self) -> Iterator[SourceRecord]:
        reader = csv.DictReader(io.StringIO(self._text(), newline=""))
        if reader.fieldnames is None:
            return
        if self.id_column not in reader.fieldnames:
            raise SourceFormatError(f"{self.path}: no '{self.id_column}' column in header")
        count = 0
        for position, row in enumerate(reader, start=1):
            values = {name: self._cell(name, value) for name, value in row.items()}
            count += 1
            yield self._record(values, position)
        log.debug("Read %s records from %s", count, self.path)

    def _cell(self, name: str | None, value: str | None) -> object:
        if name is None:
            raise SourceFormatError(f"{self.path}: row has more cells than the header")
        if value is None or value == "":
            return None
        column = self.columns.get(name)
        if column is None:
            return value
        return coerce_text(value, column.kind)


class JsonRecordSource(_FileSource):
    """A JSON array of objects, or one object per line (JSON lines)."""

    def read(self) -> Iterator[SourceRecord]:
        for position, item in enumerate(self._items(), start=1):
            if not isinstance(item, dict):
                raise SourceFormatError(f"{self.path}: record {position} is not an object")
            yield self._record(cast("dict[str, Any]", item), position)

    def _items(self) -> list[object]:
        text = self._text().strip()
        if not text:
            return []
        try:
            if text.startswith("["):
                return cast("list[object]", json.loads(text))
            return [json.loads(line) for line in text.splitlines() if line.strip()]
        except json.JSONDecodeError as exc:
            raise SourceFormatError(f"{self.path}: invalid JSON: {exc}") from exc
