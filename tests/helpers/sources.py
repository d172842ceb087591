"""In-memory record sources and recording observers."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from seedsync.domain.types import DEFAULT_ID_COLUMN, SourceRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from seedsync.domain.progress import ProgressEvent


class StaticRecordSource:
    """Record source over a list of dicts; raw bytes follow the row contents."""

    def __init__(
        self,
        rows: Iterable[Mapping[str, Any]],
        *,
        id_column: str = DEFAULT_ID_COLUMN,
    ) -> None:
        self.rows = [dict(row) for row in rows]
        self.id_column = id_column
        self.reads = 0

    def read(self) -> list[SourceRecord]:
        self.reads += 1
        return [SourceRecord.from_mapping(row, id_column=self.id_column) for row in self.rows]

    def raw_bytes(self) -> bytes:
        return json.dumps(self.rows, sort_keys=True, default=str).encode("utf-8")


class RecordingObserver:
    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def on_progress(self, event: ProgressEvent) -> None:
        self.events.append(event)


def prefecture_rows() -> list[dict[str, Any]]:
    return [
        {"id": 1, "name": "Hokkaido", "code": "HK", "population": 5_140_000},
        {"id": 2, "name": "Aomori", "code": "AO", "population": 1_200_000},
        {"id": 3, "name": "Iwate", "code": "IW", "population": 1_180_000},
    ]


def city_rows() -> list[dict[str, Any]]:
    return [
        {"id": 10, "prefecture_id": 1, "name": "Sapporo", "rank": 1},
        {"id": 11, "prefecture_id": 1, "name": "Hakodate", "rank": 2},
        {"id": 20, "prefecture_id": 2, "name": "Hachinohe", "rank": None},
    ]
