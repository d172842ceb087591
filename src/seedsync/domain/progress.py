"""Progress reporting for synchronisation phases."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol, runtime_checkable

log = logging.getLogger(__name__)


class SyncPhase(StrEnum):
    TRUNCATING = "truncating"
    DISABLING_RECORD_CACHE = "disabling_record_cache"
    READING_DATA = "reading_data"
    DELETING = "deleting"
    INSERTING = "inserting"
    INSERTING_CHUNK = "inserting_chunk"
    UPDATING = "updating"
    UPDATING_CHUNK = "updating_chunk"
    UPDATING_DIGESTS = "updating_digests"
    UPDATING_DIGESTS_CHUNK = "updating_digests_chunk"
    INSERTING_DIGESTS = "inserting_digests"
    INSERTING_DIGESTS_CHUNK = "inserting_digests_chunk"

    @property
    def is_chunk(self) -> bool:
        return self.value.endswith("_chunk")


class ProgressStage(StrEnum):
    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    table_name: str
    phase: SyncPhase
    stage: ProgressStage
    current: int = 0
    total: int = 0


@runtime_checkable
class ProgressObserver(Protocol):
    """Receives before/after notifications; purely observational."""

    def on_progress(self, event: ProgressEvent) -> None: ...


class NullProgressObserver:
    def on_progress(self, event: ProgressEvent) -> None:
        _ = event


class LoggingProgressObserver:
    """Log phase boundaries at INFO and chunk boundaries at DEBUG."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or log

    def on_progress(self, event: ProgressEvent) -> None:
        level = logging.DEBUG if event.phase.is_chunk else logging.INFO
        self._log.log(
            level,
            "%s %s %s (%s/%s)",
            event.table_name,
            event.stage,
            event.phase,
            event.current,
            event.total,
        )


class ProgressReporter:
    """Bind an observer to one table and emit events for it."""

    def __init__(self, table_name: str, observer: ProgressObserver | None = None) -> None:
        self.table_name = table_name
        self.observer: ProgressObserver = observer or NullProgressObserver()

    def before(self, phase: SyncPhase, current: int = 0, total: int = 0) -> None:
        self._emit(phase, ProgressStage.BEFORE, current, total)

    def after(self, phase: SyncPhase, current: int = 0, total: int = 0) -> None:
        self._emit(phase, ProgressStage.AFTER, current, total)

    def _emit(self, phase: SyncPhase, stage: ProgressStage, current: int, total: int) -> None:
        self.observer.on_progress(
            ProgressEvent(
                table_name=self.table_name,
                phase=phase,
                stage=stage,
                current=current,
                total=total,
            )
        )
