from __future__ import annotations

import logging

import pytest

from seedsync.domain.progress import (
    LoggingProgressObserver,
    ProgressReporter,
    ProgressStage,
    SyncPhase,
)
from tests.helpers.sources import RecordingObserver


def test_reporter_emits_events_for_its_table() -> None:
    observer = RecordingObserver()
    reporter = ProgressReporter("cities", observer)

    reporter.before(SyncPhase.INSERTING, 0, 10)
    reporter.after(SyncPhase.INSERTING, 10, 10)

    assert [(e.phase, e.stage, e.current, e.total) for e in observer.events] == [
        (SyncPhase.INSERTING, ProgressStage.BEFORE, 0, 10),
        (SyncPhase.INSERTING, ProgressStage.AFTER, 10, 10),
    ]
    assert {event.table_name for event in observer.events} == {"cities"}


def test_reporter_without_observer_is_silent() -> None:
    ProgressReporter("cities").after(SyncPhase.DELETING, 1, 1)


def test_chunk_phases() -> None:
    assert SyncPhase.UPDATING_DIGESTS_CHUNK.is_chunk
    assert not SyncPhase.UPDATING_DIGESTS.is_chunk


def test_logging_observer_logs_chunks_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    reporter = ProgressReporter("cities", LoggingProgressObserver())

    with caplog.at_level(logging.DEBUG, logger="seedsync.domain.progress"):
        reporter.before(SyncPhase.UPDATING)
        reporter.after(SyncPhase.UPDATING_CHUNK, 5, 9)

    levels = [(record.levelno, record.getMessage()) for record in caplog.records]
    assert levels == [
        (logging.INFO, "cities before updating (0/0)"),
        (logging.DEBUG, "cities after updating_chunk (5/9)"),
    ]
