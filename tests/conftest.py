from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from seedsync.adapters.sqlalchemy import (
    SqlAlchemyColumnMetadataProvider,
    SqlAlchemySyncUnitOfWork,
    reflect_registry,
    shutdown,
    startup,
)
from seedsync.domain import SyncOrchestrator
from tests.helpers.schema import create_target_tables
from tests.helpers.sources import RecordingObserver

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_target_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemySyncUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemySyncUnitOfWork:
        return SqlAlchemySyncUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def orchestrator(
    sqlite_engine: Engine,
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    observer: RecordingObserver,
) -> SyncOrchestrator:
    return SyncOrchestrator(
        unit_of_work_factory=sqlite_unit_of_work,
        registry=reflect_registry(sqlite_engine),
        columns=SqlAlchemyColumnMetadataProvider(sqlite_engine),
        observer=observer,
    )
