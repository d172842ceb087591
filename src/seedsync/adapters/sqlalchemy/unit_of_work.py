"""SQLAlchemy-backed unit of work for table synchronisation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from seedsync.adapters.sqlalchemy.mappings import start_mappers
from seedsync.adapters.sqlalchemy.migrations import upgrade_head
from seedsync.adapters.sqlalchemy.reflection import TableReflector
from seedsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyDigestLedgerRepository,
    SqlAlchemyTableStateRepository,
    SqlAlchemyTargetTableRepository,
)
from seedsync.config import get_database_config
from seedsync.domain.ports import SyncRepositories
from seedsync.domain.types import DEFAULT_ID_COLUMN

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None
    _reflector: TableReflector = field(default_factory=TableReflector)

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._reflector = TableReflector()
        self._engine = value

    @property
    def reflector(self) -> TableReflector:
        return self._reflector

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call seedsync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the engine, migrate the bookkeeping tables and reset reflection."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is None:
        config = get_database_config()
        engine = create_engine(database_uri or config.uri, echo=config.echo, future=True)
    start_mappers()
    upgrade_head(engine=engine)
    log.info("SQLAlchemy adapter started on %s", engine.url.render_as_string())

    _STATE.engine = engine
    return engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemySyncUnitOfWork:
    """One session shared by the bookkeeping and target-table repositories."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._reflector = _STATE.reflector
        self._session: Session | None = None
        self._repositories: SyncRepositories | None = None

    def __enter__(self) -> SqlAlchemySyncUnitOfWork:
        self.session = self.session_factory()
        self._repositories = SyncRepositories(
            ledger=SqlAlchemyDigestLedgerRepository(self.session),
            table_states=SqlAlchemyTableStateRepository(self.session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> SyncRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    def target_table(
        self,
        table_name: str,
        *,
        id_column: str = DEFAULT_ID_COLUMN,
    ) -> SqlAlchemyTargetTableRepository:
        # reflect on the session's own connection so an open transaction is kept
        table = self._reflector.table(table_name, self.session.connection())
        return SqlAlchemyTargetTableRepository(self.session, table, id_column)

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


if TYPE_CHECKING:
    from seedsync.domain.ports import SyncUnitOfWork

    _uow_check: SyncUnitOfWork = SqlAlchemySyncUnitOfWork()
