"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.dialects import postgresql

from seedsync.adapters.sqlalchemy.mappings import seed_record_table
from seedsync.domain.errors import UnknownColumnError
from seedsync.domain.types import DigestEntry, TableDigestRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy import Table
    from sqlalchemy.orm import InstrumentedAttribute, Session
    from sqlalchemy.sql.dml import Insert

    from seedsync.domain.types import Digest, RecordId

log = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=UTC)


class SqlAlchemyTargetTableRepository:
    """Plain-row access to one reflected target table."""

    def __init__(self, session: Session, table: Table, id_column: str) -> None:
        if id_column not in table.c:
            raise UnknownColumnError(f"{table.name}.{id_column} is not found")
        self.session = session
        self.table = table
        self._id = table.c[id_column]

    @property
    def table_name(self) -> str:
        return self.table.name

    def existing_ids(self) -> set[RecordId]:
        return set(self.session.execute(select(self._id)).scalars())

    def count(self, *, consistent: bool = False) -> int:
        if consistent:
            # pending ORM state must be visible to the count
            self.session.flush()
        stmt = select(func.count()).select_from(self.table)
        return int(self.session.execute(stmt).scalar_one())

    def delete_all(self) -> int:
        result = self.session.execute(delete(self.table))
        return result.rowcount or 0

    def delete_ids(self, ids: Iterable[RecordId]) -> int:
        id_list = list(ids)
        if not id_list:
            return 0
        result = self.session.execute(delete(self.table).where(self._id.in_(id_list)))
        return result.rowcount or 0

    def insert_rows(self, rows: Sequence[Mapping[str, object]]) -> None:
        # rows with differing key sets cannot share one executemany
        groups: dict[tuple[str, ...], list[Mapping[str, object]]] = defaultdict(list)
        for row in rows:
            groups[tuple(sorted(row))].append(row)
        for group in groups.values():
            self.session.execute(self._insert_ignore(), [dict(row) for row in group])

    def fetch_rows(self, ids: Iterable[RecordId]) -> dict[RecordId, dict[str, object]]:
        id_list = list(ids)
        if not id_list:
            return {}
        stmt = select(self.table).where(self._id.in_(id_list))
        rows = self.session.execute(stmt).mappings()
        return {row[self._id.name]: dict(row) for row in rows}

    def update_row(self, record_id: RecordId, values: Mapping[str, object]) -> None:
        if not values:
            return
        stmt = update(self.table).where(self._id == record_id).values(dict(values))
        self.session.execute(stmt)

    def distinct_values(self, column: str, ids: Iterable[RecordId]) -> set[object]:
        if column not in self.table.c:
            raise UnknownColumnError(f"{self.table.name}.{column} is not found")
        id_list = list(ids)
        if not id_list:
            return set()
        stmt = select(self.table.c[column]).where(self._id.in_(id_list)).distinct()
        return set(self.session.execute(stmt).scalars())

    def _insert_ignore(self) -> Insert:
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(self.table).on_conflict_do_nothing()
        if dialect in {"mysql", "mariadb"}:
            return insert(self.table).prefix_with("IGNORE")
        return insert(self.table).prefix_with("OR IGNORE")


class SqlAlchemyDigestLedgerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def digests(self, table_name: str) -> dict[str, Digest | None]:
        stmt = select(seed_record_table.c.record_id, seed_record_table.c.digest).where(
            seed_record_table.c.table_name == table_name
        )
        return {record_id: digest for record_id, digest in self.session.execute(stmt)}

    def record_ids(self, table_name: str) -> set[str]:
        stmt = select(seed_record_table.c.record_id).where(
            seed_record_table.c.table_name == table_name
        )
        return set(self.session.execute(stmt).scalars())

    def delete_all(self, table_name: str) -> int:
        stmt = delete(seed_record_table).where(seed_record_table.c.table_name == table_name)
        return self.session.execute(stmt).rowcount or 0

    def delete_ids(self, table_name: str, record_ids: Iterable[str]) -> int:
        id_list = list(record_ids)
        if not id_list:
            return 0
        stmt = (
            delete(seed_record_table)
            .where(seed_record_table.c.table_name == table_name)
            .where(seed_record_table.c.record_id.in_(id_list))
        )
        return self.session.execute(stmt).rowcount or 0

    def add_entries(self, table_name: str, digests: Mapping[str, Digest]) -> None:
        now = _now()
        self.session.add_all(
            DigestEntry(
                table_name=table_name,
                record_id=record_id,
                digest=digest,
                created_at=now,
                updated_at=now,
            )
            for record_id, digest in digests.items()
        )

    def bulk_update_digests(self, table_name: str, digests: Mapping[str, Digest]) -> None:
        if not digests:
            return
        record_id = seed_record_table.c.record_id
        stmt = (
            update(seed_record_table)
            .where(seed_record_table.c.table_name == table_name)
            .where(record_id.in_(list(digests)))
            .values(digest=case(dict(digests), value=record_id), updated_at=_now())
        )
        self.session.execute(stmt)

    def invalidate(self, table_name: str, record_ids: Iterable[str]) -> int:
        id_list = list(record_ids)
        if not id_list:
            return 0
        stmt = (
            update(seed_record_table)
            .where(seed_record_table.c.table_name == table_name)
            .where(seed_record_table.c.record_id.in_(id_list))
            .values(digest=None, updated_at=_now())
        )
        return self.session.execute(stmt).rowcount or 0


class SqlAlchemyTableStateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, table_name: str) -> TableDigestRecord | None:
        column = cast("InstrumentedAttribute[str]", TableDigestRecord.table_name)
        stmt = select(TableDigestRecord).where(column == table_name)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_or_create(self, table_name: str) -> TableDigestRecord:
        state = self.get(table_name)
        if state is None:
            state = TableDigestRecord(table_name=table_name, updated_at=_now())
            self.session.add(state)
            self.session.flush()
        return state

    def set_digest(self, table_name: str, digest: Digest) -> None:
        state = self.get_or_create(table_name)
        state.digest = digest
        state.updated_at = _now()

    def clear_digest(self, table_name: str) -> None:
        self._update(table_name, "digest", None)

    def disable_cache(self, table_name: str) -> None:
        self._update(table_name, "cache_disabled", True)

    def enable_cache(self, table_name: str) -> None:
        self._update(table_name, "cache_disabled", False)

    def _update(self, table_name: str, attribute: str, value: object) -> None:
        state = self.get_or_create(table_name)
        setattr(state, attribute, value)
        state.updated_at = _now()
        log.debug("Set %s of %s to %r", attribute, table_name, value)
