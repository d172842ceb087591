"""Target tables used by the synchronisation tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, func, text

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

target_metadata = MetaData()

prefectures = Table(
    "prefectures",
    target_metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("name", String(50), nullable=False),
    Column("code", String(10), nullable=True, unique=True),
    Column("population", Integer, nullable=True),
)

cities = Table(
    "cities",
    target_metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("prefecture_id", Integer, nullable=True),
    Column("name", String(50), nullable=False),
    Column("rank", Integer, nullable=False, server_default=text("1")),
    Column("founded_at", DateTime, nullable=True),
    Column("created_at", DateTime, nullable=True, server_default=func.current_timestamp()),
)


def create_target_tables(engine: Engine) -> None:
    target_metadata.create_all(engine)


def fetch_all(engine: Engine, table: Table) -> dict[int, dict[str, object]]:
    with engine.connect() as connection:
        rows = connection.execute(table.select().order_by(table.c.id)).mappings()
        return {row["id"]: dict(row) for row in rows}
