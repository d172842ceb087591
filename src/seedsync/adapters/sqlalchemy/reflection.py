"""Target-table reflection: column metadata and default registries."""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    inspect,
)
from sqlalchemy.exc import NoSuchTableError

from seedsync.adapters.sqlalchemy.mappings import BOOKKEEPING_TABLES
from seedsync.domain.errors import UnknownTableError
from seedsync.domain.registry import EntityDescriptor, TableRegistry
from seedsync.domain.types import DATABASE_DEFAULT, DEFAULT_ID_COLUMN, ColumnInfo, ColumnKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sqlalchemy import Column
    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.types import TypeEngine

log = logging.getLogger(__name__)

_QUOTED_LITERAL: Final = re.compile(r"^'(?P<body>(?:[^']|'')*)'(?:::[\w\s]+)?$")
_NULL_LITERALS: Final[frozenset[str]] = frozenset({"null", "NULL"})


class TableReflector:
    """Reflect target tables once per metadata collection."""

    def __init__(self) -> None:
        self._metadata = MetaData()

    def table(self, table_name: str, bind: Engine | Connection) -> Table:
        existing = self._metadata.tables.get(table_name)
        if existing is not None:
            return existing
        try:
            return Table(table_name, self._metadata, autoload_with=bind)
        except NoSuchTableError:
            raise UnknownTableError(f"Table {table_name} does not exist") from None


def column_kind(type_: TypeEngine[object]) -> ColumnKind:
    # Boolean before Integer and Float before Numeric: dialect types subclass both
    if isinstance(type_, Boolean):
        return ColumnKind.BOOLEAN
    if isinstance(type_, Integer):
        return ColumnKind.INTEGER
    if isinstance(type_, Float):
        return ColumnKind.FLOAT
    if isinstance(type_, Numeric):
        return ColumnKind.DECIMAL
    if isinstance(type_, DateTime):
        return ColumnKind.DATETIME
    if isinstance(type_, Date):
        return ColumnKind.DATE
    if isinstance(type_, String):
        return ColumnKind.STRING
    return ColumnKind.OTHER


def parse_server_default(text: str, kind: ColumnKind) -> object:
    """Turn a reflected ``DEFAULT`` clause into a Python value.

    Anything that is not a plain literal (``CURRENT_TIMESTAMP``, ``nextval(...)``)
    yields :data:`DATABASE_DEFAULT`, leaving the value to the database.
    """

    stripped = text.strip()
    while stripped.startswith("(") and stripped.endswith(")"):
        stripped = stripped[1:-1].strip()
    if stripped in _NULL_LITERALS:
        return None

    match = _QUOTED_LITERAL.match(stripped)
    literal = match.group("body").replace("''", "'") if match else stripped
    try:
        if kind is ColumnKind.INTEGER:
            return int(literal)
        if kind is ColumnKind.FLOAT:
            return float(literal)
        if kind is ColumnKind.DECIMAL:
            return Decimal(literal)
        if kind is ColumnKind.BOOLEAN:
            lowered = literal.lower()
            if lowered in {"1", "true", "t"}:
                return True
            if lowered in {"0", "false", "f"}:
                return False
            return DATABASE_DEFAULT
    except (ValueError, InvalidOperation):
        return DATABASE_DEFAULT
    return literal if match else DATABASE_DEFAULT


def column_info(column: Column[object]) -> ColumnInfo:
    kind = column_kind(column.type)
    has_default = False
    default: object = None
    server_default = column.server_default
    if server_default is not None:
        arg = getattr(server_default, "arg", None)
        text = arg if isinstance(arg, str) else getattr(arg, "text", None)
        default = DATABASE_DEFAULT if text is None else parse_server_default(text, kind)
        has_default = default is not None
    return ColumnInfo(
        name=column.name,
        kind=kind,
        nullable=bool(column.nullable),
        has_default=has_default,
        default=default,
        primary_key=column.primary_key,
        timezone=bool(getattr(column.type, "timezone", False)),
    )


class SqlAlchemyColumnMetadataProvider:
    """Column metadata read from the live database schema."""

    def __init__(self, engine: Engine, reflector: TableReflector | None = None) -> None:
        self._engine = engine
        self._reflector = reflector or TableReflector()
        self._cache: dict[str, dict[str, ColumnInfo]] = {}

    def columns(self, table_name: str) -> Mapping[str, ColumnInfo]:
        cached = self._cache.get(table_name)
        if cached is None:
            table = self._reflector.table(table_name, self._engine)
            cached = {column.name: column_info(column) for column in table.columns}
            self._cache[table_name] = cached
        return cached


def reflect_registry(engine: Engine, *, tables: Iterable[str] | None = None) -> TableRegistry:
    """Build a registry with one default descriptor per table in the database."""

    inspector = inspect(engine)
    available = inspector.get_table_names()
    names = available if tables is None else list(tables)
    missing = sorted(set(names) - set(available))
    if missing:
        raise UnknownTableError(f"Table {', '.join(missing)} does not exist")
    registry = TableRegistry()
    for name in names:
        if name in BOOKKEEPING_TABLES:
            continue
        primary_key = inspector.get_pk_constraint(name).get("constrained_columns") or []
        id_column = primary_key[0] if len(primary_key) == 1 else DEFAULT_ID_COLUMN
        registry.register(EntityDescriptor(table_name=name, id_column=id_column))
    log.debug("Reflected %s synchronisable tables", len(registry))
    return registry
