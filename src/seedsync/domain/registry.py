"""Explicit table-to-entity registry populated by the host application."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from seedsync.domain.errors import UnknownTableError
from seedsync.domain.types import DEFAULT_ID_COLUMN, SyncedIds
from seedsync.domain.validation import RowValidator, require_non_null_columns

type AfterSyncValidator = Callable[[SyncedIds], Iterable[str]]


def _default_validators() -> tuple[RowValidator, ...]:
    return (require_non_null_columns,)


@dataclass(frozen=True, slots=True, kw_only=True)
class EntityDescriptor:
    """How the engine treats one target table."""

    table_name: str
    id_column: str = DEFAULT_ID_COLUMN
    validators: tuple[RowValidator, ...] = field(default_factory=_default_validators)
    after_sync_validate: AfterSyncValidator | None = None
    # parent table name -> column of this table holding the parent's id
    parent_keys: Mapping[str, str] = field(default_factory=dict[str, str])

    def parent_key_column(self, parent_table: str) -> str:
        return self.parent_keys.get(parent_table) or f"{singularize(parent_table)}_id"


def singularize(name: str) -> str:
    """Naive English singular of a table name (``categories`` -> ``category``)."""

    if name.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


class TableRegistry(Mapping[str, EntityDescriptor]):
    """Mapping of table name to :class:`EntityDescriptor`."""

    def __init__(self, descriptors: Iterable[EntityDescriptor] = ()) -> None:
        self._descriptors: dict[str, EntityDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: EntityDescriptor) -> None:
        self._descriptors[descriptor.table_name] = descriptor

    def resolve(self, table_name: str) -> EntityDescriptor:
        try:
            return self._descriptors[table_name]
        except KeyError:
            raise UnknownTableError(
                f"{table_name} isn't registered as a synchronisable table"
            ) from None

    def __getitem__(self, table_name: str) -> EntityDescriptor:
        return self._descriptors[table_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)
