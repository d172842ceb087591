from __future__ import annotations

import pytest

from seedsync.domain.errors import UnknownTableError
from seedsync.domain.registry import EntityDescriptor, TableRegistry, singularize
from seedsync.domain.validation import require_non_null_columns


@pytest.mark.parametrize(
    ("plural", "singular"),
    [
        ("prefectures", "prefecture"),
        ("categories", "category"),
        ("courses", "course"),
        ("address", "address"),
        ("staff", "staff"),
    ],
)
def test_singularize(plural: str, singular: str) -> None:
    assert singularize(plural) == singular


def test_parent_key_column_prefers_explicit_mapping() -> None:
    descriptor = EntityDescriptor(
        table_name="cities",
        parent_keys={"regions": "area_code"},
    )

    assert descriptor.parent_key_column("regions") == "area_code"
    assert descriptor.parent_key_column("prefectures") == "prefecture_id"


def test_descriptor_defaults() -> None:
    descriptor = EntityDescriptor(table_name="cities")

    assert descriptor.id_column == "id"
    assert descriptor.validators == (require_non_null_columns,)
    assert descriptor.after_sync_validate is None


def test_registry_resolves_registered_tables() -> None:
    registry = TableRegistry([EntityDescriptor(table_name="cities")])
    registry.register(EntityDescriptor(table_name="towns", id_column="code"))

    assert registry.resolve("towns").id_column == "code"
    assert set(registry) == {"cities", "towns"}
    assert len(registry) == 2
    with pytest.raises(UnknownTableError, match="villages"):
        registry.resolve("villages")
