"""Small helpers shared by the write-path modules."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from seedsync.domain.ports import SyncUnitOfWork


def chunked[T](items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of ``items`` with at most ``size`` elements."""

    for start in range(0, len(items), size):
        yield list(items[start : start + size])


@contextmanager
def transaction(uow: SyncUnitOfWork) -> Iterator[None]:
    """Commit on success, roll back and re-raise on failure."""

    try:
        yield
    except BaseException:
        uow.rollback()
        raise
    uow.commit()
