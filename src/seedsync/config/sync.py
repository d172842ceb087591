"""Synchronisation defaults, overridable from the environment."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from seedsync.domain.types import DEFAULT_BATCH_SIZE

from .env import env_bool, env_float, env_int
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class SyncConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    nvl_mode: bool = False
    datetime_offset: timedelta = timedelta(0)


def get_sync_config() -> SyncConfig:
    batch_size = env_int("SEEDSYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE)
    if batch_size < 1:
        raise ConfigurationError(f"SEEDSYNC_BATCH_SIZE must be positive, got {batch_size}")
    return SyncConfig(
        batch_size=batch_size,
        nvl_mode=env_bool("SEEDSYNC_NVL_MODE", False),
        datetime_offset=timedelta(hours=env_float("SEEDSYNC_DATETIME_OFFSET_HOURS", 0.0)),
    )
