"""Content digests for records and whole source files."""

from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from seedsync.domain.types import Digest, SourceRecord


def canonical_bytes(attributes: Mapping[str, object]) -> bytes:
    """Serialise ``attributes`` so that key order never changes the output."""

    payload = json.dumps(
        dict(attributes),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return payload.encode("utf-8")


def record_digest(record: SourceRecord) -> Digest:
    return hashlib.sha1(canonical_bytes(record.attributes), usedforsecurity=False).hexdigest()


def table_digest(raw: bytes) -> Digest:
    """Digest of the exact source bytes, used for the whole-run skip check."""

    return hashlib.sha1(raw, usedforsecurity=False).hexdigest()
