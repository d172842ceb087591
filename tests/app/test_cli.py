from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from seedsync.domain import SyncResult, SyncStatus, TableDigestRecord
from seedsync.domain.errors import FieldValidationError
from seedsync.domain.types import FieldError
from seedsync.ui import cli

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    calls: dict[str, object] = {}

    def fake_init(**kwargs: object) -> None:
        calls["init"] = kwargs

    monkeypatch.setattr(cli, "init_database", fake_init)
    return calls


def _fake_sync(calls: dict[str, object], result: SyncResult) -> Callable[..., SyncResult]:
    def fake_sync(table: str, path: str, **kwargs: object) -> SyncResult:
        calls["sync"] = (table, path, kwargs)
        return result

    return fake_sync


def test_sync_defaults(monkeypatch: pytest.MonkeyPatch, captured: dict[str, object]) -> None:
    monkeypatch.setattr(cli, "sync_table", _fake_sync(captured, SyncResult(status=SyncStatus.OK)))

    cli.main(["sync", "prefectures", "data/prefectures.csv"])

    table, path, kwargs = captured["sync"]  # type: ignore[misc]
    assert (table, path) == ("prefectures", "data/prefectures.csv")
    assert kwargs == {
        "source_format": None,
        "truncate": False,
        "force_update": False,
        "nvl_mode": None,
        "datetime_offset": None,
        "parent_table": None,
        "batch_size": None,
    }
    assert captured["init"] == {"database_uri": None}


def test_sync_with_flags(monkeypatch: pytest.MonkeyPatch, captured: dict[str, object]) -> None:
    monkeypatch.setattr(cli, "sync_table", _fake_sync(captured, SyncResult.skipped()))

    cli.main(
        [
            "--database-uri",
            "sqlite+pysqlite:///:memory:",
            "sync",
            "cities",
            "cities.dat",
            "--format",
            "json",
            "--force-update",
            "--nvl",
            "--datetime-offset-hours",
            "9",
            "--parent-table",
            "prefectures",
            "--batch-size",
            "50",
        ]
    )

    _, _, kwargs = captured["sync"]  # type: ignore[misc]
    assert kwargs == {
        "source_format": "json",
        "truncate": False,
        "force_update": True,
        "nvl_mode": True,
        "datetime_offset": timedelta(hours=9),
        "parent_table": "prefectures",
        "batch_size": 50,
    }
    assert captured["init"] == {"database_uri": "sqlite+pysqlite:///:memory:"}


@pytest.mark.parametrize(
    "argv",
    [
        ["sync", "cities", "cities.csv", "--batch-size", "0"],
        ["sync", "cities", "cities.csv", "--truncate", "--force-update"],
        ["sync", "cities"],
        ["sync", "cities", "cities.csv", "--format", "xml"],
    ],
)
def test_argument_errors_exit_with_2(
    monkeypatch: pytest.MonkeyPatch,
    captured: dict[str, object],
    argv: list[str],
) -> None:
    monkeypatch.setattr(cli, "sync_table", _fake_sync(captured, SyncResult(status=SyncStatus.OK)))

    with pytest.raises(SystemExit) as exc:
        cli.main(argv)

    assert exc.value.code == 2
    assert "sync" not in captured


def test_sync_errors_exit_with_1(
    monkeypatch: pytest.MonkeyPatch,
    captured: dict[str, object],
) -> None:
    error = FieldValidationError(2, [FieldError("name", "must be set")])
    result = SyncResult(status=SyncStatus.ERROR, inserted_count=2, errors=(error,))
    monkeypatch.setattr(cli, "sync_table", _fake_sync(captured, result))

    with pytest.raises(SystemExit) as exc:
        cli.main(["sync", "cities", "cities.csv"])

    assert exc.value.code == 1


def test_fatal_errors_exit_with_1(
    monkeypatch: pytest.MonkeyPatch,
    captured: dict[str, object],
) -> None:
    _ = captured

    def exploding_sync(*_: object, **__: object) -> SyncResult:
        raise RuntimeError("database is gone")

    monkeypatch.setattr(cli, "sync_table", exploding_sync)

    with pytest.raises(SystemExit) as exc:
        cli.main(["sync", "cities", "cities.csv"])

    assert exc.value.code == 1


def test_status_and_enable_cache(
    monkeypatch: pytest.MonkeyPatch,
    captured: dict[str, object],
    caplog: pytest.LogCaptureFixture,
) -> None:
    enabled: list[str] = []
    state = TableDigestRecord(table_name="cities", digest="abc", cache_disabled=True)
    monkeypatch.setattr(cli, "table_status", lambda table: state if table == "cities" else None)
    monkeypatch.setattr(cli, "enable_cache", enabled.append)

    with caplog.at_level("INFO", logger="seedsync.ui.cli"):
        cli.main(["status", "cities"])
        cli.main(["status", "towns"])
        cli.main(["enable-cache", "cities"])
        cli.main(["init-db"])

    assert enabled == ["cities"]
    messages = [record.getMessage() for record in caplog.records]
    assert any("cities: digest=abc, cache_disabled=True" in m for m in messages)
    assert "towns has never been synchronised" in messages
    assert "Bookkeeping tables are up to date" in messages
    assert captured["init"] == {"database_uri": None}
