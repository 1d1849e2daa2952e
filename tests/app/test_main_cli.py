from __future__ import annotations

from typing import TYPE_CHECKING, cast

import pytest

from usersweep.adapters.graph import GraphGroupMembersFeed
from usersweep.adapters.jsonl import JsonLinesIdentityFeed
from usersweep.common.run_lock import RunLock
from usersweep.domain.model import CancelMethod
from usersweep.domain.reconciliation import RunOptions
from usersweep.ui import cli

if TYPE_CHECKING:
    from pathlib import Path

    from usersweep.config import ReconciliationConfig

CONFIG_TOML = """
[azure]
user_id_claim = "userPrincipalName"

[drupal]
user_id_field = "name"

[deletion]
user_cancel_method = "block"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "usersweep.toml"
    path.write_text(CONFIG_TOML, encoding="utf-8")
    return path


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    path = tmp_path / "users.jsonl"
    path.write_text('{"userPrincipalName": "a@example.org"}\n', encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("USERSWEEP_USER_ID_CLAIM", "USERSWEEP_USER_ID_FIELD", "GRAPH_ACCESS_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("USERSWEEP_DATA_DIR", str(tmp_path / "data"))


def test_reconcile_with_records_file(
    monkeypatch: pytest.MonkeyPatch,
    config_file: Path,
    records_file: Path,
    tmp_path: Path,
) -> None:
    captured: dict[str, object] = {}

    def fake_reconcile(config: object, **kwargs: object) -> None:
        captured["config"] = config
        captured.update(kwargs)

    monkeypatch.setattr(cli, "reconcile_accounts", fake_reconcile)

    cli.main(
        [
            "reconcile",
            "--config",
            str(config_file),
            "--records",
            str(records_file),
            "--page-size",
            "10",
            "--dry-run",
            "--lock-file",
            str(tmp_path / "run.lock"),
        ]
    )

    feed = captured["feed"]
    assert isinstance(feed, JsonLinesIdentityFeed)
    assert feed.page_size == 10
    assert captured["options"] == RunOptions(dry_run=True, debug=False)
    config = cast("ReconciliationConfig", captured["config"])
    assert config.user_cancel_method is CancelMethod.BLOCK
    assert (tmp_path / "run.lock").read_text(encoding="ascii") == ""


def test_reconcile_defaults_to_graph_feed(
    monkeypatch: pytest.MonkeyPatch,
    config_file: Path,
) -> None:
    captured: dict[str, object] = {}

    def fake_reconcile(_config: object, **kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(cli, "reconcile_accounts", fake_reconcile)
    monkeypatch.setenv("GRAPH_ACCESS_TOKEN", "token")
    monkeypatch.setenv("GRAPH_GROUP_ID", "group")

    cli.main(["reconcile", "--config", str(config_file)])

    assert isinstance(captured["feed"], GraphGroupMembersFeed)
    assert captured["options"] == RunOptions()


def test_mark_and_sweep_commands(
    monkeypatch: pytest.MonkeyPatch,
    config_file: Path,
    records_file: Path,
) -> None:
    calls: list[str] = []

    def fake_mark(_config: object, **_kwargs: object) -> tuple[int, int]:
        calls.append("mark")
        return (0, 0)

    def fake_sweep(_config: object, **_kwargs: object) -> None:
        calls.append("sweep")

    monkeypatch.setattr(cli, "mark_accounts", fake_mark)
    monkeypatch.setattr(cli, "sweep_accounts", fake_sweep)

    cli.main(["mark", "--config", str(config_file), "--records", str(records_file)])
    cli.main(["sweep", "--config", str(config_file)])

    assert calls == ["mark", "sweep"]


def test_missing_configuration_exits_with_code_2() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sweep"])

    assert excinfo.value.code == 2


def test_invalid_page_size_exits_with_code_2(config_file: Path, records_file: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(
            [
                "reconcile",
                "--config",
                str(config_file),
                "--records",
                str(records_file),
                "--page-size",
                "0",
            ]
        )

    assert excinfo.value.code == 2


def test_held_lock_exits_with_code_1(
    monkeypatch: pytest.MonkeyPatch,
    config_file: Path,
    tmp_path: Path,
) -> None:
    lock_path = tmp_path / "run.lock"

    def fail_sweep(_config: object, **_kwargs: object) -> None:
        raise AssertionError("sweep must not run while another run holds the lock")

    monkeypatch.setattr(cli, "sweep_accounts", fail_sweep)

    with RunLock(lock_path), pytest.raises(SystemExit) as excinfo:
        cli.main(["sweep", "--config", str(config_file), "--lock-file", str(lock_path)])

    assert excinfo.value.code == 1


def test_fatal_errors_exit_with_code_1(
    monkeypatch: pytest.MonkeyPatch,
    config_file: Path,
    tmp_path: Path,
) -> None:
    def broken_sweep(_config: object, **_kwargs: object) -> None:
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(cli, "sweep_accounts", broken_sweep)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sweep", "--config", str(config_file), "--lock-file", str(tmp_path / "l")])

    assert excinfo.value.code == 1
    assert not (tmp_path / "l").exists()
