# SPDX-License-Identifier: MIT

from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from typer.testing import CliRunner

from achievement_keeper import codec
from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.repository.status_cache import STATUS_CACHE_REPO
from achievement_keeper.terminal import watch as watch_command
from achievement_keeper.terminal.app import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_config_view(runner: CliRunner) -> None:
    result = runner.invoke(app, ["config", "view"])

    assert result.exit_code == 0
    assert "time_format" in result.output
    assert "24h" in result.output


def test_config_set_rejects_unknown_log_level(runner: CliRunner) -> None:
    result = runner.invoke(app, ["c", "s", "--log-level", "LOUD"])

    assert result.exit_code == 2
    assert CONFIGURATION_REPO.get_config()["log_level"] == "WARNING"


def test_config_set_updates_settings(runner: CliRunner) -> None:
    result = runner.invoke(
        app, ["c", "s", "--debounce-ms", "250", "--default-unlock-mode", "random"]
    )

    assert result.exit_code == 0
    config = CONFIGURATION_REPO.get_config()
    assert config["debounce_ms"] == 250
    assert config["default_unlock_mode"] == "random"


def test_directory_add_and_list(runner: CliRunner, tmp_path: Path) -> None:
    saves = tmp_path / "saves"

    result = runner.invoke(app, ["directory", "add", str(saves)])
    assert result.exit_code == 0

    directories = CONFIGURATION_REPO.get_directories()
    assert [directory["path"] for directory in directories] == [str(saves)]

    result = runner.invoke(app, ["d", "ls"])
    assert result.exit_code == 0
    assert "saves" in result.output


def test_directory_toggle_unknown_path(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["d", "t", str(tmp_path / "nowhere")])

    assert result.exit_code == 1


def test_toggle_then_unlock_writes_the_file(
    runner: CliRunner, tmp_path: Path
) -> None:
    root = tmp_path / "RUNE"

    result = runner.invoke(app, ["status", "toggle", "440", "ACH_WIN"])
    assert result.exit_code == 0
    assert "achieved" in result.output

    result = runner.invoke(app, ["unlock", "440", "--root", str(root)])
    assert result.exit_code == 0, result.output

    records = codec.parse_records((root / "440" / "achievements.ini").read_text())
    assert [(record["id"], record["achieved"]) for record in records] == [
        ("ACH_WIN", True)
    ]
    assert records[0]["unlock_time"] > 0
    assert STATUS_CACHE_REPO.has_bucket("440", str(root))
    assert not STATUS_CACHE_REPO.has_bucket("440", "auto")


def test_custom_unlock_needs_a_timestamp(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["u", "440", "--root", str(tmp_path), "--mode", "custom"]
    )

    assert result.exit_code == 2


def test_unlock_without_file_or_root(runner: CliRunner) -> None:
    result = runner.invoke(app, ["unlock", "440"])

    assert result.exit_code == 2


def test_backup_preview_of_bad_file(runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{")

    result = runner.invoke(app, ["backup", "preview", str(path)])

    assert result.exit_code == 1


def test_backup_restore_rejects_unknown_strategy(
    runner: CliRunner, tmp_path: Path
) -> None:
    result = runner.invoke(
        app, ["b", "r", str(tmp_path / "backup.json"), "--strategy", "merge"]
    )

    assert result.exit_code == 2


class RecordingMonitor:
    instances: list["RecordingMonitor"] = []

    def __init__(self, roots: list[str], debounce_seconds: float) -> None:
        self.roots = roots
        self.debounce_seconds = debounce_seconds
        self.calls: list[str] = []
        RecordingMonitor.instances.append(self)

    def subscribe(self, subscriber: Any) -> None:
        self.calls.append("subscribe")

    def start(self) -> list[Any]:
        self.calls.append("start")
        return []

    def stop(self) -> None:
        self.calls.append("stop")


class InterruptedEvent:
    def wait(self, timeout: float | None = None) -> bool:
        raise KeyboardInterrupt


def test_watch_stops_monitor_on_interrupt(
    runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    RecordingMonitor.instances.clear()
    monkeypatch.setattr(watch_command, "ChangeMonitor", RecordingMonitor)
    monkeypatch.setattr(
        watch_command, "threading", SimpleNamespace(Event=InterruptedEvent)
    )

    result = runner.invoke(app, ["watch"])

    assert result.exit_code == 0
    [monitor] = RecordingMonitor.instances
    assert monitor.debounce_seconds == 0.5
    assert monitor.calls == ["subscribe", "start", "stop"]
