"""Tests for the dnsmng command line."""

import os
import signal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from dnsmng.cli.main import _install_signal_handlers, cli
from dnsmng.core.base import WatchSetupError


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def paths(config_file: Path, resolv_conf: Path, state_file: Path) -> list[str]:
    return [
        "--config",
        str(config_file),
        "--resolv-conf",
        str(resolv_conf),
        "--state-file",
        str(state_file),
    ]


def test_set_profile_writes_resolver_and_record(
    runner, paths, resolv_conf: Path, state_file: Path
):
    result = runner.invoke(cli, [*paths, "--set", "cloudflare", "--no-watch"])

    assert result.exit_code == 0, result.output
    assert resolv_conf.read_text() == "nameserver 1.1.1.1\nnameserver 1.0.0.1\n"
    assert state_file.read_bytes() == b"cloudflare"


def test_restart_restores_last_profile_without_rewriting_record(
    runner, paths, resolv_conf: Path, state_file: Path
):
    state_file.parent.mkdir(parents=True)
    state_file.write_text("cloudflare")
    os.utime(state_file, (1_000_000, 1_000_000))
    resolv_conf.write_text("nameserver 8.8.8.8\n")

    result = runner.invoke(cli, [*paths, "--no-watch"])

    assert result.exit_code == 0, result.output
    assert resolv_conf.read_text() == "nameserver 1.1.1.1\nnameserver 1.0.0.1\n"
    assert state_file.read_text() == "cloudflare"
    assert state_file.stat().st_mtime == 1_000_000


def test_no_record_defaults_to_local(runner, paths, resolv_conf: Path, state_file: Path):
    result = runner.invoke(cli, [*paths, "--no-watch"])

    assert result.exit_code == 0, result.output
    assert resolv_conf.read_text() == "nameserver 127.0.0.1\n"
    assert not state_file.exists()


def test_unknown_profile_exits_nonzero_and_writes_nothing(
    runner, paths, resolv_conf: Path, state_file: Path
):
    result = runner.invoke(cli, [*paths, "--set", "google", "--no-watch"])

    assert result.exit_code == 1
    assert "DNS entry for 'google' not found in config" in result.output
    assert not resolv_conf.exists()
    assert not state_file.exists()


def test_missing_config_exits_nonzero(runner, tmp_path: Path, resolv_conf: Path):
    missing = tmp_path / "nope.yaml"
    result = runner.invoke(
        cli, ["--config", str(missing), "--resolv-conf", str(resolv_conf), "--no-watch"]
    )

    assert result.exit_code == 1
    assert "Error reading config file" in result.output
    assert not resolv_conf.exists()


def test_resolver_write_failure_exits_nonzero(runner, config_file: Path, tmp_path: Path):
    result = runner.invoke(
        cli,
        [
            "--config",
            str(config_file),
            "--resolv-conf",
            str(tmp_path / "no-such-dir" / "resolv.conf"),
            "--state-file",
            str(tmp_path / "last_dns"),
            "--set",
            "local",
            "--no-watch",
        ],
    )

    assert result.exit_code == 1
    assert "Error setting DNS" in result.output
    assert not (tmp_path / "last_dns").exists()


def test_paths_from_environment(runner, config_file: Path, resolv_conf: Path, state_file: Path):
    env = {
        "DNSMNG_CONFIG": str(config_file),
        "DNSMNG_RESOLV_CONF": str(resolv_conf),
        "DNSMNG_STATE_FILE": str(state_file),
    }
    result = runner.invoke(cli, ["--set", "local", "--no-watch"], env=env)

    assert result.exit_code == 0, result.output
    assert resolv_conf.read_text() == "nameserver 127.0.0.1\n"
    assert state_file.read_text() == "local"


def test_list_shows_profiles_without_writing(runner, paths, resolv_conf: Path, state_file: Path):
    result = runner.invoke(cli, [*paths, "--list"])

    assert result.exit_code == 0, result.output
    assert "local" in result.output
    assert "cloudflare" in result.output
    assert "1.1.1.1" in result.output
    assert not resolv_conf.exists()
    assert not state_file.exists()


@patch("dnsmng.cli.main._install_signal_handlers")
@patch("dnsmng.cli.main.ResolvConfWatcher")
def test_watches_with_the_applied_addresses(mock_watcher, mock_signals, runner, paths):
    result = runner.invoke(cli, [*paths, "--set", "cloudflare"])

    assert result.exit_code == 0, result.output
    (addresses, writer), _ = mock_watcher.call_args
    assert addresses == ["1.1.1.1", "1.0.0.1"]
    assert writer.path.name == "resolv.conf"
    mock_watcher.return_value.run_forever.assert_called_once()
    mock_signals.assert_called_once_with(mock_watcher.return_value)


@patch("dnsmng.cli.main._install_signal_handlers")
@patch("dnsmng.cli.main.ResolvConfWatcher")
def test_watch_setup_failure_exits_nonzero(mock_watcher, mock_signals, runner, paths):
    mock_watcher.return_value.run_forever.side_effect = WatchSetupError(
        Path("/etc/resolv.conf"), "inotify watch limit reached"
    )

    result = runner.invoke(cli, [*paths, "--set", "local"])

    assert result.exit_code == 1
    assert "inotify watch limit reached" in result.output


@patch("dnsmng.cli.main._install_signal_handlers")
@patch("dnsmng.cli.main.ResolvConfWatcher")
def test_no_watch_skips_watcher(mock_watcher, mock_signals, runner, paths):
    result = runner.invoke(cli, [*paths, "--no-watch"])

    assert result.exit_code == 0, result.output
    mock_watcher.assert_not_called()


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "version" in result.output


@pytest.mark.parametrize("signum", [signal.SIGTERM, signal.SIGINT])
def test_signal_only_requests_stop(signum):
    """The handler must not take the watcher's lock; run_forever cleans up."""
    watcher = MagicMock()
    previous = {s: signal.getsignal(s) for s in (signal.SIGTERM, signal.SIGINT)}
    try:
        _install_signal_handlers(watcher)
        signal.getsignal(signum)(signum, None)
    finally:
        for s, handler in previous.items():
            signal.signal(s, handler)

    watcher.request_stop.assert_called_once()
    watcher.stop.assert_not_called()
