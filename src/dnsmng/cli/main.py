"""CLI entry point — the `dnsmng` command."""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from types import FrameType
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dnsmng.core.base import DnsConfig, DnsmngError
from dnsmng.core.config import load_config
from dnsmng.core.log import setup_logging
from dnsmng.core.paths import (
    CONFIG_ENV,
    DEFAULT_CONFIG_PATH,
    LAST_DNS_PATH,
    RESOLV_CONF_ENV,
    RESOLV_CONF_PATH,
    STATE_FILE_ENV,
)
from dnsmng.core.resolver import ResolverWriter
from dnsmng.core.restore import DEFAULT_PROFILE, restore
from dnsmng.core.state import LastSelectionStore
from dnsmng.core.watcher import ResolvConfWatcher

console = Console()


def _fail(error: DnsmngError) -> NoReturn:
    console.print(f"[red]{escape(str(error))}[/red]")
    sys.exit(1)


def _render_profiles(config: DnsConfig, store: LastSelectionStore) -> None:
    """Print configured profiles, marking the one that would be restored."""
    try:
        current = store.load() or DEFAULT_PROFILE
    except DnsmngError:
        current = DEFAULT_PROFILE

    table = Table(title="DNS profiles")
    table.add_column("Profile", style="bold")
    table.add_column("Nameservers")
    table.add_column("Current", justify="center")

    for name in config.profile_names():
        addresses = config.lookup(name) or []
        marker = "[green]●[/green]" if name == current else ""
        table.add_row(escape(name), escape(", ".join(addresses)), marker)

    console.print(table)


def _install_signal_handlers(watcher: ResolvConfWatcher) -> None:
    def _handle(signum: int, frame: FrameType | None) -> None:
        watcher.request_stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


@click.command()
@click.version_option(package_name="dnsmng")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    envvar=CONFIG_ENV,
    show_default=True,
    help="Path to the config file.",
)
@click.option(
    "--set",
    "profile",
    default="",
    help="DNS profile to set (e.g. google, cloudflare). Defaults to the last one used.",
)
@click.option("--list", "list_profiles", is_flag=True, help="List configured profiles and exit.")
@click.option(
    "--no-watch", is_flag=True, help="Apply the profile and exit instead of guarding resolv.conf."
)
@click.option(
    "--resolv-conf",
    type=click.Path(dir_okay=False, path_type=Path),
    default=RESOLV_CONF_PATH,
    envvar=RESOLV_CONF_ENV,
    show_default=True,
    help="Resolver file to manage.",
)
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=LAST_DNS_PATH,
    envvar=STATE_FILE_ENV,
    show_default=True,
    help="Where the last selected profile is remembered.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(
    config_path: Path,
    profile: str,
    list_profiles: bool,
    no_watch: bool,
    resolv_conf: Path,
    state_file: Path,
    verbose: bool,
) -> None:
    """dnsmng — switch DNS profiles and keep resolv.conf pinned to the active one."""
    setup_logging(verbose)

    try:
        config = load_config(config_path)
    except DnsmngError as e:
        _fail(e)

    writer = ResolverWriter(resolv_conf)
    store = LastSelectionStore(state_file)

    if list_profiles:
        _render_profiles(config, store)
        return

    try:
        selection = restore(config, writer, store, requested=profile)
    except DnsmngError as e:
        _fail(e)

    if no_watch:
        return

    watcher = ResolvConfWatcher(selection.addresses, writer)
    _install_signal_handlers(watcher)
    try:
        watcher.run_forever()
    except DnsmngError as e:
        _fail(e)


if __name__ == "__main__":
    cli()
