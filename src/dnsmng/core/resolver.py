"""Resolver writer — renders nameserver lines and overwrites resolv.conf."""

from __future__ import annotations

from pathlib import Path

from dnsmng.core.base import ResolverWriteError
from dnsmng.core.paths import RESOLV_CONF_PATH


def render_resolv_conf(addresses: list[str]) -> str:
    """Render one ``nameserver <ip>`` line per address, newline-terminated."""
    return "".join(f"nameserver {ip}\n" for ip in addresses)


class ResolverWriter:
    """Applies an address list by fully overwriting the resolver file."""

    def __init__(self, path: Path = RESOLV_CONF_PATH) -> None:
        self.path = path

    def apply(self, addresses: list[str]) -> None:
        content = render_resolv_conf(addresses)
        try:
            # No partial-write recovery: a failure leaves the file as the OS left it.
            with open(self.path, "w") as f:
                f.write(content)
        except OSError as e:
            raise ResolverWriteError(self.path, e.strerror or str(e)) from e
