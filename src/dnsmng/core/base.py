"""Shared contract — models passed between components and the error taxonomy."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field


class SelectionSource(StrEnum):
    EXPLICIT = "explicit"
    LAST = "last"
    DEFAULT = "default"


class DnsConfig(BaseModel):
    """Profiles loaded from the config file — name → ordered nameserver IPs."""

    dns: dict[str, list[str]] = Field(default_factory=dict)

    def lookup(self, name: str) -> list[str] | None:
        """Return the addresses for a profile, or None if it is not configured."""
        addresses = self.dns.get(name)
        if addresses is None:
            return None
        return list(addresses)

    def profile_names(self) -> list[str]:
        return list(self.dns)


class Selection(BaseModel):
    """The profile being enforced, resolved once at startup."""

    name: str
    addresses: list[str]
    source: SelectionSource


class DnsmngError(Exception):
    """Base class for every error dnsmng reports to the user."""


class ConfigError(DnsmngError):
    """Raised when the profile config cannot be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Error reading config file {path}: {reason}")


class ProfileNotFoundError(DnsmngError):
    """Raised when a profile name is not present in the config."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"DNS entry for '{name}' not found in config")


class PersistenceError(DnsmngError):
    """Raised when the last-selection record cannot be read or written."""

    def __init__(self, path: Path, reason: str, missing: bool = False) -> None:
        self.path = path
        self.reason = reason
        self.missing = missing
        super().__init__(f"Last-selection record {path}: {reason}")


class ResolverWriteError(DnsmngError):
    """Raised when the resolver file cannot be overwritten."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Error setting DNS in {path}: {reason}")


class WatchSetupError(DnsmngError):
    """Raised when the filesystem watch on the resolver file cannot be set up."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot watch {path}: {reason}")
