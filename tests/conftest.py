"""Shared test fixtures."""

from pathlib import Path

import pytest

from dnsmng.core.base import DnsConfig
from dnsmng.core.resolver import ResolverWriter
from dnsmng.core.state import LastSelectionStore

CONFIG_YAML = """\
dns:
  local:
    - 127.0.0.1
  cloudflare:
    - 1.1.1.1
    - 1.0.0.1
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write the two-profile config used across tests."""
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture
def dns_config() -> DnsConfig:
    return DnsConfig(dns={"local": ["127.0.0.1"], "cloudflare": ["1.1.1.1", "1.0.0.1"]})


@pytest.fixture
def resolv_conf(tmp_path: Path) -> Path:
    etc = tmp_path / "etc"
    etc.mkdir()
    return etc / "resolv.conf"


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    # Parent deliberately absent so save() has to create it.
    return tmp_path / "var" / "lib" / "dnsmng" / "last_dns"


@pytest.fixture
def writer(resolv_conf: Path) -> ResolverWriter:
    return ResolverWriter(resolv_conf)


@pytest.fixture
def store(state_file: Path) -> LastSelectionStore:
    return LastSelectionStore(state_file)
