"""Well-known filesystem locations and the env vars that override them."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = Path("/etc/dnsmng/config.yaml")
RESOLV_CONF_PATH = Path("/etc/resolv.conf")
LAST_DNS_PATH = Path("/var/lib/dnsmng/last_dns")  # last explicitly selected profile

CONFIG_ENV = "DNSMNG_CONFIG"
RESOLV_CONF_ENV = "DNSMNG_RESOLV_CONF"
STATE_FILE_ENV = "DNSMNG_STATE_FILE"
