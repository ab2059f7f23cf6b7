"""Configuration loading — reads the YAML profile file."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from dnsmng.core.base import ConfigError, DnsConfig


def load_config(path: Path) -> DnsConfig:
    """Load DNS profiles from a YAML file.

    The document is a mapping with a single ``dns`` key holding
    ``profile name -> [ip, ...]``. An empty document yields no profiles.
    """
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(path, e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(path, f"invalid YAML: {e}") from e

    if data is None:
        return DnsConfig()
    if not isinstance(data, dict):
        raise ConfigError(path, "top level must be a mapping")

    try:
        return DnsConfig.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(path, errors) from e
