"""Startup restore — decide which profile is active and apply it once."""

from __future__ import annotations

import logging

from dnsmng.core.base import (
    DnsConfig,
    PersistenceError,
    ProfileNotFoundError,
    Selection,
    SelectionSource,
)
from dnsmng.core.resolver import ResolverWriter
from dnsmng.core.state import LastSelectionStore

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "local"


def _resolve(config: DnsConfig, name: str) -> list[str]:
    addresses = config.lookup(name)
    if addresses is None:
        raise ProfileNotFoundError(name)
    return addresses


def restore(
    config: DnsConfig,
    writer: ResolverWriter,
    store: LastSelectionStore,
    requested: str = "",
) -> Selection:
    """Apply the effective profile and return it as the active selection.

    An explicit ``requested`` name is applied and then persisted. Without one,
    the last persisted name is applied, falling back to ``local`` when the
    record is missing, unreadable or empty. An unknown name is always fatal
    and is detected before anything is written.

    Resolver and persistence errors propagate, except a failed read of the
    record in the implicit branch, which only triggers the default.
    """
    if requested:
        addresses = _resolve(config, requested)
        writer.apply(addresses)
        store.save(requested)
        logger.info("DNS set to %s for profile '%s'", addresses, requested)
        return Selection(name=requested, addresses=addresses, source=SelectionSource.EXPLICIT)

    source = SelectionSource.LAST
    try:
        name = store.load()
    except PersistenceError as e:
        if not e.missing:
            logger.warning("Could not read %s: %s", e.path, e.reason)
        name = ""

    if not name:
        logger.info("No previous DNS set or file missing, defaulting to '%s' DNS", DEFAULT_PROFILE)
        name = DEFAULT_PROFILE
        source = SelectionSource.DEFAULT

    addresses = _resolve(config, name)
    writer.apply(addresses)
    logger.info("Restored last DNS: %s", name)
    return Selection(name=name, addresses=addresses, source=source)
