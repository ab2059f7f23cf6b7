"""Last-selection store — remembers the last explicitly chosen profile."""

from __future__ import annotations

import os
from pathlib import Path

from dnsmng.core.base import PersistenceError
from dnsmng.core.paths import LAST_DNS_PATH


class LastSelectionStore:
    """Persist the profile name as the raw content of a single file."""

    def __init__(self, path: Path = LAST_DNS_PATH) -> None:
        self.path = path

    def save(self, name: str) -> None:
        """Create the parent directory if needed, then overwrite the record."""
        try:
            if not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                os.chmod(self.path.parent, 0o755)
            self.path.write_text(name)
        except OSError as e:
            raise PersistenceError(self.path, e.strerror or str(e)) from e

    def load(self) -> str:
        """Return the stored name.

        Raises PersistenceError on a missing file (``missing=True``) or any
        read error; callers decide the fallback.
        """
        try:
            return self.path.read_text()
        except FileNotFoundError as e:
            raise PersistenceError(self.path, "no previous selection", missing=True) from e
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(self.path, str(e)) from e
