"""
JSON document storage.

The snapshot lives in a single human-readable JSON file. Writes go to a
temporary sibling first and are moved over the target with `os.replace`,
which is atomic on POSIX and Windows.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from hl_indexer.store import StoreSnapshot

logger = logging.getLogger(__name__)


class JsonFileDatabase:
    """Database protocol implementation backed by one JSON file."""

    def __init__(self, path: Path | str) -> None:
        """
        Initialize the file store.

        Creates the parent directory if needed. The file itself is created
        on the first save.
        """
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Location of the snapshot file."""
        return self._path

    def load_snapshot(self) -> StoreSnapshot | None:
        """Read and parse the file. An unreadable file loads as nothing."""
        if not self._path.exists():
            logger.info("No snapshot at %s, starting empty", self._path)
            return None

        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
            return StoreSnapshot.from_document(document)
        except (OSError, ValueError) as e:
            logger.error("Failed to load snapshot from %s: %s", self._path, e)
            return None

    def save_snapshot(self, snapshot: StoreSnapshot) -> None:
        """Write the snapshot through a temporary file."""
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        tmp_path.write_text(snapshot.to_json(), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def close(self) -> None:
        """Nothing to release; files are opened per operation."""
