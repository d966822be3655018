"""Save blob stores."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from sprint_master.types import PersistenceError

logger = logging.getLogger(__name__)


class MemoryStore:
    """Keeps the save blob in memory, as a JSON string."""

    def __init__(self) -> None:
        self._blob: str | None = None

    def has_save(self) -> bool:
        return self._blob is not None

    def load(self) -> dict[str, Any] | None:
        if self._blob is None:
            return None
        try:
            return json.loads(self._blob)
        except ValueError as exc:
            raise PersistenceError(f"Save blob is unreadable: {exc}") from exc

    def save(self, data: dict[str, Any]) -> None:
        try:
            self._blob = json.dumps(data)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Game state is not serializable: {exc}") from exc


class JsonFileStore:
    """Keeps the save blob in a JSON file. Writes replace the file atomically."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def has_save(self) -> bool:
        return self._path.is_file()

    def load(self) -> dict[str, Any] | None:
        if not self.has_save():
            return None
        try:
            with self._path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not load {self._path}: {exc}") from exc
        logger.info("game loaded from %s", self._path)
        return data

    def save(self, data: dict[str, Any]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp, self._path)
        except (OSError, TypeError, ValueError) as exc:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Could not save {self._path}: {exc}") from exc
        logger.info("game saved to %s", self._path)
