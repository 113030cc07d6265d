"""
Key-value stores for per-workflow configuration.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from ..domain.exceptions import ConfigurationError


class InMemoryConfigStore:
    """Store that lives for the duration of the process."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return dict(value) if value is not None else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = dict(value)


class JsonFileConfigStore:
    """
    Store backed by a single JSON document on disk.

    Writes go to a temporary file in the same directory that then replaces
    the document, so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        return self._read().get(key)

    def set(self, key: str, value: Dict[str, Any]) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not read config store {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config store {self.path} must contain a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".buddyup_store_", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError:
            os.unlink(tmp_path)
            raise
