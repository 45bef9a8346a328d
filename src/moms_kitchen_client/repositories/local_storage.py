"""Durable key/value storage for client state.

Each key is stored as its own JSON document under a storage directory.
Following the repository pattern used throughout the client, failures are
logged and reported through simple return values (None/False) instead of
exceptions: losing persisted state degrades the client, it never crashes it.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStorage:
    """JSON-file backed key/value store."""

    def __init__(self, storage_dir: str | Path) -> None:
        """Initialize storage.

        Args:
            storage_dir: Directory holding one JSON file per key
        """
        self.storage_dir = Path(storage_dir).expanduser()

    def _path_for(self, key: str) -> Path:
        return self.storage_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get_item(self, key: str) -> Any | None:
        """Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The decoded value, or None if missing or unreadable
        """
        path = self._path_for(key)
        try:
            with path.open(encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read storage key {key}: {e}")
            return None

    def set_item(self, key: str, value: Any) -> bool:
        """Store a JSON-serializable value under a key.

        The value is written to a temporary file and moved into place so a
        crash mid-write never leaves a truncated document behind.

        Args:
            key: Storage key
            value: JSON-serializable value

        Returns:
            bool: True if the write succeeded, False otherwise
        """
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False)
            os.replace(tmp_path, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write storage key {key}: {e}")
            return False

    def remove_item(self, key: str) -> bool:
        """Delete a key.

        Returns:
            bool: True if the key is absent afterwards, False on failure
        """
        try:
            self._path_for(key).unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.error(f"Failed to remove storage key {key}: {e}")
            return False
