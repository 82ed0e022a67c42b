"""Key-value stores for the completion and missed-prayer records."""

import json
import logging
import os
import tempfile

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".prayertrack")
RECORDS_FILE = os.path.join(CONFIG_DIR, "records.json")


def _jsonable(value):
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


class MemoryStore:
    """In-process store; lives as long as the widget does."""

    def __init__(self, data: dict | None = None):
        self._data = dict(data or {})

    def load(self, key: str, default=None):
        return self._data.get(key, default)

    def save(self, key: str, value) -> None:
        self._data[key] = _jsonable(value)


class JsonFileStore:
    """
    Store backed by a single JSON file.

    The whole file is rewritten on every save, through a temp file that
    replaces the old one. A missing or corrupt file reads as empty.
    """

    def __init__(self, path: str = RECORDS_FILE):
        self.path = path

    def _read(self) -> dict:
        if not os.path.isfile(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, key: str, default=None):
        return self._read().get(key, default)

    def save(self, key: str, value) -> None:
        data = self._read()
        data[key] = _jsonable(value)
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        # write beside the target, then swap it in whole
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except Exception:
            os.remove(tmp_path)
            raise
