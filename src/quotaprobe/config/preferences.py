"""Small persisted key-value preferences (gate state, remembered candidates)."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

import msgspec

from quotaprobe.config.paths import preferences_file

log = logging.getLogger(__name__)


class PreferencesStore:
    """JSON-backed key-value store.

    The file is read lazily on first access and rewritten atomically
    (temp file + replace) on every mutation. All access is serialized by
    an internal lock; no I/O happens outside it.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._data: dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path or preferences_file()

    def _load_locked(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        data: dict[str, Any] = {}
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            raw = b""

        if raw:
            try:
                decoded = msgspec.json.decode(raw)
            except msgspec.DecodeError:
                log.warning("Ignoring unreadable preferences file %s", self.path)
            else:
                if isinstance(decoded, dict):
                    data = decoded

        self._data = data
        return data

    def _persist_locked(self) -> None:
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = msgspec.json.encode(self._data or {})

        fd, temp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load_locked().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._load_locked()[key] = value
            self._persist_locked()

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load_locked()
            if key in data:
                del data[key]
                self._persist_locked()

    def reload(self) -> None:
        """Drop the in-memory copy so the next access rereads the file."""
        with self._lock:
            self._data = None


_preferences: PreferencesStore | None = None


def get_preferences() -> PreferencesStore:
    """Get the process-wide preferences store (singleton)."""
    global _preferences
    if _preferences is None:
        _preferences = PreferencesStore()
    return _preferences
