# ==============================================================================
# MEMORY STORAGE - Volatile backend for tests and demos
# ==============================================================================

import threading
from typing import Dict

from fastbills.repositories.base import BaseStorage


class MemoryStorage(BaseStorage):
    """
    Dict-backed storage.

    Values are stored serialized, so what comes back from load() is always a
    detached copy, exactly as with the file backend.
    """

    def __init__(self, initial: Dict[str, object] = None):
        self._data: Dict[str, str] = {}
        self._lock = threading.RLock()
        for key, value in (initial or {}).items():
            self.save(key, value)

    def _read_raw(self, key: str) -> str:
        with self._lock:
            return self._data[key]

    def _write_raw(self, key: str, payload: str) -> None:
        with self._lock:
            self._data[key] = payload

    def _delete_raw(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def _keys(self) -> list:
        with self._lock:
            return list(self._data.keys())
