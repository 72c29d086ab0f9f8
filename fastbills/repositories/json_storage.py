# ==============================================================================
# JSON FILE STORAGE - One file per key, write-behind
# ==============================================================================
# - In-memory cache for reads
# - Write queue drained by a background thread (saves never block the caller)
# - Atomic writes: temp file + os.replace
#
# Layout: <base_path>/products.json, <base_path>/bills.json, ...
# ==============================================================================

import logging
import os
import threading
from queue import Queue
from typing import Dict, Optional

from werkzeug.utils import secure_filename

from fastbills.repositories.base import BaseStorage

logger = logging.getLogger(__name__)

# Marks a key deleted in the cache until the writer removes its file
_TOMBSTONE = None


class JSONFileStorage(BaseStorage):
    """
    Key-value storage backed by JSON files.

    With async_writes=True (default) save() and delete() update the cache and
    enqueue the disk operation; a daemon writer thread applies them in order.
    A crash before the writer runs loses that write, nothing else. Call
    flush() to block until the queue is drained.

    Usage:
        storage = JSONFileStorage('/srv/fastbills/data')
        storage.save('products', [...])
        storage.flush()
    """

    def __init__(self, base_path: str, async_writes: bool = True):
        """
        Args:
            base_path: Directory holding the JSON files (created if missing)
            async_writes: Write-behind mode; False writes synchronously
        """
        self.base_path = base_path
        self.async_writes = async_writes
        os.makedirs(base_path, exist_ok=True)

        self._cache: Dict[str, Optional[str]] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._global_lock = threading.RLock()
        self._write_queue: Queue = Queue()
        self._writer_thread: Optional[threading.Thread] = None

    # =========================================================================
    # FILES AND LOCKS
    # =========================================================================

    def _file_path(self, key: str) -> str:
        name = secure_filename(key)
        if not name:
            raise ValueError(f"Invalid storage key: {key!r}")
        return os.path.join(self.base_path, f'{name}.json')

    def _get_lock(self, key: str) -> threading.RLock:
        with self._global_lock:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

    def _write_to_disk(self, key: str, payload: Optional[str]) -> None:
        """Writes (or removes, for a tombstone) the file of a key."""
        path = self._file_path(key)
        with self._get_lock(key):
            if payload is _TOMBSTONE:
                if os.path.exists(path):
                    os.remove(path)
                return
            temp_path = path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    f.write(payload)
                os.replace(temp_path, path)
            except OSError:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    # =========================================================================
    # BACKGROUND WRITER
    # =========================================================================

    def _start_writer(self) -> None:
        with self._global_lock:
            if self._writer_thread is None or not self._writer_thread.is_alive():
                self._writer_thread = threading.Thread(
                    target=self._writer_loop, name='fastbills-writer', daemon=True
                )
                self._writer_thread.start()

    def _writer_loop(self) -> None:
        while True:
            item = self._write_queue.get()
            try:
                if item is None:
                    return
                key, payload = item
                self._write_to_disk(key, payload)
            except (OSError, ValueError) as e:
                logger.warning("Background write failed for %s: %s", item[0], e)
            finally:
                self._write_queue.task_done()

    def _enqueue(self, key: str, payload: Optional[str]) -> None:
        if self.async_writes:
            self._start_writer()
            self._write_queue.put((key, payload))
        else:
            self._write_to_disk(key, payload)

    # =========================================================================
    # RAW OPERATIONS
    # =========================================================================

    def _read_raw(self, key: str) -> str:
        with self._get_lock(key):
            if key in self._cache:
                payload = self._cache[key]
                if payload is _TOMBSTONE:
                    raise KeyError(key)
                return payload
            try:
                path = self._file_path(key)
            except ValueError:
                raise KeyError(key)
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    payload = f.read()
            except FileNotFoundError:
                raise KeyError(key)
            self._cache[key] = payload
            return payload

    def _write_raw(self, key: str, payload: str) -> None:
        self._file_path(key)
        with self._get_lock(key):
            self._cache[key] = payload
            self._enqueue(key, payload)

    def _delete_raw(self, key: str) -> None:
        self._file_path(key)
        with self._get_lock(key):
            self._cache[key] = _TOMBSTONE
            self._enqueue(key, _TOMBSTONE)

    def _keys(self) -> list:
        keys = {k for k, v in self._cache.items() if v is not _TOMBSTONE}
        for filename in os.listdir(self.base_path):
            if filename.endswith('.json'):
                key = filename[:-5]
                if self._cache.get(key, '') is not _TOMBSTONE:
                    keys.add(key)
        return sorted(keys)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def flush(self) -> None:
        """Blocks until every queued write has been applied."""
        if self._writer_thread is not None and self._writer_thread.is_alive():
            self._write_queue.join()

    def invalidate(self) -> None:
        """Drops the read cache (next load reads the files again)."""
        self.flush()
        with self._global_lock:
            self._cache.clear()

    def close(self) -> None:
        """Drains pending writes and stops the writer thread."""
        self.flush()
        if self._writer_thread is not None and self._writer_thread.is_alive():
            self._write_queue.put(None)
            self._writer_thread.join(timeout=2)
        self._writer_thread = None
