# ==============================================================================
# BASE STORAGE - Shared functionality for key-value backends
# ==============================================================================

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class BaseStorage(ABC):
    """
    Abstract base for every storage backend.

    Subclasses implement the raw operations (_read_raw, _write_raw,
    _delete_raw, _keys). This class turns them into the IStorage contract:
    values are JSON documents, failures are logged and reported through the
    return value, and load() falls back to the default instead of raising.
    """

    @abstractmethod
    def _read_raw(self, key: str) -> Any:
        """
        Reads the serialized value of a key.

        Raises:
            KeyError: If the key holds no value
        """

    @abstractmethod
    def _write_raw(self, key: str, payload: str) -> None:
        """Writes the serialized value of a key."""

    @abstractmethod
    def _delete_raw(self, key: str) -> None:
        """Removes a key (no error if absent)."""

    @abstractmethod
    def _keys(self) -> list:
        """Keys currently holding a value."""

    @staticmethod
    def encode(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, indent=2)

    @staticmethod
    def decode(payload: str) -> Any:
        return json.loads(payload)

    def save(self, key: str, value: Any) -> bool:
        """
        Stores a value under a key.

        Args:
            key: Collection name
            value: JSON-serializable value

        Returns:
            True if the value was accepted by the backend
        """
        try:
            payload = self.encode(value)
            self._write_raw(key, payload)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Error saving %s to storage: %s", key, e)
            return False

    def load(self, key: str, default: Any = None) -> Any:
        """
        Loads the value stored under a key.

        Args:
            key: Collection name
            default: Returned when the key is missing or unreadable

        Returns:
            Decoded value or default
        """
        try:
            payload = self._read_raw(key)
        except KeyError:
            return default
        except OSError as e:
            logger.warning("Error loading %s from storage: %s", key, e)
            return default
        try:
            return self.decode(payload)
        except (TypeError, ValueError) as e:
            logger.warning("Corrupt value for %s in storage, using default: %s", key, e)
            return default

    def delete(self, key: str) -> bool:
        try:
            self._delete_raw(key)
            return True
        except OSError as e:
            logger.warning("Error removing %s from storage: %s", key, e)
            return False

    def exists(self, key: str) -> bool:
        try:
            self._read_raw(key)
            return True
        except (KeyError, OSError):
            return False

    def clear_all(self) -> bool:
        """Removes every stored key."""
        try:
            for key in list(self._keys()):
                self._delete_raw(key)
            return True
        except OSError as e:
            logger.warning("Error clearing app data: %s", e)
            return False

    def flush(self) -> None:
        """Synchronous backends have nothing pending."""
