# ==============================================================================
# REPOSITORIES LAYER - Data access
# ==============================================================================
# This layer wraps the key-value store the state engine persists to.
# Services never touch files directly; they go through IStorage.
#
# STRUCTURE:
# ├── interfaces.py      → IStorage protocol and the persisted keys
# ├── base.py            → BaseStorage (JSON encoding, failure handling)
# ├── json_storage.py    → JSONFileStorage (one file per key, write-behind)
# └── memory_storage.py  → MemoryStorage (tests, volatile mode)
# ==============================================================================

from .interfaces import (
    IStorage,
    KEY_PRODUCTS,
    KEY_BILLS,
    KEY_CART,
    KEY_USERS,
    KEY_CURRENT_USER,
    KEY_CASH_REGISTER,
    KEY_LAST_CLOSED_REGISTER,
    ALL_KEYS,
)
from .base import BaseStorage
from .json_storage import JSONFileStorage
from .memory_storage import MemoryStorage

__all__ = [
    'IStorage',
    'KEY_PRODUCTS',
    'KEY_BILLS',
    'KEY_CART',
    'KEY_USERS',
    'KEY_CURRENT_USER',
    'KEY_CASH_REGISTER',
    'KEY_LAST_CLOSED_REGISTER',
    'ALL_KEYS',
    'BaseStorage',
    'JSONFileStorage',
    'MemoryStorage',
]
