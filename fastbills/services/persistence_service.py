# ==============================================================================
# PERSISTENCE SERVICE
# ==============================================================================
# Maps the in-memory StoreState to the storage keys. Services call
# persist() with the keys they changed after every mutation; storage failures
# are logged and swallowed, the in-memory state stays authoritative.
# ==============================================================================

import logging
from typing import Any, Callable, Dict

from fastbills.data import sample_products, sample_users
from fastbills.models import Bill, CartItem, CashRegister, Product, User
from fastbills.repositories import (
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
from fastbills.state import StoreState

logger = logging.getLogger(__name__)


def _optional(value):
    return value.to_dict() if value is not None else None


_SERIALIZERS: Dict[str, Callable[[StoreState], Any]] = {
    KEY_PRODUCTS: lambda s: [p.to_dict() for p in s.products],
    KEY_BILLS: lambda s: [b.to_dict() for b in s.bills],
    KEY_CART: lambda s: [i.to_dict() for i in s.cart],
    KEY_USERS: lambda s: [u.to_dict() for u in s.users],
    KEY_CURRENT_USER: lambda s: _optional(s.current_user),
    KEY_CASH_REGISTER: lambda s: _optional(s.cash_register),
    KEY_LAST_CLOSED_REGISTER: lambda s: _optional(s.last_closed_register),
}


class PersistenceService:
    """
    Loads and saves the application state.

    Responsibilities:
    - Hydrate the state from storage at startup (seed fallbacks)
    - Save the collections a mutation touched
    - Delete optional keys (currentUser, cashRegister) instead of storing null
    """

    def __init__(self, state: StoreState, storage: IStorage):
        """
        Args:
            state: Shared application state
            storage: Key-value backend
        """
        self.state = state
        self.storage = storage

    # =========================================================================
    # LOAD
    # =========================================================================

    def hydrate(self) -> StoreState:
        """
        Replaces the state with what storage holds.

        Missing or empty product and user lists fall back to the seed data.
        Unreadable records are skipped with a warning.

        Returns:
            The hydrated state
        """
        s = self.state
        s.products = self._load_list(KEY_PRODUCTS, Product.from_dict) or sample_products()
        s.users = self._load_list(KEY_USERS, User.from_dict) or sample_users()
        s.bills = self._load_list(KEY_BILLS, Bill.from_dict)
        s.cart = self._load_list(KEY_CART, CartItem.from_dict)
        s.current_user = self._load_one(KEY_CURRENT_USER, User.from_dict)
        s.cash_register = self._load_one(KEY_CASH_REGISTER, CashRegister.from_dict)
        s.last_closed_register = self._load_one(KEY_LAST_CLOSED_REGISTER, CashRegister.from_dict)

        logger.info(
            "State loaded: %d products, %d bills, %d users",
            len(s.products), len(s.bills), len(s.users),
        )
        return s

    def _load_list(self, key: str, factory) -> list:
        raw = self.storage.load(key, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring %s in storage: expected a list", key)
            return []
        items = []
        for entry in raw:
            try:
                items.append(factory(entry))
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable %s record: %s", key, e)
        return items

    def _load_one(self, key: str, factory):
        raw = self.storage.load(key, None)
        if not raw:
            return None
        try:
            return factory(raw)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Ignoring unreadable %s: %s", key, e)
            return None

    # =========================================================================
    # SAVE
    # =========================================================================

    def persist(self, *keys: str) -> None:
        """
        Saves the given collections (all of them when none given).

        Optional values that are None are removed from storage.
        """
        for key in keys or ALL_KEYS:
            serializer = _SERIALIZERS.get(key)
            if serializer is None:
                raise KeyError(f"Unknown storage key: {key}")
            value = serializer(self.state)
            if value is None:
                ok = self.storage.delete(key)
            else:
                ok = self.storage.save(key, value)
            if not ok:
                logger.warning("Persisting %s failed, keeping in-memory state", key)

    def flush(self) -> None:
        self.storage.flush()
