# ==============================================================================
# STORAGE INTERFACE
# ==============================================================================
#
# The contract every key-value backend implements. Services and the
# persistence service depend on this protocol, never on a concrete class:
#
# 1. STORAGE INDEPENDENCE
#    - JSON files today; any get/set-by-key store tomorrow
#
# 2. TESTING
#    - MemoryStorage satisfies the same protocol, no files touched
#
# 3. FAILURE MODEL
#    - load() never raises: missing key or unparsable value → default
#    - save()/delete()/clear_all() report failure through their return value
#
# ==============================================================================

from typing import Any, Protocol, runtime_checkable


# Keys owned by the state engine
KEY_PRODUCTS = 'products'
KEY_BILLS = 'bills'
KEY_CART = 'cart'
KEY_USERS = 'users'
KEY_CURRENT_USER = 'currentUser'
KEY_CASH_REGISTER = 'cashRegister'
KEY_LAST_CLOSED_REGISTER = 'lastClosedRegister'

ALL_KEYS = (
    KEY_PRODUCTS,
    KEY_BILLS,
    KEY_CART,
    KEY_USERS,
    KEY_CURRENT_USER,
    KEY_CASH_REGISTER,
    KEY_LAST_CLOSED_REGISTER,
)


@runtime_checkable
class IStorage(Protocol):
    """Generic key-value store of JSON-serializable values."""

    def save(self, key: str, value: Any) -> bool:
        """Stores a value under a key. Returns False on failure."""
        ...

    def load(self, key: str, default: Any = None) -> Any:
        """Returns the stored value, or default if missing or unreadable."""
        ...

    def delete(self, key: str) -> bool:
        """Removes a key. Returns False on failure."""
        ...

    def exists(self, key: str) -> bool:
        """Checks whether a key holds a value."""
        ...

    def clear_all(self) -> bool:
        """Removes every key. Returns False on failure."""
        ...

    def flush(self) -> None:
        """Blocks until every pending write reached the backend."""
        ...
