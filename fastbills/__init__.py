# ==============================================================================
# FASTBILLS - Point-of-sale transactional engine
# ==============================================================================
# Products, cart, bills, users and the cash register, held in one in-memory
# state aggregate and persisted per collection to a key-value store.
#
# STRUCTURE:
# ├── models/          → Dataclass entities (Product, CartItem, Bill, ...)
# ├── repositories/    → Key-value storage (JSON files, memory)
# ├── services/        → Business rules (catalog, cart, billing, register, ...)
# ├── app_container.py → Dependency container
# └── main.py          → Flask JSON API
# ==============================================================================

__version__ = '1.0.0'
