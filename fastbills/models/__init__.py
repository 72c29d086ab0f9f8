# ==============================================================================
# MODELS LAYER - System data structures
# ==============================================================================
# Domain entities as dataclasses:
#   - Type hints document the shape of each record
#   - to_dict()/from_dict() keep the stored JSON format in one place
#   - Independent of the storage backend (JSON files, memory)
# ==============================================================================

from .entities import (
    # Users
    User,
    UserRole,

    # Catalog
    Product,
    PRODUCT_CATEGORIES,

    # Cart
    CartItem,

    # Bills
    Bill,
    PaymentMethod,
    VoidStatus,

    # Register
    CashRegister,

    # Reports
    ReportTimeframe,

    # Helpers
    new_id,
    local_now,
    parse_timestamp,
    whole_number,
)

__all__ = [
    'User',
    'UserRole',
    'Product',
    'PRODUCT_CATEGORIES',
    'CartItem',
    'Bill',
    'PaymentMethod',
    'VoidStatus',
    'CashRegister',
    'ReportTimeframe',
    'new_id',
    'local_now',
    'parse_timestamp',
    'whole_number',
]
