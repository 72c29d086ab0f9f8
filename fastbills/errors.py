# ==============================================================================
# DOMAIN ERRORS
# ==============================================================================
# Every business rule failure raised by the services. All of them derive from
# StoreError so callers (the Flask API, tests) can catch one type and show the
# message. status_code is the HTTP status the API answers with.
# ==============================================================================


class StoreError(Exception):
    """Base class for business rule failures."""
    status_code = 400
    default_message = 'Operation failed'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDenied(StoreError):
    """The current session does not have the required role."""
    status_code = 403
    default_message = 'Permission denied'


class NoSession(StoreError):
    """The operation requires a logged-in user."""
    status_code = 401
    default_message = 'No user logged in'


class EmptyCart(StoreError):
    default_message = 'Cart is empty'


class InsufficientStock(StoreError):
    status_code = 409
    default_message = 'Insufficient stock'


class InsufficientCash(StoreError):
    default_message = 'Insufficient cash amount'


class InvalidQuantity(StoreError):
    default_message = 'Invalid quantity'


class InvalidPrice(StoreError):
    default_message = 'Price cannot be negative'


class ProductNotFound(StoreError):
    status_code = 404
    default_message = 'Product not found'


class ProductInUse(StoreError):
    """The product is referenced by at least one bill."""
    status_code = 409
    default_message = 'Cannot delete product that has been sold'


class BillNotFound(StoreError):
    status_code = 404
    default_message = 'Bill not found'


class CannotRefundVoided(StoreError):
    status_code = 409
    default_message = 'Cannot refund a voided bill'


class InvalidRefundItems(StoreError):
    default_message = 'Refund items do not match the original bill'


class NoOpenRegister(StoreError):
    status_code = 409
    default_message = 'No register is open'


class RegisterAlreadyOpen(StoreError):
    status_code = 409
    default_message = 'A register is already open'


class InvalidBackupFormat(StoreError):
    default_message = 'Invalid backup file format'
