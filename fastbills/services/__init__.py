# ==============================================================================
# SERVICES LAYER - Business logic
# ==============================================================================
# Every service works on the shared StoreState it receives in its
# constructor and saves what it changed through PersistenceService.
#
# STRUCTURE:
# ├── credentials.py          → Password verification (plain text / werkzeug hash)
# ├── authorization.py        → Role policy (AuthDecision, require_role)
# ├── persistence_service.py  → State ↔ storage keys
# ├── session_service.py      → Login, logout, current user
# ├── catalog_service.py      → Products and stock
# ├── cart_service.py         → In-progress sale
# ├── register_service.py     → Cash drawer ledger
# ├── billing_service.py      → Checkout, void, refund, delete
# ├── reporting_service.py    → Sales and inventory reports
# ├── backup_service.py       → Backup export/restore
# └── receipt_service.py      → HTML and text receipts
# ==============================================================================

from .credentials import (
    ICredentialVerifier,
    PlaintextCredentialVerifier,
    HashedCredentialVerifier,
    get_verifier,
)
from .authorization import AuthDecision, authorize
from .persistence_service import PersistenceService
from .session_service import SessionService
from .catalog_service import CatalogService
from .cart_service import CartService
from .register_service import RegisterService
from .billing_service import BillingService
from .reporting_service import ReportingService
from .backup_service import BackupService
from .receipt_service import ReceiptService

__all__ = [
    'ICredentialVerifier',
    'PlaintextCredentialVerifier',
    'HashedCredentialVerifier',
    'get_verifier',
    'AuthDecision',
    'authorize',
    'PersistenceService',
    'SessionService',
    'CatalogService',
    'CartService',
    'RegisterService',
    'BillingService',
    'ReportingService',
    'BackupService',
    'ReceiptService',
]
