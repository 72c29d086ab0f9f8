# ==============================================================================
# DEPENDENCY CONTAINER - Service wiring
# ==============================================================================
# One container per application. It owns the StoreState, the storage backend
# and every service, created lazily on first access.
#
#   container = AppContainer(Settings.from_env())
#   container.load()
#   container.billing_service.generate_bill(payment_method='card')
#
# Changing the storage backend means passing another IStorage; services do
# not change because they only depend on the protocol.
#
# The container also owns the lock that serializes engine calls when several
# HTTP requests arrive at once: the engine is a single logical writer.
# ==============================================================================

import threading
from typing import Optional

from fastbills.config import Settings
from fastbills.repositories import IStorage, JSONFileStorage
from fastbills.services import (
    BackupService,
    BillingService,
    CartService,
    CatalogService,
    PersistenceService,
    ReceiptService,
    RegisterService,
    ReportingService,
    SessionService,
    get_verifier,
)
from fastbills.state import StoreState


class AppContainer:
    """
    Application dependency container.

    Usage:
        container = AppContainer(settings, storage=MemoryStorage())
        container.load()
        cart = container.cart_service
    """

    def __init__(self, settings: Settings, storage: IStorage = None, clock=None):
        """
        Args:
            settings: Runtime settings
            storage: Storage backend (JSON files under settings.data_dir if None)
            clock: Current-time callable for reports (local time if None)
        """
        self.settings = settings
        self.state = StoreState()
        self.lock = threading.RLock()
        self._clock = clock

        self._storage: Optional[IStorage] = storage

        self._persistence: Optional[PersistenceService] = None
        self._session_service: Optional[SessionService] = None
        self._catalog_service: Optional[CatalogService] = None
        self._cart_service: Optional[CartService] = None
        self._register_service: Optional[RegisterService] = None
        self._billing_service: Optional[BillingService] = None
        self._reporting_service: Optional[ReportingService] = None
        self._backup_service: Optional[BackupService] = None
        self._receipt_service: Optional[ReceiptService] = None

    def load(self) -> StoreState:
        """Hydrates the state from storage."""
        with self.lock:
            return self.persistence.hydrate()

    def shutdown(self) -> None:
        """Writes every pending change to storage."""
        self.storage.flush()

    # =========================================================================
    # STORAGE
    # =========================================================================

    @property
    def storage(self) -> IStorage:
        if self._storage is None:
            self._storage = JSONFileStorage(
                self.settings.data_dir,
                async_writes=self.settings.async_writes,
            )
        return self._storage

    @property
    def persistence(self) -> PersistenceService:
        if self._persistence is None:
            self._persistence = PersistenceService(self.state, self.storage)
        return self._persistence

    # =========================================================================
    # SERVICES
    # =========================================================================

    @property
    def session_service(self) -> SessionService:
        if self._session_service is None:
            self._session_service = SessionService(
                self.state,
                self.persistence,
                get_verifier(self.settings.credentials),
            )
        return self._session_service

    @property
    def catalog_service(self) -> CatalogService:
        if self._catalog_service is None:
            self._catalog_service = CatalogService(
                self.state, self.session_service, self.persistence
            )
        return self._catalog_service

    @property
    def cart_service(self) -> CartService:
        if self._cart_service is None:
            self._cart_service = CartService(
                self.state, self.session_service, self.persistence
            )
        return self._cart_service

    @property
    def register_service(self) -> RegisterService:
        if self._register_service is None:
            self._register_service = RegisterService(
                self.state, self.session_service, self.persistence
            )
        return self._register_service

    @property
    def billing_service(self) -> BillingService:
        if self._billing_service is None:
            self._billing_service = BillingService(
                self.state,
                self.session_service,
                self.catalog_service,
                self.register_service,
                self.persistence,
            )
        return self._billing_service

    @property
    def reporting_service(self) -> ReportingService:
        if self._reporting_service is None:
            if self._clock is not None:
                self._reporting_service = ReportingService(
                    self.state, self.session_service, self._clock
                )
            else:
                self._reporting_service = ReportingService(self.state, self.session_service)
        return self._reporting_service

    @property
    def backup_service(self) -> BackupService:
        if self._backup_service is None:
            self._backup_service = BackupService(
                self.state,
                self.session_service,
                self.persistence,
                self.settings.backup_dir,
                self.settings.max_backups,
            )
        return self._backup_service

    @property
    def receipt_service(self) -> ReceiptService:
        if self._receipt_service is None:
            self._receipt_service = ReceiptService()
        return self._receipt_service
