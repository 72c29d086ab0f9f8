# ==============================================================================
# CATALOG SERVICE
# ==============================================================================
# Owns the product list: manager-only edits, stock updates, low-stock view
# and the lookups used by the product search and the barcode scanner.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from fastbills.errors import (
    InvalidPrice,
    InvalidQuantity,
    ProductInUse,
    ProductNotFound,
    StoreError,
)
from fastbills.models import Product, UserRole, new_id, whole_number
from fastbills.repositories import KEY_PRODUCTS
from fastbills.services.persistence_service import PersistenceService
from fastbills.services.session_service import SessionService
from fastbills.state import StoreState

logger = logging.getLogger(__name__)


def product_from_fields(fields: Dict[str, Any]) -> Product:
    """Builds a product from caller-supplied camelCase fields."""
    for key in ('stockQuantity', 'lowStockThreshold'):
        if fields.get(key) is not None and whole_number(fields[key]) is None:
            raise InvalidQuantity(f"{key} must be a whole number")
    try:
        return Product.from_dict(fields)
    except (TypeError, ValueError):
        raise StoreError('Invalid product data')


def _validate_product(product: Product) -> None:
    if product.price < 0:
        raise InvalidPrice()
    if product.stock_quantity < 0 or product.low_stock_threshold < 0:
        raise InvalidQuantity('Stock values cannot be negative')


class CatalogService:
    """
    Product catalog.

    Responsibilities:
    - Add, edit and delete products (manager only)
    - Stock updates, never below zero
    - Low-stock, search and barcode lookups
    """

    def __init__(
        self,
        state: StoreState,
        session: SessionService,
        persistence: PersistenceService
    ):
        self.state = state
        self.session = session
        self.persistence = persistence

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list_products(self) -> List[Product]:
        return list(self.state.products)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.state.find_product(product_id)

    def low_stock_items(self) -> List[Product]:
        """Products at or below their low-stock threshold."""
        return [p for p in self.state.products if p.is_low_stock]

    def find_by_barcode(self, code: str) -> Optional[Product]:
        """
        Exact barcode match.

        Returns:
            The product, or None when no product carries that barcode
        """
        if not code:
            return None
        code = code.strip()
        for product in self.state.products:
            if product.barcode == code:
                return product
        return None

    def search_products(self, query: str = '', category: str = None) -> List[Product]:
        """
        Case-insensitive search on name or barcode.

        Args:
            query: Text to look for (empty matches everything)
            category: Exact category ('All' or None = any)
        """
        q = (query or '').strip().lower()
        results = []
        for product in self.state.products:
            if category and category != 'All' and product.category != category:
                continue
            if q and q not in product.name.lower() and q not in (product.barcode or ''):
                continue
            results.append(product)
        return results

    # =========================================================================
    # MANAGER OPERATIONS
    # =========================================================================

    def add_product(self, data: Dict[str, Any]) -> Product:
        """
        Adds a product with a fresh id.

        Args:
            data: Product fields in their stored (camelCase) form; any 'id'
                  given is ignored

        Raises:
            PermissionDenied: Not a manager session
            InvalidPrice: Negative price
            InvalidQuantity: Negative or fractional stock or threshold
            StoreError: Non-numeric product fields
        """
        self.session.require_role(UserRole.MANAGER)

        fields = dict(data)
        fields['id'] = new_id()
        product = product_from_fields(fields)
        _validate_product(product)

        self.state.products.append(product)
        self.persistence.persist(KEY_PRODUCTS)
        logger.info("Product added: %s (%s)", product.name, product.id)
        return product

    def update_product(self, product: Product) -> Product:
        """
        Replaces the product with the same id.

        Raises:
            PermissionDenied: Not a manager session
            ProductNotFound: No product with that id
        """
        self.session.require_role(UserRole.MANAGER)
        _validate_product(product)

        for index, existing in enumerate(self.state.products):
            if existing.id == product.id:
                self.state.products[index] = product
                self.persistence.persist(KEY_PRODUCTS)
                return product

        raise ProductNotFound(f"Product {product.id} not found")

    def delete_product(self, product_id: str) -> None:
        """
        Removes a product that no bill references.

        Raises:
            PermissionDenied: Not a manager session
            ProductInUse: A bill (voided or not) references the product
        """
        self.session.require_role(UserRole.MANAGER)

        if any(bill.references_product(product_id) for bill in self.state.bills):
            raise ProductInUse()

        before = len(self.state.products)
        self.state.products = [p for p in self.state.products if p.id != product_id]
        if len(self.state.products) != before:
            self.persistence.persist(KEY_PRODUCTS)
            logger.info("Product deleted: %s", product_id)

    # =========================================================================
    # STOCK
    # =========================================================================

    def update_stock(self, product_id: str, new_quantity: int) -> Optional[Product]:
        """
        Sets the stock of a product.

        Returns:
            The updated product, or None if the id is unknown

        Raises:
            InvalidQuantity: new_quantity is negative or not a whole number
        """
        quantity = whole_number(new_quantity)
        if quantity is None:
            raise InvalidQuantity('Stock quantity must be a whole number')
        if quantity < 0:
            raise InvalidQuantity('Stock quantity cannot be negative')

        product = self.state.find_product(product_id)
        if product is None:
            return None
        product.stock_quantity = quantity
        self.persistence.persist(KEY_PRODUCTS)
        return product

    def apply_stock_levels(self, levels: Dict[str, int]) -> None:
        """
        Writes precomputed stock levels in one step.

        Used by the billing engine once every level of a transaction has been
        validated. Unknown ids are skipped.
        """
        for product_id, quantity in levels.items():
            product = self.state.find_product(product_id)
            if product is not None:
                product.stock_quantity = quantity
        if levels:
            self.persistence.persist(KEY_PRODUCTS)
