# ==============================================================================
# CART SERVICE
# ==============================================================================
# The in-progress sale. Stock is checked against the live catalog on every
# change but never reserved: nothing is decremented until checkout.
# ==============================================================================

import dataclasses
from typing import Any, Dict, List, Union

from fastbills.errors import InsufficientStock, InvalidPrice, InvalidQuantity, ProductNotFound
from fastbills.models import CartItem, Product, UserRole, whole_number
from fastbills.repositories import KEY_CART
from fastbills.services.persistence_service import PersistenceService
from fastbills.services.session_service import SessionService
from fastbills.state import StoreState


class CartService:
    """
    Cart of the active session.

    Responsibilities:
    - Add/remove lines and change quantities
    - Validate quantities against current stock
    - Manager price overrides per line
    - Totals
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

    def _save(self) -> None:
        self.persistence.persist(KEY_CART)

    def _catalog_product(self, product: Union[Product, str]) -> Product:
        product_id = product.id if isinstance(product, Product) else str(product)
        current = self.state.find_product(product_id)
        if current is None:
            raise ProductNotFound(f"Product {product_id} not found")
        return current

    # =========================================================================
    # LINES
    # =========================================================================

    def add_to_cart(self, product: Union[Product, str], quantity: int = 1) -> CartItem:
        """
        Adds units of a product, merging with an existing line.

        Args:
            product: Product or product id
            quantity: Units to add

        Returns:
            The cart line after the change

        Raises:
            InvalidQuantity: quantity is not a positive whole number
            ProductNotFound: Product is not in the catalog
            InsufficientStock: Resulting line quantity exceeds current stock
        """
        count = whole_number(quantity)
        if count is None:
            raise InvalidQuantity('Quantity must be a whole number')
        if count <= 0:
            raise InvalidQuantity('Quantity must be greater than 0')
        quantity = count

        current = self._catalog_product(product)
        line = self.state.find_cart_item(current.id)
        wanted = quantity + (line.quantity if line else 0)

        if current.stock_quantity < wanted:
            raise InsufficientStock(
                f"Only {current.stock_quantity} {current.unit} of {current.name} in stock"
            )

        if line is not None:
            line.quantity = wanted
        else:
            line = CartItem(product=dataclasses.replace(current), quantity=quantity)
            self.state.cart.append(line)

        self._save()
        return line

    def remove_from_cart(self, product_id: str) -> None:
        """Removes the line for a product. Absent lines are ignored."""
        before = len(self.state.cart)
        self.state.cart = [i for i in self.state.cart if i.product_id != product_id]
        if len(self.state.cart) != before:
            self._save()

    def update_cart_item_quantity(self, product_id: str, quantity: int) -> None:
        """
        Replaces the quantity of a line in place.

        A quantity of 0 removes the line; a product not in the cart is
        ignored.

        Raises:
            InvalidQuantity: quantity is negative or not a whole number
            InsufficientStock: quantity exceeds the product's current stock
        """
        count = whole_number(quantity)
        if count is None:
            raise InvalidQuantity('Quantity must be a whole number')
        if count < 0:
            raise InvalidQuantity('Quantity cannot be negative')
        quantity = count

        line = self.state.find_cart_item(product_id)
        if line is None:
            return
        if quantity == 0:
            self.remove_from_cart(product_id)
            return

        current = self.state.find_product(product_id)
        if current is not None and quantity > current.stock_quantity:
            raise InsufficientStock(
                f"Only {current.stock_quantity} {current.unit} of {current.name} in stock"
            )

        line.quantity = quantity
        self._save()

    def override_price(self, product_id: str, price: float) -> None:
        """
        Sets a line price that replaces the catalog price for this sale.

        Raises:
            PermissionDenied: Not a manager session
            InvalidPrice: Negative price
        """
        self.session.require_role(UserRole.MANAGER)
        if price is None or price < 0:
            raise InvalidPrice()

        line = self.state.find_cart_item(product_id)
        if line is None:
            return
        line.overridden_price = float(price)
        self._save()

    def clear_cart(self) -> None:
        self.state.cart = []
        self._save()

    # =========================================================================
    # TOTALS
    # =========================================================================

    def get_cart_items(self) -> List[CartItem]:
        return list(self.state.cart)

    def get_cart_total(self) -> float:
        """Sum of unit price (override included) times quantity."""
        return sum(item.line_total for item in self.state.cart)

    def get_cart_summary(self) -> Dict[str, Any]:
        """
        Returns:
            Dict with items, item_count (units), line_count and total
        """
        return {
            'items': [item.to_dict() for item in self.state.cart],
            'item_count': sum(item.quantity for item in self.state.cart),
            'line_count': len(self.state.cart),
            'total': self.get_cart_total(),
        }
