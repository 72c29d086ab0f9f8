# ==============================================================================
# APPLICATION STATE - The single aggregate every service works on
# ==============================================================================
# One instance per running application, created by AppContainer and passed
# explicitly to each service. Nothing here is a module-level global, so
# tests build as many independent stores as they like.
# ==============================================================================

from dataclasses import dataclass, field
from typing import List, Optional

from fastbills.models import Bill, CartItem, CashRegister, Product, User


@dataclass
class StoreState:
    """
    In-memory state of the point of sale.

    Attributes:
        products: Catalog
        cart: Lines of the in-progress sale
        bills: Bills, most recent first
        users: Known users
        current_user: Logged-in user (None when logged out)
        cash_register: Open register (None when no register is open)
        last_closed_register: Most recently closed register, kept for its
                              closing summary
    """
    products: List[Product] = field(default_factory=list)
    cart: List[CartItem] = field(default_factory=list)
    bills: List[Bill] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    current_user: Optional[User] = None
    cash_register: Optional[CashRegister] = None
    last_closed_register: Optional[CashRegister] = None

    def find_product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def find_bill(self, bill_id: str) -> Optional[Bill]:
        for bill in self.bills:
            if bill.id == bill_id:
                return bill
        return None

    def find_cart_item(self, product_id: str) -> Optional[CartItem]:
        for item in self.cart:
            if item.product_id == product_id:
                return item
        return None
