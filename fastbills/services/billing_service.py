# ==============================================================================
# BILLING SERVICE
# ==============================================================================
# Turns the cart into a bill and handles the compensating transactions:
#
#   generate_bill  → new active bill, stock decremented, cart cleared
#   void_bill      → bill marked voided, stock restored (manager)
#   process_refund → new negative bill referencing the original, stock restored
#   delete_bill    → destructive removal, no compensation (manager)
#
# Every operation computes all new stock levels and records first and only
# then applies them, so a failed validation leaves the state untouched.
# Amounts are never rounded here; rounding is a presentation concern.
# ==============================================================================

import copy
import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from fastbills.config import TAX_RATE
from fastbills.errors import (
    BillNotFound,
    CannotRefundVoided,
    EmptyCart,
    InsufficientCash,
    InsufficientStock,
    InvalidRefundItems,
    StoreError,
)
from fastbills.models import (
    Bill,
    CartItem,
    PaymentMethod,
    UserRole,
    VoidStatus,
    local_now,
    new_id,
    whole_number,
)
from fastbills.repositories import KEY_BILLS, KEY_CART
from fastbills.services.catalog_service import CatalogService
from fastbills.services.persistence_service import PersistenceService
from fastbills.services.register_service import RegisterService
from fastbills.services.session_service import SessionService
from fastbills.state import StoreState

logger = logging.getLogger(__name__)


def _quantities(items: Iterable[CartItem]) -> Dict[str, int]:
    totals: Dict[str, int] = OrderedDict()
    for item in items:
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return totals


def _requested_quantities(refund_items: Iterable[Any]) -> Dict[str, int]:
    """
    Product id → quantity for the lines a caller asked to refund.

    Lines are CartItem objects or dicts with 'productId' (or a nested
    'product') and 'quantity'.
    """
    requested: Dict[str, int] = OrderedDict()
    for item in refund_items:
        if isinstance(item, CartItem):
            product_id, quantity = item.product_id, item.quantity
        elif isinstance(item, dict):
            product_id = item.get('productId') or (item.get('product') or {}).get('id')
            quantity = item.get('quantity')
        else:
            raise InvalidRefundItems()
        quantity = whole_number(quantity)
        if quantity is None:
            raise InvalidRefundItems('Refund quantity must be a whole number')
        if not product_id or quantity <= 0:
            raise InvalidRefundItems('Refund quantities must be greater than 0')
        product_id = str(product_id)
        requested[product_id] = requested.get(product_id, 0) + quantity
    return requested


class BillingService:
    """
    Billing engine.

    Responsibilities:
    - Checkout: cart → bill, tax, discount, change
    - Void and refund with stock reversal
    - Bill history
    """

    def __init__(
        self,
        state: StoreState,
        session: SessionService,
        catalog: CatalogService,
        register: RegisterService,
        persistence: PersistenceService
    ):
        """
        Args:
            state: Shared application state
            session: Session service (role gate, cashier name)
            catalog: Catalog service (stock writes)
            register: Register service (transaction recording)
            persistence: Persistence service
        """
        self.state = state
        self.session = session
        self.catalog = catalog
        self.register = register
        self.persistence = persistence

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_bill(self, bill_id: str) -> Optional[Bill]:
        return self.state.find_bill(bill_id)

    def list_bills(self) -> List[Bill]:
        """Bills, most recent first."""
        return list(self.state.bills)

    def refunds_of(self, bill_id: str) -> List[Bill]:
        return [b for b in self.state.bills if b.refund_reference == bill_id]

    def _refunded_quantities(self, bill_id: str) -> Dict[str, int]:
        """Units of each product returned by the active refunds of a bill."""
        return _quantities(
            item
            for refund in self.refunds_of(bill_id) if not refund.is_voided
            for item in refund.items
        )

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    def generate_bill(
        self,
        customer_name: str = None,
        customer_phone: str = None,
        payment_method: str = 'cash',
        discount: float = 0,
        cash_amount: float = None
    ) -> Bill:
        """
        Creates a bill from the cart.

        Args:
            customer_name: Optional customer name
            customer_phone: Optional customer phone
            payment_method: 'cash', 'card' or 'upi'
            discount: Flat amount subtracted from subtotal plus tax
            cash_amount: Cash tendered (cash payments only)

        Returns:
            The new bill

        Raises:
            NoSession: Nobody is logged in
            EmptyCart: Nothing to bill
            InsufficientCash: Tendered cash below the final amount
            InsufficientStock: A line exceeds the current stock
        """
        user = self.session.require_session()
        if not self.state.cart:
            raise EmptyCart()

        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise StoreError(f"Unknown payment method: {payment_method}")

        discount = float(discount or 0)
        subtotal = sum(item.line_total for item in self.state.cart)
        tax = subtotal * TAX_RATE
        final_amount = subtotal + tax - discount

        change_due = None
        if method == PaymentMethod.CASH and cash_amount is not None:
            if cash_amount < final_amount:
                raise InsufficientCash()
            change_due = cash_amount - final_amount

        levels = {}
        for product_id, quantity in _quantities(self.state.cart).items():
            product = self.state.find_product(product_id)
            if product is None:
                continue
            remaining = product.stock_quantity - quantity
            if remaining < 0:
                raise InsufficientStock(
                    f"Only {product.stock_quantity} {product.unit} of {product.name} in stock"
                )
            levels[product_id] = remaining

        bill = Bill(
            id=new_id(),
            items=copy.deepcopy(self.state.cart),
            total=subtotal,
            tax=tax,
            discount=discount,
            final_amount=final_amount,
            date=local_now(),
            payment_method=method,
            cashier_name=user.name,
            customer_name=customer_name or None,
            customer_phone=customer_phone or None,
            change_due=change_due,
        )

        self.state.bills.insert(0, bill)
        self.catalog.apply_stock_levels(levels)
        self.register.record_transaction(bill)
        self.state.cart = []
        self.persistence.persist(KEY_BILLS, KEY_CART)

        logger.info(
            "Bill %s generated by %s: %.2f (%s)",
            bill.id, user.name, bill.final_amount, method.value,
        )
        return bill

    # =========================================================================
    # VOID / DELETE
    # =========================================================================

    def void_bill(self, bill_id: str, reason: str) -> Bill:
        """
        Voids an active bill and reverses its stock movement.

        Voiding a sale puts back the units that active refunds have not
        already returned. Voiding a refund takes its returned units out of
        stock again, unless the sale it refunded is itself voided. Voiding
        an already voided bill changes nothing.

        Raises:
            PermissionDenied: Not a manager session
            BillNotFound: Unknown bill id
            InsufficientStock: Voiding a refund whose units are no longer
                               in stock
        """
        manager = self.session.require_role(UserRole.MANAGER)
        bill = self.state.find_bill(bill_id)
        if bill is None:
            raise BillNotFound()
        if bill.is_voided:
            return bill

        if bill.is_refund:
            original = self.state.find_bill(bill.refund_reference)
            if original is not None and original.is_voided:
                movement = {}
            else:
                movement = {pid: -q for pid, q in _quantities(bill.items).items()}
        else:
            returned = self._refunded_quantities(bill.id)
            movement = {
                pid: q - returned.get(pid, 0)
                for pid, q in _quantities(bill.items).items()
            }

        levels = {}
        for product_id, change in movement.items():
            product = self.state.find_product(product_id)
            if product is None or change == 0:
                continue
            level = product.stock_quantity + change
            if level < 0:
                raise InsufficientStock(
                    f"Only {product.stock_quantity} {product.unit} of {product.name} in stock"
                )
            levels[product_id] = level

        self.catalog.apply_stock_levels(levels)
        bill.void_status = VoidStatus.VOIDED
        bill.void_reason = reason
        bill.voided_by = manager.name
        self.persistence.persist(KEY_BILLS)

        logger.info("Bill %s voided by %s: %s", bill.id, manager.name, reason)
        return bill

    def delete_bill(self, bill_id: str) -> Optional[Bill]:
        """
        Removes a bill permanently.

        Stock and register are left as they are.

        Returns:
            The removed bill, or None if the id is unknown

        Raises:
            PermissionDenied: Not a manager session
        """
        manager = self.session.require_role(UserRole.MANAGER)
        bill = self.state.find_bill(bill_id)
        if bill is None:
            return None

        self.state.bills = [b for b in self.state.bills if b.id != bill_id]
        self.persistence.persist(KEY_BILLS)
        logger.info("Bill %s deleted by %s", bill_id, manager.name)
        return bill

    # =========================================================================
    # REFUNDS
    # =========================================================================

    def process_refund(self, original_bill_id: str, refund_items: Iterable[Any] = None) -> Bill:
        """
        Issues a refund bill for all or part of an earlier bill.

        Refunded lines are priced from the original bill's line snapshots.
        The original bill is left as it is.

        Args:
            original_bill_id: Bill being refunded
            refund_items: Lines to refund (CartItem or {'productId',
                          'quantity'} dicts). None refunds every line.

        Returns:
            The refund bill (negative amounts)

        Raises:
            NoSession: Nobody is logged in
            BillNotFound: Unknown bill id
            CannotRefundVoided: The bill is voided
            InvalidRefundItems: Lines not on the original bill, quantities
                                beyond what is left to refund, or the
                                original is itself a refund
        """
        user = self.session.require_session()
        original = self.state.find_bill(original_bill_id)
        if original is None:
            raise BillNotFound()
        if original.is_voided:
            raise CannotRefundVoided()
        if original.is_refund:
            raise InvalidRefundItems('A refund cannot be refunded')

        billed = _quantities(original.items)
        if refund_items is None:
            requested = OrderedDict(billed)
        else:
            requested = _requested_quantities(refund_items)
            if not requested:
                raise InvalidRefundItems('Nothing to refund')

        already = self._refunded_quantities(original.id)
        for product_id, quantity in requested.items():
            if product_id not in billed:
                raise InvalidRefundItems(f"Product {product_id} is not on bill {original.id}")
            if already.get(product_id, 0) + quantity > billed[product_id]:
                raise InvalidRefundItems(
                    f"Refund of product {product_id} exceeds the billed quantity"
                )

        snapshots = {item.product_id: item for item in original.items}
        lines = [
            CartItem(
                product=copy.deepcopy(snapshots[product_id].product),
                quantity=quantity,
                overridden_price=snapshots[product_id].overridden_price,
            )
            for product_id, quantity in requested.items()
        ]
        subtotal = sum(line.line_total for line in lines)
        tax = subtotal * TAX_RATE

        levels = {}
        for product_id, quantity in requested.items():
            product = self.state.find_product(product_id)
            if product is not None:
                levels[product_id] = product.stock_quantity + quantity

        refund = Bill(
            id=new_id(),
            items=lines,
            total=-subtotal,
            tax=-tax,
            discount=0,
            final_amount=-(subtotal + tax),
            date=local_now(),
            payment_method=original.payment_method,
            cashier_name=user.name,
            customer_name=original.customer_name,
            customer_phone=original.customer_phone,
            refund_reference=original.id,
        )

        self.state.bills.insert(0, refund)
        self.catalog.apply_stock_levels(levels)
        self.register.record_transaction(refund)
        self.persistence.persist(KEY_BILLS)

        logger.info(
            "Refund %s issued by %s for bill %s: %.2f",
            refund.id, user.name, original.id, refund.final_amount,
        )
        return refund
