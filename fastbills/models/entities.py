# ==============================================================================
# DOMAIN ENTITIES - Dataclass definitions
# ==============================================================================
# Each entity is a business concept. They serialize to the camelCase JSON
# documents stored under the persistence keys (products, bills, cart, ...),
# so a data file written by one version can be read by the next.
# ==============================================================================

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# ==============================================================================
# ENUMERATIONS
# ==============================================================================

class UserRole(str, Enum):
    """Roles available in the system."""
    MANAGER = 'manager'
    CASHIER = 'cashier'


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CASH = 'cash'
    CARD = 'card'
    UPI = 'upi'


class VoidStatus(str, Enum):
    """Lifecycle of a bill: active → voided (terminal)."""
    ACTIVE = 'active'
    VOIDED = 'voided'


class ReportTimeframe(str, Enum):
    """Windows supported by the sales report."""
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'


# Curated category list shown by the product forms (not enforced)
PRODUCT_CATEGORIES = (
    'Fruits', 'Vegetables', 'Dairy', 'Bakery',
    'Meat', 'Grains', 'Beverages', 'Snacks',
)


def new_id() -> str:
    """Fresh identifier for products and bills."""
    return uuid.uuid4().hex


def local_now() -> datetime:
    """Current time as a timezone-aware local datetime."""
    return datetime.now().astimezone()


def whole_number(value: Any) -> Optional[int]:
    """
    Returns value as an int when it is a whole number (2, 2.0, '2').

    Returns None for fractions, booleans and anything non-numeric.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parses a stored timestamp.

    Naive values are interpreted as local time. Returns None if the value
    cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif not value:
        return None
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except (ValueError, TypeError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _to_enum(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


# ==============================================================================
# USERS
# ==============================================================================

@dataclass
class User:
    """
    A system user.

    The display name doubles as the login identifier. The password is stored
    as given; how it is compared is up to the configured credential verifier.

    Attributes:
        id: Stable identifier
        name: Display name and login identifier
        role: Role that defines permissions
        password: Stored credential (plain text or werkzeug hash)
    """
    id: str
    name: str
    role: UserRole = UserRole.CASHIER
    password: str = ''

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role.value,
            'password': self.password,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Same as to_dict() without the credential, for API responses."""
        return {'id': self.id, 'name': self.name, 'role': self.role.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            role=_to_enum(UserRole, data.get('role'), UserRole.CASHIER),
            password=data.get('password', ''),
        )


# ==============================================================================
# CATALOG
# ==============================================================================

@dataclass
class Product:
    """
    A product in the catalog.

    Attributes:
        id: Stable, externally unique identifier
        name: Product name
        price: Unit price (non-negative)
        category: Free-form category, by convention one of PRODUCT_CATEGORIES
        unit: Unit label (kg, pcs, liter, ...)
        stock_quantity: Units in stock (never negative)
        low_stock_threshold: Stock level at or below which the product is low
        barcode: Optional barcode used by the scanner lookup
        image: Optional image URL
    """
    id: str
    name: str
    price: float
    category: str = ''
    unit: str = 'pcs'
    stock_quantity: int = 0
    low_stock_threshold: int = 0
    barcode: Optional[str] = None
    image: Optional[str] = None

    @property
    def is_low_stock(self) -> bool:
        """Stock at or below the configured threshold."""
        return self.stock_quantity <= self.low_stock_threshold

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'category': self.category,
            'unit': self.unit,
            'stockQuantity': self.stock_quantity,
            'lowStockThreshold': self.low_stock_threshold,
        }
        if self.barcode is not None:
            d['barcode'] = self.barcode
        if self.image is not None:
            d['image'] = self.image
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            price=float(data.get('price', 0) or 0),
            category=data.get('category', ''),
            unit=data.get('unit', 'pcs'),
            stock_quantity=int(data.get('stockQuantity', 0) or 0),
            low_stock_threshold=int(data.get('lowStockThreshold', 0) or 0),
            barcode=data.get('barcode'),
            image=data.get('image'),
        )


# ==============================================================================
# CART
# ==============================================================================

@dataclass
class CartItem:
    """
    A cart line: a product snapshot and a quantity.

    Attributes:
        product: Product snapshot taken when the line was added
        quantity: Units on this line
        overridden_price: Manager override that replaces the catalog price
                          on this line only
    """
    product: Product
    quantity: int
    overridden_price: Optional[float] = None

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def unit_price(self) -> float:
        """Override if one is set (0 included), otherwise the product price."""
        if self.overridden_price is not None:
            return self.overridden_price
        return self.product.price

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'product': self.product.to_dict(),
            'quantity': self.quantity,
        }
        if self.overridden_price is not None:
            d['overriddenPrice'] = self.overridden_price
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        override = data.get('overriddenPrice')
        return cls(
            product=Product.from_dict(data.get('product', {})),
            quantity=int(data.get('quantity', 0) or 0),
            overridden_price=float(override) if override is not None else None,
        )


# ==============================================================================
# BILLS
# ==============================================================================

@dataclass
class Bill:
    """
    A completed sale or refund.

    Immutable once created, except for the void fields (void_status,
    void_reason, voided_by). A refund is a separate bill with negated amounts
    and refund_reference pointing at the refunded bill.

    Attributes:
        id: Bill identifier
        items: Cart line snapshots at time of sale
        total: Subtotal
        tax: Tax over the subtotal
        discount: Flat amount subtracted
        final_amount: total + tax - discount
        date: Creation timestamp
        payment_method: cash, card or upi
        cashier_name: Display name of the user who created the bill
        customer_name: Optional customer name
        customer_phone: Optional customer phone
        void_status: active or voided
        void_reason: Reason given when voided
        voided_by: Manager who voided the bill
        change_due: Change handed back (cash payments with tendered amount)
        refund_reference: Id of the bill this one refunds
    """
    id: str
    items: List[CartItem]
    total: float
    tax: float
    discount: float
    final_amount: float
    date: datetime
    payment_method: PaymentMethod = PaymentMethod.CASH
    cashier_name: str = ''
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    void_status: VoidStatus = VoidStatus.ACTIVE
    void_reason: Optional[str] = None
    voided_by: Optional[str] = None
    change_due: Optional[float] = None
    refund_reference: Optional[str] = None

    @property
    def is_voided(self) -> bool:
        return self.void_status == VoidStatus.VOIDED

    @property
    def is_refund(self) -> bool:
        return self.refund_reference is not None

    def references_product(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self.items)

    def snapshot(self) -> 'Bill':
        """Detached deep copy (register ledger, report projections)."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
            'tax': self.tax,
            'discount': self.discount,
            'finalAmount': self.final_amount,
            'date': _format_timestamp(self.date),
            'paymentMethod': self.payment_method.value,
            'cashierName': self.cashier_name,
            'voidStatus': self.void_status.value,
        }
        optional = {
            'customerName': self.customer_name,
            'customerPhone': self.customer_phone,
            'voidReason': self.void_reason,
            'voidedBy': self.voided_by,
            'changeDue': self.change_due,
            'refundReference': self.refund_reference,
        }
        d.update({k: v for k, v in optional.items() if v is not None})
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Bill':
        change_due = data.get('changeDue')
        return cls(
            id=str(data.get('id', '')),
            items=[CartItem.from_dict(i) for i in data.get('items', [])],
            total=float(data.get('total', 0) or 0),
            tax=float(data.get('tax', 0) or 0),
            discount=float(data.get('discount', 0) or 0),
            final_amount=float(data.get('finalAmount', 0) or 0),
            date=parse_timestamp(data.get('date')) or local_now(),
            payment_method=_to_enum(PaymentMethod, data.get('paymentMethod'), PaymentMethod.CASH),
            cashier_name=data.get('cashierName', ''),
            customer_name=data.get('customerName'),
            customer_phone=data.get('customerPhone'),
            void_status=_to_enum(VoidStatus, data.get('voidStatus'), VoidStatus.ACTIVE),
            void_reason=data.get('voidReason'),
            voided_by=data.get('voidedBy'),
            change_due=float(change_due) if change_due is not None else None,
            refund_reference=data.get('refundReference'),
        )


# ==============================================================================
# CASH REGISTER
# ==============================================================================

@dataclass
class CashRegister:
    """
    A cash drawer session.

    Attributes:
        opening_balance: Cash in the drawer when opened
        opened_at: When the register was opened
        cashier_id: Id of the user owning the session
        transactions: Bill snapshots recorded while open (refunds included)
        closing_balance: Counted cash at close
        closed_at: When the register was closed
    """
    opening_balance: float
    opened_at: datetime
    cashier_id: str
    transactions: List[Bill] = field(default_factory=list)
    closing_balance: Optional[float] = None
    closed_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.closed_at is None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'openingBalance': self.opening_balance,
            'openedAt': _format_timestamp(self.opened_at),
            'cashierId': self.cashier_id,
            'transactions': [bill.to_dict() for bill in self.transactions],
        }
        if self.closing_balance is not None:
            d['closingBalance'] = self.closing_balance
        if self.closed_at is not None:
            d['closedAt'] = _format_timestamp(self.closed_at)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CashRegister':
        closing = data.get('closingBalance')
        return cls(
            opening_balance=float(data.get('openingBalance', 0) or 0),
            opened_at=parse_timestamp(data.get('openedAt')) or local_now(),
            cashier_id=str(data.get('cashierId', '')),
            transactions=[Bill.from_dict(b) for b in data.get('transactions', [])],
            closing_balance=float(closing) if closing is not None else None,
            closed_at=parse_timestamp(data.get('closedAt')),
        )
