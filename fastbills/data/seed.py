# ==============================================================================
# SEED DATA - Sample catalog and users
# ==============================================================================
# Loaded on first start (or when the stored lists are empty). Passwords are
# plain text on purpose: the default credential verifier compares them
# exactly. Switch FASTBILLS_CREDENTIALS=hashed after migrating them.
# ==============================================================================

from typing import List

from fastbills.models import Product, User, UserRole


_PRODUCT_ROWS = [
    # id, name, price, category, unit, barcode, stock, threshold
    ('1', 'Apples', 2.99, 'Fruits', 'kg', '8901234567890', 50, 10),
    ('2', 'Bananas', 1.49, 'Fruits', 'kg', '8901234567891', 40, 8),
    ('3', 'Milk', 3.49, 'Dairy', 'liter', '8901234567892', 30, 10),
    ('4', 'Bread', 2.29, 'Bakery', 'pcs', '8901234567893', 25, 5),
    ('5', 'Eggs', 3.99, 'Dairy', 'dozen', '8901234567894', 20, 5),
    ('6', 'Chicken', 7.99, 'Meat', 'kg', '8901234567895', 15, 3),
    ('7', 'Rice', 4.99, 'Grains', 'kg', '8901234567896', 40, 10),
    ('8', 'Pasta', 1.99, 'Grains', 'pcs', '8901234567897', 35, 7),
    ('9', 'Tomatoes', 2.49, 'Vegetables', 'kg', '8901234567898', 30, 5),
    ('10', 'Potatoes', 1.99, 'Vegetables', 'kg', '8901234567899', 45, 10),
    ('11', 'Orange Juice', 3.99, 'Beverages', 'liter', '8901234567900', 18, 5),
    ('12', 'Coffee', 5.99, 'Beverages', 'pcs', '8901234567901', 20, 5),
    ('13', 'Chocolate', 2.99, 'Snacks', 'pcs', '8901234567902', 40, 8),
    ('14', 'Cheese', 4.49, 'Dairy', 'pcs', '8901234567903', 15, 4),
    ('15', 'Yogurt', 1.79, 'Dairy', 'pcs', '8901234567904', 25, 6),
]


def sample_products() -> List[Product]:
    """Fresh copies of the sample catalog."""
    return [
        Product(
            id=pid,
            name=name,
            price=price,
            category=category,
            unit=unit,
            barcode=barcode,
            stock_quantity=stock,
            low_stock_threshold=threshold,
        )
        for pid, name, price, category, unit, barcode, stock, threshold in _PRODUCT_ROWS
    ]


def sample_users() -> List[User]:
    """Fresh copies of the seed users."""
    return [
        User(id='1', name='manager', role=UserRole.MANAGER, password='manager123'),
        User(id='2', name='cashier', role=UserRole.CASHIER, password='cashier123'),
        User(id='3', name='cashier1', role=UserRole.CASHIER, password='cashier123'),
        User(id='4', name='cashier2', role=UserRole.CASHIER, password='cashier456'),
    ]
