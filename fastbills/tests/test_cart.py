import pytest

from fastbills.errors import (
    InsufficientStock,
    InvalidPrice,
    InvalidQuantity,
    PermissionDenied,
    ProductNotFound,
)
from fastbills.repositories import KEY_CART


def test_add_to_cart_appends_and_merges(container):
    cart = container.cart_service
    cart.add_to_cart('1', 2)
    cart.add_to_cart('3', 1)
    cart.add_to_cart('1', 3)

    items = cart.get_cart_items()
    assert [(i.product_id, i.quantity) for i in items] == [('1', 5), ('3', 1)]
    # stock is not reserved
    assert container.catalog_service.get_product('1').stock_quantity == 50


def test_add_to_cart_accepts_product_object(container):
    product = container.catalog_service.get_product('2')
    line = container.cart_service.add_to_cart(product, 1)
    assert line.product is not product
    assert line.product.name == 'Bananas'


def test_add_to_cart_insufficient_stock(container):
    container.catalog_service.update_stock('1', 2)
    with pytest.raises(InsufficientStock):
        container.cart_service.add_to_cart('1', 5)
    assert container.cart_service.get_cart_items() == []


def test_merge_revalidates_against_current_stock(container):
    cart = container.cart_service
    cart.add_to_cart('5', 15)
    with pytest.raises(InsufficientStock):
        cart.add_to_cart('5', 6)
    assert cart.get_cart_items()[0].quantity == 15


def test_add_to_cart_rejects_bad_input(container):
    cart = container.cart_service
    with pytest.raises(InvalidQuantity):
        cart.add_to_cart('1', 0)
    with pytest.raises(ProductNotFound):
        cart.add_to_cart('unknown', 1)


def test_cart_quantities_must_be_whole(container):
    cart = container.cart_service
    with pytest.raises(InvalidQuantity):
        cart.add_to_cart('1', 1.5)
    assert cart.get_cart_items() == []

    line = cart.add_to_cart('1', 2.0)
    assert line.quantity == 2 and isinstance(line.quantity, int)

    with pytest.raises(InvalidQuantity):
        cart.update_cart_item_quantity('1', 2.5)
    assert line.quantity == 2


def test_remove_from_cart_is_idempotent(container):
    cart = container.cart_service
    cart.add_to_cart('1', 1)
    cart.remove_from_cart('1')
    cart.remove_from_cart('1')
    assert cart.get_cart_items() == []


def test_update_cart_item_quantity(container):
    cart = container.cart_service
    cart.add_to_cart('1', 1)
    cart.add_to_cart('2', 1)

    cart.update_cart_item_quantity('1', 4)
    assert [(i.product_id, i.quantity) for i in cart.get_cart_items()] == [('1', 4), ('2', 1)]

    with pytest.raises(InsufficientStock):
        cart.update_cart_item_quantity('1', 51)
    with pytest.raises(InvalidQuantity):
        cart.update_cart_item_quantity('1', -1)

    cart.update_cart_item_quantity('missing', 3)
    cart.update_cart_item_quantity('2', 0)
    assert [(i.product_id, i.quantity) for i in cart.get_cart_items()] == [('1', 4)]


def test_override_price_as_manager(container, as_manager):
    cart = container.cart_service
    cart.add_to_cart('1', 2)
    cart.override_price('1', 2.5)

    assert cart.get_cart_total() == pytest.approx(5.0)
    # catalog price untouched
    assert container.catalog_service.get_product('1').price == 2.99


def test_override_price_zero_is_honoured(container, as_manager):
    cart = container.cart_service
    cart.add_to_cart('1', 2)
    cart.override_price('1', 0)
    assert cart.get_cart_total() == 0


def test_override_price_as_cashier(container, as_cashier):
    cart = container.cart_service
    cart.add_to_cart('1', 3)
    with pytest.raises(PermissionDenied):
        cart.override_price('1', 1.0)
    line = cart.get_cart_items()[0]
    assert line.overridden_price is None
    assert cart.get_cart_total() == pytest.approx(8.97)


def test_override_price_rejects_negative(container, as_manager):
    container.cart_service.add_to_cart('1', 1)
    with pytest.raises(InvalidPrice):
        container.cart_service.override_price('1', -0.5)


def test_cart_summary_and_clear(container, storage):
    cart = container.cart_service
    cart.add_to_cart('1', 3)
    cart.add_to_cart('4', 2)

    summary = cart.get_cart_summary()
    assert summary['item_count'] == 5
    assert summary['line_count'] == 2
    assert summary['total'] == pytest.approx(2.99 * 3 + 2.29 * 2)
    assert len(storage.load(KEY_CART)) == 2

    cart.clear_cart()
    assert cart.get_cart_total() == 0
    assert storage.load(KEY_CART) == []
