import pytest

from fastbills.errors import NoOpenRegister, NoSession, RegisterAlreadyOpen
from fastbills.repositories import KEY_CASH_REGISTER, KEY_LAST_CLOSED_REGISTER


@pytest.fixture
def boxed_product(container, as_manager):
    return container.catalog_service.add_product({
        'name': 'Gift Box',
        'price': 10,
        'category': 'Snacks',
        'stockQuantity': 10,
        'lowStockThreshold': 1,
    })


def test_open_and_close_scenario(container, as_manager, boxed_product, storage):
    registers = container.register_service
    register = registers.open_register(as_manager.id, 100)
    assert registers.current_register is register
    assert storage.load(KEY_CASH_REGISTER)['openingBalance'] == 100

    container.cart_service.add_to_cart(boxed_product.id, 2)
    bill = container.billing_service.generate_bill(payment_method='cash', discount=2)
    assert bill.final_amount == 20
    assert [t.id for t in register.transactions] == [bill.id]

    closed = registers.close_register(120)
    summary = registers.reconcile(closed)
    assert summary['expected'] == 120
    assert summary['difference'] == 0
    assert summary['status'] == 'balanced'

    assert registers.current_register is None
    assert registers.last_closed_register is closed
    assert closed.closing_balance == 120
    assert closed.closed_at is not None
    assert not storage.exists(KEY_CASH_REGISTER)
    assert storage.load(KEY_LAST_CLOSED_REGISTER)['closingBalance'] == 120


def test_reconcile_counts_only_cash(container, as_cashier):
    registers = container.register_service
    register = registers.open_register(as_cashier.id, 50)

    container.cart_service.add_to_cart('2', 2)
    card = container.billing_service.generate_bill(payment_method='card')
    container.cart_service.add_to_cart('8', 1)
    cash = container.billing_service.generate_bill(payment_method='cash', cash_amount=5)
    assert len(register.transactions) == 2

    summary = registers.reconcile(register, counted=50)
    assert summary['cash_sales'] == pytest.approx(cash.final_amount)
    assert summary['expected'] == pytest.approx(50 + cash.final_amount)
    assert summary['status'] == 'shortage'
    assert card.final_amount > 0

    assert registers.reconcile(register, counted=60)['status'] == 'excess'
    assert registers.reconcile(register)['status'] is None


def test_refunds_reduce_expected_cash(container, as_cashier):
    registers = container.register_service
    register = registers.open_register(as_cashier.id, 100)
    container.cart_service.add_to_cart('1', 1)
    bill = container.billing_service.generate_bill()
    container.billing_service.process_refund(bill.id)

    summary = registers.reconcile(register, counted=100)
    assert summary['cash_sales'] == pytest.approx(0)
    assert summary['status'] == 'balanced'


def test_void_does_not_rewrite_ledger_snapshot(container, as_manager):
    registers = container.register_service
    register = registers.open_register(as_manager.id, 0)
    container.cart_service.add_to_cart('1', 1)
    bill = container.billing_service.generate_bill()
    container.billing_service.void_bill(bill.id, 'test')

    assert not register.transactions[0].is_voided


def test_open_requires_session(container):
    with pytest.raises(NoSession):
        container.register_service.open_register('1', 100)


def test_double_open_rejected(container, as_cashier):
    registers = container.register_service
    first = registers.open_register(as_cashier.id, 100)
    with pytest.raises(RegisterAlreadyOpen):
        registers.open_register(as_cashier.id, 10)
    assert registers.current_register is first

    registers.close_register(100)
    second = registers.open_register(as_cashier.id, 10)
    assert second is not first


def test_close_without_open_register(container, as_cashier):
    with pytest.raises(NoOpenRegister):
        container.register_service.close_register(10)
