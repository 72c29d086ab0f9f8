# ==============================================================================
# CASH REGISTER SERVICE
# ==============================================================================
# At most one open register at a time. Bills generated while it is open are
# recorded as snapshots; closing moves the ledger to last_closed_register so
# the closing summary stays readable.
# ==============================================================================

import logging
from typing import Any, Dict, Optional

from fastbills.errors import NoOpenRegister, RegisterAlreadyOpen
from fastbills.models import Bill, CashRegister, PaymentMethod, local_now
from fastbills.repositories import KEY_CASH_REGISTER, KEY_LAST_CLOSED_REGISTER
from fastbills.services.persistence_service import PersistenceService
from fastbills.services.session_service import SessionService
from fastbills.state import StoreState

logger = logging.getLogger(__name__)


class RegisterService:
    """
    Cash drawer ledger.

    Responsibilities:
    - Open and close the register
    - Record bills against the open register
    - Expected vs counted cash reconciliation
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

    @property
    def current_register(self) -> Optional[CashRegister]:
        return self.state.cash_register

    @property
    def last_closed_register(self) -> Optional[CashRegister]:
        return self.state.last_closed_register

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def open_register(self, user_id: str, initial_amount: float) -> CashRegister:
        """
        Opens a register with an opening balance.

        Args:
            user_id: Id of the cashier owning the session
            initial_amount: Cash in the drawer

        Raises:
            NoSession: Nobody is logged in
            RegisterAlreadyOpen: A register is already open
        """
        self.session.require_session()
        if self.state.cash_register is not None:
            raise RegisterAlreadyOpen()

        register = CashRegister(
            opening_balance=float(initial_amount),
            opened_at=local_now(),
            cashier_id=str(user_id),
        )
        self.state.cash_register = register
        self.persistence.persist(KEY_CASH_REGISTER)
        logger.info("Register opened by %s with %.2f", user_id, register.opening_balance)
        return register

    def close_register(self, final_amount: float) -> CashRegister:
        """
        Closes the open register with the counted cash.

        Returns:
            The closed register (also available as last_closed_register)

        Raises:
            NoOpenRegister: No register is open
        """
        register = self.state.cash_register
        if register is None:
            raise NoOpenRegister()

        register.closing_balance = float(final_amount)
        register.closed_at = local_now()
        self.state.last_closed_register = register
        self.state.cash_register = None
        self.persistence.persist(KEY_CASH_REGISTER, KEY_LAST_CLOSED_REGISTER)

        summary = self.reconcile(register)
        logger.info(
            "Register closed: expected %.2f, counted %.2f, difference %.2f",
            summary['expected'], summary['counted'], summary['difference'],
        )
        return register

    def record_transaction(self, bill: Bill) -> bool:
        """
        Appends a bill snapshot to the open register.

        Returns:
            False when no register is open
        """
        register = self.state.cash_register
        if register is None:
            return False
        register.transactions.append(bill.snapshot())
        self.persistence.persist(KEY_CASH_REGISTER)
        return True

    # =========================================================================
    # RECONCILIATION
    # =========================================================================

    @staticmethod
    def reconcile(register: CashRegister, counted: float = None) -> Dict[str, Any]:
        """
        Expected cash vs counted cash.

        expected = opening balance + final amounts of cash transactions
        (refunds included, they are negative).

        Args:
            register: Open or closed register
            counted: Counted cash (defaults to the closing balance)

        Returns:
            Dict with opening_balance, cash_sales, expected, counted,
            difference, transaction_count and status
            ('balanced', 'excess', 'shortage')
        """
        if register is None:
            raise NoOpenRegister()

        cash_sales = sum(
            t.final_amount for t in register.transactions
            if t.payment_method == PaymentMethod.CASH
        )
        expected = register.opening_balance + cash_sales
        if counted is None:
            counted = register.closing_balance
        difference = None if counted is None else counted - expected

        if difference is None:
            status = None
        elif round(difference, 2) == 0:
            status = 'balanced'
        elif difference > 0:
            status = 'excess'
        else:
            status = 'shortage'

        return {
            'opening_balance': register.opening_balance,
            'cash_sales': cash_sales,
            'expected': expected,
            'counted': counted,
            'difference': difference,
            'transaction_count': len(register.transactions),
            'status': status,
        }
