# ==============================================================================
# REPORTING SERVICE
# ==============================================================================
# Read-only aggregation over bills and products. Nothing is cached: every
# call recomputes from the current state.
# ==============================================================================

import copy
from datetime import datetime, time, timedelta
from typing import Any, Callable, Dict, Iterable, List, Union

from fastbills.models import Bill, Product, ReportTimeframe, local_now
from fastbills.services.session_service import SessionService
from fastbills.state import StoreState


def period_start(timeframe: ReportTimeframe, now: datetime) -> datetime:
    """
    Local start of the current day, week (Sunday) or month.

    The boundary is built as a local calendar date and only then given its
    UTC offset, so a daylight saving change inside the window does not move
    it off midnight.

    Args:
        timeframe: Report window
        now: Reference time
    """
    today = now.astimezone().date()

    if timeframe == ReportTimeframe.DAILY:
        first_day = today
    elif timeframe == ReportTimeframe.WEEKLY:
        # weekday(): Monday=0 ... Sunday=6
        first_day = today - timedelta(days=(today.weekday() + 1) % 7)
    else:
        first_day = today.replace(day=1)
    return datetime.combine(first_day, time()).astimezone()


class ReportingService:
    """
    Sales and inventory reports.

    Both reports require a logged-in user; which roles see the reports screen
    is decided by the HTTP layer.
    """

    def __init__(
        self,
        state: StoreState,
        session: SessionService,
        clock: Callable[[], datetime] = local_now
    ):
        """
        Args:
            state: Shared application state
            session: Session service
            clock: Returns the current time (tests pin it)
        """
        self.state = state
        self.session = session
        self.clock = clock

    def generate_sales_report(
        self,
        timeframe: Union[ReportTimeframe, str],
        category_filter: str = None
    ) -> List[Bill]:
        """
        Non-voided bills dated inside the current period.

        Args:
            timeframe: 'daily', 'weekly' or 'monthly'
            category_filter: Keep only lines of this category; bills left
                             without lines are dropped

        Returns:
            Bills (copies when filtered), most recent first

        Raises:
            NoSession: Nobody is logged in
            ValueError: Unknown timeframe
        """
        self.session.require_session()
        start = period_start(ReportTimeframe(timeframe), self.clock())

        bills = [
            b for b in self.state.bills
            if not b.is_voided and b.date >= start
        ]
        if not category_filter:
            return bills

        filtered = []
        for bill in bills:
            items = [i for i in bill.items if i.product.category == category_filter]
            if not items:
                continue
            projected = copy.copy(bill)
            projected.items = items
            filtered.append(projected)
        return filtered

    def generate_inventory_report(self) -> List[Product]:
        """
        Products sorted by stock, lowest first.

        Raises:
            NoSession: Nobody is logged in
        """
        self.session.require_session()
        return sorted(self.state.products, key=lambda p: p.stock_quantity)

    @staticmethod
    def summarize_sales(bills: Iterable[Bill]) -> Dict[str, Any]:
        """
        Totals for a list of bills.

        Returns:
            Dict with total_sales (sum of final amounts), bill_count,
            category_sales (line totals per category) and
            payment_method_sales (final amounts per method)
        """
        total = 0.0
        count = 0
        by_category: Dict[str, float] = {}
        by_method: Dict[str, float] = {}

        for bill in bills:
            count += 1
            total += bill.final_amount
            method = bill.payment_method.value
            by_method[method] = by_method.get(method, 0.0) + bill.final_amount
            for item in bill.items:
                category = item.product.category
                by_category[category] = by_category.get(category, 0.0) + item.line_total

        return {
            'total_sales': total,
            'bill_count': count,
            'category_sales': by_category,
            'payment_method_sales': by_method,
        }
