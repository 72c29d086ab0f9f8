# ==============================================================================
# RECEIPT RENDERING
# ==============================================================================
# Read-only projections of a bill: an HTML receipt (Jinja2 template in
# fastbills/templates) and a plain-text receipt for thermal printers.
# Amounts are rounded to 2 decimals here and nowhere else.
# ==============================================================================

from typing import List

from jinja2 import Environment, PackageLoader, select_autoescape

from fastbills.config import TAX_RATE
from fastbills.models import Bill

STORE_NAME = 'FAST BILLS'
TEXT_WIDTH = 40


def format_money(value: float) -> str:
    return f'{value:.2f}'


class ReceiptService:
    """Renders bills as receipts."""

    def __init__(self, store_name: str = STORE_NAME):
        self.store_name = store_name
        self.env = Environment(
            loader=PackageLoader('fastbills', 'templates'),
            autoescape=select_autoescape(['html']),
        )
        self.env.filters['money'] = format_money

    @staticmethod
    def receipt_number(bill: Bill) -> str:
        return bill.id[:6]

    def render_receipt_html(self, bill: Bill) -> str:
        template = self.env.get_template('receipt.html')
        return template.render(
            bill=bill,
            store_name=self.store_name,
            receipt_number=self.receipt_number(bill),
            tax_percent=int(round(TAX_RATE * 100)),
        )

    def render_receipt_text(self, bill: Bill, width: int = TEXT_WIDTH) -> str:
        """Fixed-width receipt, one line per row."""
        def row(left: str, right: str) -> str:
            space = max(1, width - len(left) - len(right))
            return f'{left}{" " * space}{right}'

        rule = '-' * width
        lines: List[str] = [
            self.store_name.center(width),
            rule,
            f'Receipt #: {self.receipt_number(bill)}',
            f'Date: {bill.date.strftime("%Y-%m-%d %H:%M")}',
            f'Cashier: {bill.cashier_name}',
        ]
        if bill.customer_name:
            lines.append(f'Customer: {bill.customer_name}')
        if bill.customer_phone:
            lines.append(f'Phone: {bill.customer_phone}')
        if bill.is_voided:
            lines.append(f'*** VOID *** by {bill.voided_by}: {bill.void_reason}')
        if bill.refund_reference:
            lines.append(f'Refund for receipt #{bill.refund_reference[:6]}')
        lines.append(rule)

        for item in bill.items:
            lines.append(item.product.name)
            lines.append(row(
                f'  {item.quantity} {item.product.unit} x {format_money(item.unit_price)}',
                format_money(item.line_total),
            ))

        lines.append(rule)
        lines.append(row('Subtotal', format_money(bill.total)))
        lines.append(row(f'Tax ({int(round(TAX_RATE * 100))}%)', format_money(bill.tax)))
        if bill.discount > 0:
            lines.append(row('Discount', '-' + format_money(bill.discount)))
        if bill.change_due is not None:
            lines.append(row('Cash received', format_money(bill.final_amount + bill.change_due)))
            lines.append(row('Change due', format_money(bill.change_due)))
        lines.append(row('TOTAL', format_money(bill.final_amount)))
        lines.append(row('Payment', bill.payment_method.value.upper()))
        lines.append(rule)
        lines.append('Thank you for shopping with us!'.center(width))
        return '\n'.join(lines) + '\n'
