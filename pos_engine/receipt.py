"""
receipt.py — Plain-text receipt for a committed sale.

This is the default ``render_receipt`` collaborator of the checkout session.
Printing and HTML layout belong to the terminal front end.
"""

from typing import List, Sequence

from .models import CartLine, PaymentStatus, SaleConfirmation
from .units import format_quantity

RECEIPT_WIDTH = 40


def _row(label: str, value: str) -> str:
    return f"{label}{value.rjust(RECEIPT_WIDTH - len(label))}"


def _money(amount: float) -> str:
    return f"{amount:.2f}"


def render_receipt(sale: SaleConfirmation, lines: Sequence[CartLine] = ()) -> str:
    """
    Builds the receipt text.

    ``lines`` are the cart lines as they were at commit time; they carry the
    sale unit the customer bought in. Without them the receipt falls back to
    the base quantities echoed by the API.
    """
    rule = "-" * RECEIPT_WIDTH
    out: List[str] = [
        "SALES RECEIPT".center(RECEIPT_WIDTH),
        rule,
        _row("Invoice:", sale.invoiceNumber),
        _row("Date:", sale.createdAt),
    ]
    if sale.customerName:
        out.append(_row("Customer:", sale.customerName))
    if sale.customerPhone:
        out.append(_row("Phone:", sale.customerPhone))
    out.append(rule)

    if lines:
        for line in lines:
            out.append(line.product_name[:RECEIPT_WIDTH])
            qty = f"  {format_quantity(line.sale_quantity)} {line.sale_unit} x {_money(line.unit_price)}"
            out.append(_row(qty, _money(line.subtotal)))
    else:
        for item in sale.items:
            qty = f"  #{item.productId} {format_quantity(item.quantity)} x {_money(item.unitPrice)}"
            out.append(_row(qty, _money(item.quantity * item.unitPrice)))

    out.append(rule)
    out.append(_row("Subtotal:", _money(sale.subtotal)))
    if sale.discount:
        out.append(_row("Discount:", f"-{_money(sale.discount)}"))
    if sale.tax:
        out.append(_row("Tax:", _money(sale.tax)))
    out.append(_row("TOTAL:", _money(sale.total)))
    out.append(rule)
    out.append(_row("Payment:", sale.paymentMethod.value))
    out.append(_row("Received:", _money(sale.receivedAmount)))
    if sale.paymentStatus == PaymentStatus.PARTIAL:
        out.append(_row("Paid:", _money(sale.paidAmount)))
        out.append(_row("Due:", _money(sale.dueAmount)))
    else:
        out.append(_row("Change:", _money(sale.changeAmount)))
    if sale.notes:
        out.append(rule)
        out.append(f"Note: {sale.notes}")
    out.append(rule)
    out.append("Thank you for shopping with us!".center(RECEIPT_WIDTH))
    return "\n".join(out)
