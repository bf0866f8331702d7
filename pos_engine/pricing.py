"""
pricing.py — Pricing Calculator

Pure functions that turn cart lines and cashier input into a PricingSummary.
Nothing here depends on the cart store, the UI or the network, so results can
be cached by their inputs.

Discount modes:
    PERCENTAGE     subtotal * value / 100, value bounded to [0, 100]
    FIXED_AMOUNT   value, bounded to [0, subtotal]
    SPECIAL_OFFER  min(value, subtotal)

Negative discount values and negative tax rates count as zero, so the total is
never negative.
"""

from typing import Iterable

from .models import CartLine, CheckoutParameters, DiscountType, PaymentStatus, PricingSummary


def cart_subtotal(lines: Iterable[CartLine]) -> float:
    return sum(line.subtotal for line in lines)


def discount_amount(subtotal: float, discount_value: float, discount_type: DiscountType) -> float:
    value = max(0.0, discount_value)
    if discount_type == DiscountType.PERCENTAGE:
        return subtotal * min(value, 100.0) / 100
    if discount_type == DiscountType.FIXED_AMOUNT:
        return min(value, subtotal)
    if discount_type == DiscountType.SPECIAL_OFFER:
        return min(value, subtotal)
    raise ValueError(f"Unknown discount type: {discount_type!r}")


def calculate_pricing(
        lines: Iterable[CartLine],
        discount_value: float = 0.0,
        discount_type: DiscountType = DiscountType.PERCENTAGE,
        tax_rate_percent: float = 0.0,
        payment_status: PaymentStatus = PaymentStatus.COMPLETED,
        received_amount: float = 0.0,
) -> PricingSummary:
    """
    Computes subtotal, discount, tax, total and change/due for a cart.

    Args:
        lines: Cart lines; only their ``subtotal`` is used.
        discount_value: Percentage or absolute amount depending on ``discount_type``.
        discount_type: One of DiscountType.
        tax_rate_percent: Tax applied to the discounted subtotal.
        payment_status: COMPLETED yields change, PARTIAL yields a due balance.
        received_amount: Amount tendered by the customer.

    Returns:
        PricingSummary: Unrounded amounts. Use ``.rounded()`` for display.
    """
    subtotal = cart_subtotal(lines)
    discount = discount_amount(subtotal, discount_value, discount_type)
    tax = (subtotal - discount) * max(0.0, tax_rate_percent) / 100
    total = subtotal - discount + tax

    if payment_status == PaymentStatus.COMPLETED:
        change, due = max(0.0, received_amount - total), 0.0
    elif payment_status == PaymentStatus.PARTIAL:
        change, due = 0.0, max(0.0, total - received_amount)
    else:
        raise ValueError(f"Unknown payment status: {payment_status!r}")

    return PricingSummary(
        subtotal=subtotal,
        discount_amount=discount,
        tax_amount=tax,
        total=total,
        change_amount=change,
        due_amount=due,
    )


def price_checkout(lines: Iterable[CartLine], params: CheckoutParameters) -> PricingSummary:
    """Shortcut for ``calculate_pricing`` with a CheckoutParameters bundle."""
    return calculate_pricing(
        lines,
        discount_value=params.discount_value,
        discount_type=params.discount_type,
        tax_rate_percent=params.tax_rate_percent,
        payment_status=params.payment_status,
        received_amount=params.received_amount,
    )
