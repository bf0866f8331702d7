# POS Engine Tests - Pricing Calculator
#
# Tests for:
# - Discount modes (percentage, fixed amount, special offer) and their bounds
# - Tax on the discounted subtotal
# - Change for completed payments, due balance for partial payments

import pytest

from pos_engine.models import CheckoutParameters, DiscountType, PaymentStatus
from pos_engine.pricing import calculate_pricing, cart_subtotal, discount_amount, price_checkout
from tests.conftest import make_line


class TestTotals:

    def test_percentage_discount_and_tax(self):
        """
        SCENARIO: Subtotal 1000, 10 % discount, 5 % tax
        EXPECTED: discount 100, tax 45, total 945
        """
        summary = calculate_pricing([make_line(600), make_line(400, product_id=98)],
                                    discount_value=10, discount_type=DiscountType.PERCENTAGE,
                                    tax_rate_percent=5)

        assert summary.subtotal == pytest.approx(1000)
        assert summary.discount_amount == pytest.approx(100)
        assert summary.tax_amount == pytest.approx(45)
        assert summary.total == pytest.approx(945)

    def test_special_offer_capped_at_subtotal(self):
        """
        SCENARIO: Subtotal 500, special offer of 800
        EXPECTED: discount 500, nothing left to tax, total 0
        """
        summary = calculate_pricing([make_line(500)], discount_value=800,
                                    discount_type=DiscountType.SPECIAL_OFFER, tax_rate_percent=5)

        assert summary.discount_amount == pytest.approx(500)
        assert summary.tax_amount == pytest.approx(0)
        assert summary.total == pytest.approx(0)

    def test_fixed_amount(self):
        summary = calculate_pricing([make_line(200)], discount_value=30,
                                    discount_type=DiscountType.FIXED_AMOUNT, tax_rate_percent=10)

        assert summary.discount_amount == pytest.approx(30)
        assert summary.tax_amount == pytest.approx(17)
        assert summary.total == pytest.approx(187)

    def test_empty_cart(self):
        summary = calculate_pricing([], discount_value=50, discount_type=DiscountType.SPECIAL_OFFER)
        assert summary.subtotal == 0
        assert summary.total == 0

    def test_subtotal_sums_lines(self):
        assert cart_subtotal([make_line(1.5), make_line(2.25)]) == pytest.approx(3.75)


class TestDiscountBounds:
    """Bounds enforced inside the calculator rather than at the input field."""

    def test_percentage_above_hundred(self):
        assert discount_amount(300, 150, DiscountType.PERCENTAGE) == pytest.approx(300)

    def test_negative_values_count_as_zero(self):
        for discount_type in DiscountType:
            assert discount_amount(300, -20, discount_type) == 0

    def test_fixed_amount_capped_at_subtotal(self):
        assert discount_amount(300, 1000, DiscountType.FIXED_AMOUNT) == pytest.approx(300)

    def test_negative_tax_rate_ignored(self):
        summary = calculate_pricing([make_line(100)], tax_rate_percent=-10)
        assert summary.tax_amount == 0
        assert summary.total == pytest.approx(100)

    @pytest.mark.parametrize("discount_type", list(DiscountType))
    @pytest.mark.parametrize("discount_value", [0, 1, 99.99, 500, 10_000, 1e12])
    @pytest.mark.parametrize("tax", [0, 5, 15])
    def test_total_never_negative(self, discount_type, discount_value, tax):
        summary = calculate_pricing([make_line(120.5), make_line(379.5, product_id=98)],
                                    discount_value=discount_value, discount_type=discount_type,
                                    tax_rate_percent=tax)
        assert summary.total >= 0

    def test_unknown_discount_type(self):
        with pytest.raises(ValueError):
            discount_amount(100, 10, "BOGO")


class TestPaymentOutcome:

    def test_completed_payment_gives_change(self):
        """
        SCENARIO: Completed payment, total 945, 1000 received
        EXPECTED: change 55, nothing due
        """
        summary = calculate_pricing([make_line(1000)], discount_value=10, tax_rate_percent=5,
                                    payment_status=PaymentStatus.COMPLETED, received_amount=1000)

        assert summary.change_amount == pytest.approx(55)
        assert summary.due_amount == 0

    def test_completed_underpayment_gives_no_negative_change(self):
        summary = calculate_pricing([make_line(100)], received_amount=40)
        assert summary.change_amount == 0

    def test_partial_payment_gives_due(self):
        summary = calculate_pricing([make_line(1000)], discount_value=10, tax_rate_percent=5,
                                    payment_status=PaymentStatus.PARTIAL, received_amount=400)

        assert summary.due_amount == pytest.approx(545)
        assert summary.change_amount == 0

    def test_partial_overpayment_gives_no_change(self):
        summary = calculate_pricing([make_line(100)], payment_status=PaymentStatus.PARTIAL, received_amount=150)
        assert summary.due_amount == 0
        assert summary.change_amount == 0


class TestDisplay:

    def test_rounded_copy(self):
        summary = calculate_pricing([make_line(100)], discount_value=100 / 3,
                                    discount_type=DiscountType.FIXED_AMOUNT)
        rounded = summary.rounded()

        assert rounded.discount_amount == 33.33
        assert rounded.total == 66.67
        # original untouched
        assert summary.total == pytest.approx(200 / 3)

    def test_price_checkout_uses_parameters(self):
        params = CheckoutParameters(discount_value=10, tax_rate_percent=5, received_amount=1000)
        summary = price_checkout([make_line(1000)], params)
        assert summary.total == pytest.approx(945)
        assert summary.change_amount == pytest.approx(55)
