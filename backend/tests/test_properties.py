"""
Property-based tests for bill arithmetic and coupon gating.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from hypothesis import given, settings as hypothesis_settings
from hypothesis import strategies as st

from rest_api.services.domain.coupon_service import CouponRejectedError, CouponRejection, CouponService
from rest_api.services.domain.pricing import GSTConfig, compute_bill, round_money


money = st.decimals(min_value=Decimal("0"), max_value=Decimal("20000"), places=2, allow_nan=False, allow_infinity=False)
rates = st.sampled_from([Decimal("0"), Decimal("5"), Decimal("12"), Decimal("18")])


@st.composite
def bills(draw):
    cart = draw(money)
    discount = draw(st.decimals(min_value=Decimal("0"), max_value=cart, places=2))
    return {
        "cart_subtotal": cart,
        "delivery_fee": draw(st.decimals(min_value=Decimal("0"), max_value=Decimal("200"), places=2)),
        "discount_amount": discount,
        "wallet_balance": draw(money),
        "use_wallet": draw(st.booleans()),
        "gst_config": GSTConfig(food_rate=draw(rates), delivery_rate=Decimal("18"), inclusive=draw(st.booleans())),
    }


class TestBillProperties:
    @hypothesis_settings(max_examples=200)
    @given(bills())
    def test_grand_total_is_cart_plus_delivery_minus_discount(self, kwargs):
        bill = compute_bill(**kwargs)

        expected = round_money(kwargs["cart_subtotal"] + kwargs["delivery_fee"] - kwargs["discount_amount"])
        assert bill.grand_total == expected

    @given(bills())
    def test_cgst_and_sgst_always_equal(self, kwargs):
        bill = compute_bill(**kwargs)

        assert bill.cgst_amount == bill.sgst_amount

    @given(bills())
    def test_wallet_never_exceeds_total_or_balance(self, kwargs):
        bill = compute_bill(**kwargs)

        assert Decimal("0") <= bill.wallet_deduction <= bill.grand_total
        assert bill.wallet_deduction <= round_money(kwargs["wallet_balance"])
        assert bill.amount_to_pay == bill.grand_total - bill.wallet_deduction
        assert bill.amount_to_pay >= 0

    @given(bills())
    def test_no_wallet_unless_requested(self, kwargs):
        kwargs["use_wallet"] = False

        bill = compute_bill(**kwargs)

        assert bill.wallet_deduction == Decimal("0")
        assert bill.amount_to_pay == bill.grand_total

    @given(bills())
    def test_tax_components_non_negative(self, kwargs):
        bill = compute_bill(**kwargs)

        assert bill.food_gst_amount >= 0
        assert bill.delivery_gst_amount >= 0


class _FixedCoupon(CouponService):
    """Coupon lookup without a database: every code resolves to one coupon."""

    def __init__(self, discount_value: Decimal, min_order_value: Decimal):
        super().__init__(db=None)
        self._coupon = SimpleNamespace(discount_value=discount_value, min_order_value=min_order_value)

    def _find_active(self, restaurant_id, code):
        return self._coupon


class TestCouponProperties:
    @given(money, money, money)
    def test_applies_iff_minimum_met(self, discount_value, min_order_value, cart):
        service = _FixedCoupon(discount_value, min_order_value)

        if cart >= min_order_value:
            result = service.apply_coupon("save", 1, cart)
            assert Decimal("0") <= result.discount <= cart
            assert result.discount == round_money(min(discount_value, cart))
        else:
            with pytest.raises(CouponRejectedError) as exc_info:
                service.apply_coupon("save", 1, cart)
            assert exc_info.value.reason == CouponRejection.BELOW_MINIMUM
