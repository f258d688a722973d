"""
Order pricing: GST decomposition, delivery fee policy and net profit.

Everything here is pure. Inputs are Decimals (ints and numeric strings are
accepted), outputs are Decimals rounded to paise. Each output is rounded
independently from the unrounded intermediate values, so for example
`grand_total` is never recomputed from rounded components.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Protocol

from shared.config.constants import MONEY_QUANTUM
from shared.config.settings import Settings, settings

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Any) -> Decimal:
    """Round half-up to 2 decimal places."""
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


class PricedRestaurant(Protocol):
    """The restaurant fields pricing reads. Satisfied by the ORM model."""

    tech_fee: Decimal
    delivery_fee: Decimal
    free_delivery_threshold: Decimal | None
    gst_enabled: bool
    food_gst_rate: Decimal


@dataclass(frozen=True)
class GSTConfig:
    """GST rates in percent and whether menu prices already include tax."""

    food_rate: Decimal = Decimal("5")
    delivery_rate: Decimal = Decimal("18")
    platform_rate: Decimal = Decimal("18")
    inclusive: bool = True

    @classmethod
    def for_restaurant(cls, restaurant: PricedRestaurant, config: Settings = settings) -> "GSTConfig":
        """
        Restaurant food rate plus platform-wide delivery/platform rates.
        A restaurant with GST disabled is billed with every rate at zero.
        """
        if not restaurant.gst_enabled:
            return cls(food_rate=ZERO, delivery_rate=ZERO, platform_rate=ZERO, inclusive=config.gst_inclusive)
        return cls(
            food_rate=to_decimal(restaurant.food_gst_rate),
            delivery_rate=to_decimal(config.delivery_gst_rate),
            platform_rate=to_decimal(config.platform_gst_rate),
            inclusive=config.gst_inclusive,
        )


@dataclass(frozen=True)
class BillBreakdown:
    cart_subtotal: Decimal
    discount_amount: Decimal
    delivery_fee: Decimal
    subtotal_before_gst: Decimal
    food_gst_amount: Decimal
    delivery_fee_before_gst: Decimal
    delivery_gst_amount: Decimal
    total_gst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    grand_total: Decimal
    wallet_deduction: Decimal
    amount_to_pay: Decimal

    def to_dict(self) -> dict[str, Decimal]:
        return asdict(self)


def split_tax(amount: Decimal, rate: Decimal, inclusive: bool) -> tuple[Decimal, Decimal]:
    """
    Return the unrounded (pre-tax base, tax) pair for an amount.

    Inclusive: base = amount / (1 + rate/100), tax is the remainder.
    Exclusive: base = amount, tax = amount * rate/100.
    """
    if inclusive:
        base = amount / (1 + rate / HUNDRED)
        return base, amount - base
    return amount, amount * rate / HUNDRED


def compute_bill(
    cart_subtotal: Any,
    delivery_fee: Any,
    discount_amount: Any = ZERO,
    wallet_balance: Any = ZERO,
    use_wallet: bool = False,
    gst_config: GSTConfig | None = None,
) -> BillBreakdown:
    """
    Break an order total down into GST components and the payable amount.

    Grand total is cart + delivery - discount in both GST modes; tax is
    reported, not added. A negative discount is not rejected here.
    """
    config = gst_config or GSTConfig()
    cart = to_decimal(cart_subtotal)
    delivery = to_decimal(delivery_fee)
    discount = to_decimal(discount_amount)

    food_base, food_gst = split_tax(cart, config.food_rate, config.inclusive)
    delivery_base, delivery_gst = split_tax(delivery, config.delivery_rate, config.inclusive)

    total_gst = food_gst + delivery_gst
    half_gst = total_gst / 2

    grand_total = cart + delivery - discount
    wallet_deduction = min(to_decimal(wallet_balance), grand_total) if use_wallet else ZERO
    amount_to_pay = grand_total - wallet_deduction

    return BillBreakdown(
        cart_subtotal=round_money(cart),
        discount_amount=round_money(discount),
        delivery_fee=round_money(delivery),
        subtotal_before_gst=round_money(food_base),
        food_gst_amount=round_money(food_gst),
        delivery_fee_before_gst=round_money(delivery_base),
        delivery_gst_amount=round_money(delivery_gst),
        total_gst_amount=round_money(total_gst),
        cgst_amount=round_money(half_gst),
        sgst_amount=round_money(half_gst),
        grand_total=round_money(grand_total),
        wallet_deduction=round_money(wallet_deduction),
        amount_to_pay=round_money(amount_to_pay),
    )


def compute_delivery_fee(restaurant: PricedRestaurant, post_discount_subtotal: Any) -> Decimal:
    """Free delivery once a configured threshold is met, else the flat fee."""
    threshold = restaurant.free_delivery_threshold
    if threshold is not None and to_decimal(post_discount_subtotal) >= to_decimal(threshold):
        return ZERO
    return to_decimal(restaurant.delivery_fee)


def compute_net_profit(
    restaurant: PricedRestaurant,
    items: Iterable[Mapping[str, Any]],
    delivery_fee_charged: Any,
    rider_cost: Any = None,
) -> Decimal:
    """
    Platform revenue for one order: tech fee per unit sold, plus whatever is
    left of a charged delivery fee after the rider cost
    (settings.delivery_margin_rider_cost unless given).
    """
    if rider_cost is None:
        rider_cost = settings.delivery_margin_rider_cost
    units = sum(int(item["quantity"]) for item in items)
    tech_revenue = to_decimal(restaurant.tech_fee) * units

    fee = to_decimal(delivery_fee_charged)
    delivery_margin = fee - to_decimal(rider_cost) if fee > 0 else ZERO

    return round_money(tech_revenue + delivery_margin)


def sum_cart(lines: Iterable[tuple[Any, int]]) -> Decimal:
    """Sum of unit price × quantity."""
    return round_money(sum((to_decimal(price) * qty for price, qty in lines), ZERO))
