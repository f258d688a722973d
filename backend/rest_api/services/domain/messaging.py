"""
Outbound message and deep-link builders.

Restaurants receive new orders as a WhatsApp message; prepaid and COD-by-QR
customers pay through a UPI intent link. All of it is plain string work.
"""

from decimal import Decimal
from typing import Any
from urllib.parse import quote, urlencode

from shared.config.constants import PaymentMethod, PaymentStatus
from shared.utils.validators import validate_gps
from rest_api.models import Order, Restaurant
from rest_api.services.domain.pricing import round_money, to_decimal

PREPAID_LINE = "✅ PAID ONLINE (Money in your Bank)"
COLLECT_LINE = "⚠️ COLLECT CASH/QR"


def format_price(amount: Any) -> str:
    """₹ amount, without paise when they are zero: ₹540, ₹52.38."""
    value = round_money(amount)
    if value == value.to_integral_value():
        return f"₹{int(value)}"
    return f"₹{value}"


def google_maps_link(coordinates: str) -> str:
    return f"https://maps.google.com/maps?q={coordinates}"


def parse_gps(coordinates: str | None) -> tuple[float, float] | None:
    """(lat, lng) or None when missing or malformed."""
    try:
        normalized = validate_gps(coordinates)
    except ValueError:
        return None
    if normalized is None:
        return None
    lat, lng = normalized.split(",")
    return float(lat), float(lng)


def upi_deep_link(upi_id: str, payee_name: str, amount: Any, short_id: str) -> str:
    params = {
        "pa": upi_id,
        "pn": payee_name,
        "am": str(round_money(amount)),
        "tn": f"Order-{short_id}",
        "cu": "INR",
    }
    return f"upi://pay?{urlencode(params)}"


def is_prepaid(order: Order) -> bool:
    """Paid through the gateway, or fully covered by the customer wallet."""
    if order.payment_status == PaymentStatus.COMPLETED:
        return True
    return order.payment_method == PaymentMethod.PREPAID_UPI and to_decimal(order.amount_to_pay) <= 0


def order_message(order: Order) -> str:
    """Order summary text sent to the restaurant."""
    nav = google_maps_link(order.gps_coordinates) if order.gps_coordinates else "Not provided"

    item_lines = "\n".join(
        f"{item['quantity']}x {'🎁 ' if item.get('is_mystery') else ''}{item['name']}"
        for item in order.items or []
    )

    coupon = ""
    if order.coupon_code:
        coupon = f"🎟️ Coupon: {order.coupon_code} (Saved {format_price(order.discount_amount)})\n"
    voice = f"🎤 Voice Note: {order.voice_note_url}\n" if order.voice_note_url else ""

    fee = to_decimal(order.delivery_fee_charged)
    delivery = "FREE" if fee == Decimal("0") else format_price(fee)
    payment = PREPAID_LINE if is_prepaid(order) else COLLECT_LINE

    return (
        f"🔔 NEW ORDER {order.short_id}\n"
        "\n"
        f"👤 Customer: {order.customer_name or 'Customer'} ({order.customer_phone})\n"
        f"📍 Nav: {nav}\n"
        "\n"
        "🍲 Items:\n"
        f"{item_lines}\n"
        "\n"
        f"{coupon}{voice}"
        "\n"
        "💰 Bill Breakdown:\n"
        f"Food: {format_price(order.cart_subtotal)}\n"
        f"Delivery: {delivery}\n"
        f"TOTAL TO COLLECT: {format_price(order.amount_to_pay)}\n"
        "\n"
        "💳 Payment Status:\n"
        f"{payment}"
    )


def whatsapp_link(phone: str, message: str) -> str:
    digits = "".join(ch for ch in phone if ch.isdigit())
    text = quote(message, safe="!~*'()")
    return f"https://wa.me/{digits}?text={text}"


def order_whatsapp_link(order: Order, restaurant: Restaurant) -> str:
    return whatsapp_link(restaurant.owner_phone, order_message(order))
