"""
Build response schemas from ORM rows and domain results.
"""

from typing import Any

from shared.utils.schemas import (
    BillOutput,
    CouponOutput,
    MenuItemOutput,
    OrderItemOutput,
    OrderOutput,
    RestaurantAdminOutput,
    RestaurantPublicOutput,
    RiderOrderOutput,
    WalletTransactionOutput,
)
from rest_api.models import Coupon, MenuItem, Order, Restaurant, WalletTransaction
from rest_api.services.domain.menu_service import effective_discount
from rest_api.services.domain.messaging import google_maps_link
from rest_api.services.domain.order_lifecycle import parse_status
from rest_api.services.domain.pricing import BillBreakdown
from rest_api.services.domain.wallet_service import balance_status, can_accept_orders


def restaurant_public_output(restaurant: Restaurant) -> RestaurantPublicOutput:
    return RestaurantPublicOutput(
        id=restaurant.id,
        name=restaurant.name,
        slug=restaurant.slug,
        image_url=restaurant.image_url,
        delivery_fee=restaurant.delivery_fee,
        free_delivery_threshold=restaurant.free_delivery_threshold,
        rating_avg=restaurant.rating_avg,
        rating_count=restaurant.rating_count,
        is_accepting_orders=restaurant.is_active and can_accept_orders(restaurant),
    )


def restaurant_admin_output(restaurant: Restaurant) -> RestaurantAdminOutput:
    return RestaurantAdminOutput(
        id=restaurant.id,
        name=restaurant.name,
        slug=restaurant.slug,
        owner_phone=restaurant.owner_phone,
        upi_id=restaurant.upi_id,
        image_url=restaurant.image_url,
        is_active=restaurant.is_active,
        tech_fee=restaurant.tech_fee,
        delivery_fee=restaurant.delivery_fee,
        free_delivery_threshold=restaurant.free_delivery_threshold,
        credit_balance=restaurant.credit_balance,
        min_balance_limit=restaurant.min_balance_limit,
        balance_status=balance_status(restaurant),
        is_accepting_orders=restaurant.is_active and can_accept_orders(restaurant),
        gst_number=restaurant.gst_number,
        is_gst_registered=restaurant.is_gst_registered,
        gst_enabled=restaurant.gst_enabled,
        food_gst_rate=restaurant.food_gst_rate,
        rating_avg=restaurant.rating_avg,
        rating_count=restaurant.rating_count,
        created_at=restaurant.created_at,
    )


def menu_item_output(item: MenuItem) -> MenuItemOutput:
    return MenuItemOutput(
        id=item.id,
        restaurant_id=item.restaurant_id,
        name=item.name,
        category=item.category,
        image_url=item.image_url,
        base_price=item.base_price,
        selling_price=item.selling_price,
        discount_percentage=effective_discount(item),
        is_available=item.is_available,
        is_veg=item.is_veg,
        is_clearance=item.is_clearance,
        stock_remaining=item.stock_remaining,
        loot_discount_percentage=item.loot_discount_percentage,
        promo_description=item.promo_description,
        is_mystery=item.is_mystery,
        mystery_type=item.mystery_type,
    )


def coupon_output(coupon: Coupon) -> CouponOutput:
    return CouponOutput(
        id=coupon.id,
        restaurant_id=coupon.restaurant_id,
        code=coupon.code,
        discount_value=coupon.discount_value,
        min_order_value=coupon.min_order_value,
        is_active=coupon.is_active,
    )


def bill_output(bill: BillBreakdown) -> BillOutput:
    return BillOutput(**bill.to_dict())


def _item_outputs(items: list[dict[str, Any]] | None) -> list[OrderItemOutput]:
    return [
        OrderItemOutput(
            menu_item_id=item["menu_item_id"],
            name=item["name"],
            price=item["price"],
            quantity=item["quantity"],
            is_mystery=item.get("is_mystery", False),
        )
        for item in items or []
    ]


def order_output(order: Order) -> OrderOutput:
    return OrderOutput(
        id=order.id,
        short_id=order.short_id,
        restaurant_id=order.restaurant_id,
        customer_id=order.customer_id,
        rider_id=order.rider_id,
        status=parse_status(order.status),
        delivery_status=order.delivery_status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        items=_item_outputs(order.items),
        delivery_address=order.delivery_address,
        gps_coordinates=order.gps_coordinates,
        voice_note_url=order.voice_note_url,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        coupon_code=order.coupon_code,
        cart_subtotal=order.cart_subtotal,
        discount_amount=order.discount_amount,
        delivery_fee_charged=order.delivery_fee_charged,
        subtotal_before_gst=order.subtotal_before_gst,
        food_gst_amount=order.food_gst_amount,
        delivery_fee_before_gst=order.delivery_fee_before_gst,
        delivery_gst_amount=order.delivery_gst_amount,
        total_gst_amount=order.total_gst_amount,
        cgst_amount=order.cgst_amount,
        sgst_amount=order.sgst_amount,
        total_amount=order.total_amount,
        wallet_deduction=order.wallet_deduction,
        amount_to_pay=order.amount_to_pay,
        created_at=order.created_at,
        delivered_at=order.delivered_at,
    )


def rider_order_output(order: Order, include_customer: bool = False) -> RiderOrderOutput:
    """
    Riders on the open feed see where to go; customer contact is only
    shared with the assigned rider.
    """
    return RiderOrderOutput(
        id=order.id,
        short_id=order.short_id,
        restaurant_id=order.restaurant_id,
        restaurant_name=order.restaurant.name if order.restaurant else None,
        status=order.status,
        delivery_status=order.delivery_status,
        delivery_address=order.delivery_address,
        gps_coordinates=order.gps_coordinates,
        maps_link=google_maps_link(order.gps_coordinates) if order.gps_coordinates else None,
        customer_name=order.customer_name if include_customer else None,
        customer_phone=order.customer_phone if include_customer else None,
        amount_to_collect=order.amount_to_pay,
        item_count=order.item_units,
        created_at=order.created_at,
    )


def wallet_txn_output(txn: WalletTransaction) -> WalletTransactionOutput:
    return WalletTransactionOutput(
        id=txn.id,
        restaurant_id=txn.restaurant_id,
        profile_id=txn.profile_id,
        order_id=txn.order_id,
        amount=txn.amount,
        type=txn.type,
        status=txn.status,
        proof_image_url=txn.proof_image_url,
        notes=txn.notes,
        payment_transaction_id=txn.payment_transaction_id,
        approved_by=txn.approved_by,
        approved_at=txn.approved_at,
        created_at=txn.created_at,
    )
