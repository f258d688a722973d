"""
Order Domain Service.

Quoting and placing orders, plus the restaurant side of the status chain.

Placement is one unit of work: stock decrement, customer wallet debit, the
order row and the tech-fee deduction commit together or not at all.
"""

import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shared.config.constants import (
    SHORT_ID_PREFIX,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shared.config.logging import get_logger, mask_phone
from shared.infrastructure.db import safe_commit
from rest_api.models import MenuItem, Order, Profile, Restaurant
from rest_api.services.domain.coupon_service import CouponService
from rest_api.services.domain.order_lifecycle import InvalidOrderTransitionError, advance
from rest_api.services.domain.pricing import (
    ZERO,
    BillBreakdown,
    GSTConfig,
    compute_bill,
    compute_delivery_fee,
    compute_net_profit,
    round_money,
    sum_cart,
)
from rest_api.services.domain.wallet_service import WalletService, can_accept_orders

logger = get_logger(__name__)

_SHORT_ID_ALPHABET = string.ascii_uppercase + string.digits


class OrderNotFoundError(Exception):
    pass


class RestaurantNotFoundError(Exception):
    pass


class RestaurantSuspendedError(Exception):
    """Restaurant is switched off or below its credit floor."""

    def __init__(self, restaurant_id: int, reason: str):
        self.restaurant_id = restaurant_id
        self.reason = reason
        super().__init__(reason)


class MenuItemUnavailableError(Exception):
    def __init__(self, menu_item_id: int, reason: str = "is not available"):
        self.menu_item_id = menu_item_id
        super().__init__(f"Menu item {menu_item_id} {reason}")


class InsufficientStockError(Exception):
    def __init__(self, item: MenuItem, requested: int):
        self.menu_item_id = item.id
        self.available = item.stock_remaining
        super().__init__(f"Only {item.stock_remaining} left of {item.name}, requested {requested}")


class InvalidCartError(Exception):
    pass


@dataclass(frozen=True)
class CartLine:
    menu_item_id: int
    quantity: int


@dataclass(frozen=True)
class OrderQuote:
    """Everything the checkout screen shows and placement freezes."""

    restaurant_id: int
    items: list[dict[str, Any]]
    coupon_code: str | None
    delivery_fee: Decimal
    bill: BillBreakdown
    net_profit: Decimal


@dataclass(frozen=True)
class PlacedOrder:
    order: Order
    restaurant_suspended: bool


def generate_short_id() -> str:
    """Human-readable order reference, e.g. ANT-7K2Q9D."""
    return SHORT_ID_PREFIX + "".join(secrets.choice(_SHORT_ID_ALPHABET) for _ in range(6))


def _merge_lines(lines: Iterable[CartLine]) -> dict[int, int]:
    merged: dict[int, int] = {}
    for line in lines:
        if line.quantity <= 0:
            raise InvalidCartError("Quantity must be at least 1")
        merged[line.menu_item_id] = merged.get(line.menu_item_id, 0) + line.quantity
    if not merged:
        raise InvalidCartError("Cart is empty")
    return merged


class OrderService:
    """
    Domain service for order quoting, placement and restaurant-side progress.
    """

    def __init__(self, db: Session):
        self._db = db
        self._coupons = CouponService(db)
        self._wallet = WalletService(db)

    # =========================================================================
    # Lookups
    # =========================================================================

    def _get_restaurant(self, restaurant_id: int, lock: bool = False) -> Restaurant:
        query = select(Restaurant).where(Restaurant.id == restaurant_id)
        if lock:
            query = query.with_for_update()
        restaurant = self._db.scalar(query)
        if restaurant is None:
            raise RestaurantNotFoundError(f"Restaurant {restaurant_id} not found")
        return restaurant

    def get_order(self, order_id: int) -> Order:
        order = self._db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")
        return order

    def list_for_restaurant(
        self,
        restaurant_id: int,
        statuses: list[str] | None = None,
        limit: int = 50,
    ) -> list[Order]:
        query = select(Order).where(Order.restaurant_id == restaurant_id)
        if statuses:
            query = query.where(Order.status.in_(statuses))
        return list(self._db.scalars(query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)))

    def list_for_customer(self, customer_id: int, limit: int = 50) -> list[Order]:
        return list(
            self._db.scalars(
                select(Order)
                .where(Order.customer_id == customer_id)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .limit(limit)
            )
        )

    # =========================================================================
    # Cart resolution and pricing
    # =========================================================================

    def _resolve_items(
        self,
        restaurant_id: int,
        lines: Iterable[CartLine],
        lock: bool = False,
    ) -> list[tuple[MenuItem, int]]:
        merged = _merge_lines(lines)

        query = select(MenuItem).where(
            MenuItem.id.in_(merged.keys()),
            MenuItem.restaurant_id == restaurant_id,
        )
        if lock:
            query = query.with_for_update()
        found = {item.id: item for item in self._db.scalars(query)}

        resolved: list[tuple[MenuItem, int]] = []
        for menu_item_id, quantity in merged.items():
            item = found.get(menu_item_id)
            if item is None:
                raise MenuItemUnavailableError(menu_item_id, "does not belong to this restaurant")
            if not item.is_available or not item.is_active:
                raise MenuItemUnavailableError(menu_item_id)
            if item.is_clearance and quantity > item.stock_remaining:
                raise InsufficientStockError(item, quantity)
            resolved.append((item, quantity))
        return resolved

    def _price(
        self,
        restaurant: Restaurant,
        resolved: list[tuple[MenuItem, int]],
        coupon_code: str | None,
        wallet_balance: Decimal,
        use_wallet: bool,
    ) -> OrderQuote:
        snapshot = [
            {
                "menu_item_id": item.id,
                "name": item.name,
                "price": str(round_money(item.selling_price)),
                "quantity": quantity,
                "is_mystery": item.is_mystery,
            }
            for item, quantity in resolved
        ]
        cart = sum_cart((item.selling_price, quantity) for item, quantity in resolved)

        discount = ZERO
        applied_code = None
        if coupon_code:
            coupon = self._coupons.apply_coupon(coupon_code, restaurant.id, cart)
            discount = coupon.discount
            applied_code = coupon.code

        delivery_fee = compute_delivery_fee(restaurant, cart - discount)
        bill = compute_bill(
            cart_subtotal=cart,
            delivery_fee=delivery_fee,
            discount_amount=discount,
            wallet_balance=wallet_balance,
            use_wallet=use_wallet,
            gst_config=GSTConfig.for_restaurant(restaurant),
        )
        return OrderQuote(
            restaurant_id=restaurant.id,
            items=snapshot,
            coupon_code=applied_code,
            delivery_fee=round_money(delivery_fee),
            bill=bill,
            net_profit=compute_net_profit(restaurant, snapshot, delivery_fee),
        )

    def quote(
        self,
        restaurant_id: int,
        lines: Iterable[CartLine],
        coupon_code: str | None = None,
        customer: Profile | None = None,
        use_wallet: bool = False,
    ) -> OrderQuote:
        """
        Price a cart without persisting anything.

        Raises:
            RestaurantNotFoundError, MenuItemUnavailableError,
            InsufficientStockError, InvalidCartError, CouponRejectedError
        """
        restaurant = self._get_restaurant(restaurant_id)
        resolved = self._resolve_items(restaurant_id, lines)
        balance = customer.wallet_balance if customer is not None else ZERO
        return self._price(restaurant, resolved, coupon_code, balance, use_wallet and customer is not None)

    # =========================================================================
    # Placement
    # =========================================================================

    def _new_short_id(self) -> str:
        for _ in range(5):
            candidate = generate_short_id()
            taken = self._db.scalar(select(Order.id).where(Order.short_id == candidate))
            if taken is None:
                return candidate
        # Practically unreachable; fall back to a time-based reference
        return f"{SHORT_ID_PREFIX}{int(datetime.now(timezone.utc).timestamp() * 1000)}"

    def place_order(
        self,
        customer: Profile,
        restaurant_id: int,
        lines: Iterable[CartLine],
        delivery_address: str,
        payment_method: str,
        coupon_code: str | None = None,
        use_wallet: bool = False,
        gps_coordinates: str | None = None,
        voice_note_url: str | None = None,
        customer_name: str | None = None,
    ) -> PlacedOrder:
        """
        Price and persist an order, freezing every monetary field.

        Raises:
            RestaurantSuspendedError: restaurant inactive or below its credit floor.
            plus everything `quote` raises, and InsufficientWalletBalanceError.
        """
        if payment_method not in PaymentMethod.ALL:
            raise InvalidCartError(f"Unknown payment method {payment_method}")

        restaurant = self._get_restaurant(restaurant_id, lock=True)
        if not restaurant.is_active:
            raise RestaurantSuspendedError(restaurant.id, f"{restaurant.name} is not accepting orders right now")
        if not can_accept_orders(restaurant):
            raise RestaurantSuspendedError(
                restaurant.id,
                f"{restaurant.name} is temporarily unavailable. Please try another restaurant.",
            )

        resolved = self._resolve_items(restaurant_id, lines, lock=True)
        quote = self._price(restaurant, resolved, coupon_code, customer.wallet_balance, use_wallet)
        bill = quote.bill

        for item, quantity in resolved:
            if item.is_clearance:
                item.stock_remaining -= quantity
                if item.stock_remaining == 0:
                    item.is_clearance = False

        order = Order(
            short_id=self._new_short_id(),
            restaurant_id=restaurant.id,
            customer_id=customer.id,
            status=OrderStatus.PENDING,
            delivery_status=None,
            payment_method=payment_method,
            payment_status=PaymentStatus.COMPLETED if bill.amount_to_pay <= 0 else PaymentStatus.PENDING,
            items=quote.items,
            delivery_address=delivery_address,
            gps_coordinates=gps_coordinates,
            voice_note_url=voice_note_url,
            customer_phone=customer.phone,
            customer_name=customer_name or customer.full_name,
            coupon_code=quote.coupon_code,
            cart_subtotal=bill.cart_subtotal,
            discount_amount=bill.discount_amount,
            delivery_fee_charged=quote.delivery_fee,
            subtotal_before_gst=bill.subtotal_before_gst,
            food_gst_amount=bill.food_gst_amount,
            delivery_fee_before_gst=bill.delivery_fee_before_gst,
            delivery_gst_amount=bill.delivery_gst_amount,
            total_gst_amount=bill.total_gst_amount,
            cgst_amount=bill.cgst_amount,
            sgst_amount=bill.sgst_amount,
            total_amount=bill.grand_total,
            wallet_deduction=bill.wallet_deduction,
            amount_to_pay=bill.amount_to_pay,
            net_profit=quote.net_profit,
        )
        self._db.add(order)
        self._db.flush()

        if bill.wallet_deduction > 0:
            self._wallet.debit_customer_wallet(customer.id, bill.wallet_deduction, order_id=order.id)

        units = sum(quantity for _, quantity in resolved)
        fee = round_money(restaurant.tech_fee * units)
        if fee > 0:
            self._wallet.record_fee_deduction(restaurant, fee, order_id=order.id)

        safe_commit(self._db)
        self._db.refresh(order)
        self._db.refresh(restaurant)

        suspended = not can_accept_orders(restaurant)
        logger.info(
            "Order placed",
            order_id=order.id,
            short_id=order.short_id,
            restaurant_id=restaurant.id,
            customer=mask_phone(customer.phone),
            total=str(order.total_amount),
            net_profit=str(order.net_profit),
        )
        if suspended:
            logger.warning(
                "Restaurant dropped below credit floor",
                restaurant_id=restaurant.id,
                credit_balance=str(restaurant.credit_balance),
                min_balance_limit=str(restaurant.min_balance_limit),
            )
        return PlacedOrder(order=order, restaurant_suspended=suspended)

    # =========================================================================
    # Restaurant-side status progress
    # =========================================================================

    def advance_status(self, order_id: int, restaurant_id: int) -> Order:
        """
        Move an order one step along PENDING → … → DELIVERED.

        The restaurant cannot mark an order DELIVERED while a rider flow owns
        the last mile.

        Raises:
            OrderNotFoundError, InvalidOrderTransitionError
        """
        order = self._db.scalar(
            select(Order)
            .where(Order.id == order_id, Order.restaurant_id == restaurant_id)
            .with_for_update()
        )
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")

        current = order.status
        target = advance(current)
        if target == OrderStatus.DELIVERED and order.delivery_status is not None:
            raise InvalidOrderTransitionError("order", current, target)

        values: dict[str, Any] = {"status": target}
        if target == OrderStatus.DELIVERED:
            values["delivered_at"] = datetime.now(timezone.utc)

        result = self._db.execute(
            update(Order).where(Order.id == order.id, Order.status == current).values(**values)
        )
        if result.rowcount != 1:
            self._db.rollback()
            raise InvalidOrderTransitionError("order", current, target)

        safe_commit(self._db)
        self._db.refresh(order)
        logger.info("Order status advanced", order_id=order.id, from_status=current, to_status=target)
        return order

    def mark_payment(self, order_id: int, succeeded: bool, transaction_id: str | None) -> Order:
        """
        Record a gateway outcome. Only payment fields change; the status chain
        is untouched.
        """
        order = self.get_order(order_id)
        order.payment_status = PaymentStatus.COMPLETED if succeeded else PaymentStatus.FAILED
        if transaction_id:
            order.payment_transaction_id = transaction_id
        safe_commit(self._db)
        self._db.refresh(order)
        logger.info("Order payment updated", order_id=order.id, payment_status=order.payment_status)
        return order

    def attach_payment_transaction(self, order_id: int, transaction_id: str) -> Order:
        """Remember which gateway transaction a callback will refer to."""
        order = self.get_order(order_id)
        order.payment_transaction_id = transaction_id
        safe_commit(self._db)
        self._db.refresh(order)
        return order

    def find_by_payment_transaction(self, transaction_id: str) -> Order | None:
        return self._db.scalar(select(Order).where(Order.payment_transaction_id == transaction_id))
