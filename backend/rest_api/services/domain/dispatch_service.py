"""
Dispatch Domain Service: the rider side of an order.

Rider chain: SEARCHING_FOR_RIDER → RIDER_ASSIGNED → OUT_FOR_DELIVERY → DELIVERED.

Claiming is the one place concurrent actors race for the same row. It is a
single conditional UPDATE (still searching, still unassigned); zero affected
rows means another rider won, which is reported as `False`, not raised.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from shared.config.constants import DeliveryStatus, OrderStatus
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import safe_commit
from rest_api.models import Order, Profile
from rest_api.services.domain.order_lifecycle import (
    InvalidOrderTransitionError,
    advance_delivery,
)
from rest_api.services.domain.order_service import OrderNotFoundError
from rest_api.services.domain.pricing import round_money, to_decimal

logger = get_logger(__name__)


class OrderNotReadyError(Exception):
    """Pickup or delivery attempted before the kitchen marked the order READY."""

    def __init__(self, order_id: int, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(f"Order {order_id} is {status}, not READY")


class NotAssignedRiderError(Exception):
    pass


@dataclass(frozen=True)
class RiderEarnings:
    delivered_count: int
    payout_per_delivery: Decimal
    delivery_earnings: Decimal
    wallet_balance: Decimal
    total: Decimal


class DispatchService:
    def __init__(self, db: Session):
        self._db = db

    def request_rider(self, order_id: int, restaurant_id: int) -> Order:
        """
        Put an accepted order on the rider feed.

        Raises:
            OrderNotFoundError
            InvalidOrderTransitionError: order not accepted yet, already
                delivered, or a rider flow already exists.
        """
        order = self._db.scalar(
            select(Order).where(Order.id == order_id, Order.restaurant_id == restaurant_id)
        )
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")
        if order.status not in OrderStatus.DISPATCHABLE:
            raise InvalidOrderTransitionError("delivery", order.status, DeliveryStatus.SEARCHING_FOR_RIDER)

        result = self._db.execute(
            update(Order)
            .where(
                Order.id == order.id,
                Order.delivery_status.is_(None),
                Order.status.in_(OrderStatus.DISPATCHABLE),
            )
            .values(delivery_status=DeliveryStatus.SEARCHING_FOR_RIDER)
        )
        if result.rowcount != 1:
            self._db.rollback()
            raise InvalidOrderTransitionError("delivery", order.delivery_status, DeliveryStatus.SEARCHING_FOR_RIDER)

        safe_commit(self._db)
        self._db.refresh(order)
        logger.info("Rider requested", order_id=order.id, restaurant_id=restaurant_id)
        return order

    def list_available(self, limit: int = 50) -> list[Order]:
        return list(
            self._db.scalars(
                select(Order)
                .where(
                    Order.delivery_status == DeliveryStatus.SEARCHING_FOR_RIDER,
                    Order.rider_id.is_(None),
                )
                .order_by(Order.created_at.asc(), Order.id.asc())
                .limit(limit)
            )
        )

    def claim(self, order_id: int, rider_id: int) -> bool:
        """
        Try to take an order. Returns False if it is no longer available.
        """
        result = self._db.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.delivery_status == DeliveryStatus.SEARCHING_FOR_RIDER,
                Order.rider_id.is_(None),
            )
            .values(rider_id=rider_id, delivery_status=DeliveryStatus.RIDER_ASSIGNED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._db.rollback()
            logger.info("Rider claim lost", order_id=order_id, rider_id=rider_id)
            return False

        safe_commit(self._db)
        logger.info("Order claimed", order_id=order_id, rider_id=rider_id)
        return True

    def list_active(self, rider_id: int) -> list[Order]:
        return list(
            self._db.scalars(
                select(Order)
                .where(
                    Order.rider_id == rider_id,
                    Order.delivery_status.in_(DeliveryStatus.RIDER_ACTIVE),
                )
                .order_by(Order.created_at.asc(), Order.id.asc())
            )
        )

    def _get_assigned(self, order_id: int, rider_id: int) -> Order:
        order = self._db.scalar(select(Order).where(Order.id == order_id).with_for_update())
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")
        if order.rider_id != rider_id:
            raise NotAssignedRiderError(f"Order {order_id} is not assigned to rider {rider_id}")
        return order

    def _step(self, order: Order, target: str, extra: dict[str, Any] | None = None) -> Order:
        current = order.delivery_status
        advance_delivery(current, target)
        if order.status != OrderStatus.READY:
            raise OrderNotReadyError(order.id, order.status)

        result = self._db.execute(
            update(Order)
            .where(Order.id == order.id, Order.delivery_status == current)
            .values(delivery_status=target, **(extra or {}))
        )
        if result.rowcount != 1:
            self._db.rollback()
            raise InvalidOrderTransitionError("delivery", current, target)

        safe_commit(self._db)
        self._db.refresh(order)
        logger.info("Delivery status advanced", order_id=order.id, from_status=current, to_status=target)
        return order

    def pick_up(self, order_id: int, rider_id: int) -> Order:
        """RIDER_ASSIGNED → OUT_FOR_DELIVERY, once the kitchen is done."""
        order = self._get_assigned(order_id, rider_id)
        return self._step(order, DeliveryStatus.OUT_FOR_DELIVERY)

    def deliver(self, order_id: int, rider_id: int) -> Order:
        """OUT_FOR_DELIVERY → DELIVERED; closes the customer chain too."""
        order = self._get_assigned(order_id, rider_id)
        return self._step(
            order,
            DeliveryStatus.DELIVERED,
            {"status": OrderStatus.DELIVERED, "delivered_at": datetime.now(timezone.utc)},
        )

    def earnings(self, rider: Profile) -> RiderEarnings:
        delivered = self._db.scalar(
            select(func.count(Order.id)).where(
                Order.rider_id == rider.id,
                Order.delivery_status == DeliveryStatus.DELIVERED,
            )
        ) or 0
        payout = to_decimal(settings.rider_payout_per_delivery)
        delivery_earnings = payout * delivered
        wallet = to_decimal(rider.rider_wallet_balance or 0)
        return RiderEarnings(
            delivered_count=delivered,
            payout_per_delivery=round_money(payout),
            delivery_earnings=round_money(delivery_earnings),
            wallet_balance=round_money(wallet),
            total=round_money(delivery_earnings + wallet),
        )
