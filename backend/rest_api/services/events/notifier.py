"""
Fire-and-forget change notifications for routers.

Routers hand events to FastAPI BackgroundTasks so the response never waits
on Redis. Publishing failures are logged, never raised.

Usage:
    notify_order(background_tasks, ORDER_CREATED, order, actor=ctx)
"""

from typing import Any

from fastapi import BackgroundTasks

from shared.config.logging import events_logger as logger
from shared.infrastructure.events import (
    get_redis_pool,
    publish_order_event,
    publish_restaurant_suspended,
    publish_wallet_event,
)
from shared.security.auth import AuthContext
from rest_api.models import Order, Restaurant, WalletTransaction

ORDER = "order"
WALLET = "wallet"
SUSPENSION = "suspension"

_PUBLISHERS = {
    ORDER: publish_order_event,
    WALLET: publish_wallet_event,
    SUSPENSION: publish_restaurant_suspended,
}


async def _dispatch(kind: str, payload: dict[str, Any]) -> None:
    try:
        redis_client = await get_redis_pool()
        await _PUBLISHERS[kind](redis_client=redis_client, **payload)
        logger.debug("Event published", kind=kind, event_type=payload.get("event_type"))
    except Exception as e:
        logger.error("Failed to publish event", kind=kind, event_type=payload.get("event_type"), error=str(e))


def order_snapshot(order: Order) -> dict[str, Any]:
    return {
        "short_id": order.short_id,
        "status": order.status,
        "delivery_status": order.delivery_status,
        "payment_status": order.payment_status,
        "total_amount": str(order.total_amount),
    }


def notify_order(
    background_tasks: BackgroundTasks,
    event_type: str,
    order: Order,
    actor: AuthContext | None = None,
) -> None:
    background_tasks.add_task(
        _dispatch,
        ORDER,
        {
            "event_type": event_type,
            "restaurant_id": order.restaurant_id,
            "order_id": order.id,
            "customer_id": order.customer_id,
            "rider_id": order.rider_id,
            "entity": order_snapshot(order),
            "actor_id": actor.user_id if actor else None,
            "actor_role": actor.role if actor else None,
        },
    )


def notify_wallet(
    background_tasks: BackgroundTasks,
    event_type: str,
    txn: WalletTransaction,
    actor: AuthContext | None = None,
) -> None:
    background_tasks.add_task(
        _dispatch,
        WALLET,
        {
            "event_type": event_type,
            "txn_id": txn.id,
            "amount": str(txn.amount),
            "status": txn.status,
            "restaurant_id": txn.restaurant_id,
            "profile_id": txn.profile_id,
            "actor_id": actor.user_id if actor else None,
        },
    )


def notify_suspension(background_tasks: BackgroundTasks, restaurant: Restaurant) -> None:
    background_tasks.add_task(
        _dispatch,
        SUSPENSION,
        {
            "restaurant_id": restaurant.id,
            "credit_balance": str(restaurant.credit_balance),
            "min_balance_limit": str(restaurant.min_balance_limit),
        },
    )
