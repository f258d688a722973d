"""
Domain event publishers.

Each function builds the Event and fans it out to every channel that
cares about it.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis

from .channels import (
    channel_admin_finance,
    channel_customer,
    channel_restaurant_orders,
    channel_rider,
    channel_riders_available,
)
from .event_schema import Event
from .event_types import (
    ORDER_DELIVERED,
    ORDER_OUT_FOR_DELIVERY,
    ORDER_RIDER_ASSIGNED,
    ORDER_RIDER_SEARCH,
    RESTAURANT_SUSPENDED,
    WALLET_RECHARGE_RESOLVED,
)
from .publisher import publish_event

_RIDER_FEED_EVENTS = {ORDER_RIDER_SEARCH, ORDER_RIDER_ASSIGNED}
_RIDER_DIRECT_EVENTS = {ORDER_RIDER_ASSIGNED, ORDER_OUT_FOR_DELIVERY, ORDER_DELIVERED}


def order_channels(event: Event) -> list[str]:
    """
    Channels an order event is routed to.

    - The restaurant always sees its own orders.
    - The customer follows every change on their order.
    - Rider search/claim goes to the shared rider feed so other riders
      drop the card; assigned riders get direct updates.
    """
    channels: list[str] = []
    if event.restaurant_id:
        channels.append(channel_restaurant_orders(event.restaurant_id))
    if event.customer_id:
        channels.append(channel_customer(event.customer_id))
    if event.type in _RIDER_FEED_EVENTS:
        channels.append(channel_riders_available())
    if event.rider_id and event.type in _RIDER_DIRECT_EVENTS:
        channels.append(channel_rider(event.rider_id))
    return channels


async def publish_order_event(
    redis_client: redis.Redis,
    event_type: str,
    restaurant_id: int,
    order_id: int,
    customer_id: int | None = None,
    rider_id: int | None = None,
    entity: dict[str, Any] | None = None,
    actor_id: int | None = None,
    actor_role: str | None = None,
) -> None:
    event = Event(
        type=event_type,
        restaurant_id=restaurant_id,
        order_id=order_id,
        customer_id=customer_id,
        rider_id=rider_id,
        entity={"order_id": order_id, **(entity or {})},
        actor={"user_id": actor_id, "role": actor_role},
    )
    for channel in order_channels(event):
        await publish_event(redis_client, channel, event)


async def publish_wallet_event(
    redis_client: redis.Redis,
    event_type: str,
    txn_id: int,
    amount: str,
    status: str,
    restaurant_id: int | None = None,
    profile_id: int | None = None,
    actor_id: int | None = None,
) -> None:
    """
    Recharge requests go to the admin finance queue; resolutions go back to
    the owning restaurant (or customer) as well.
    """
    event = Event(
        type=event_type,
        restaurant_id=restaurant_id,
        customer_id=profile_id,
        entity={"txn_id": txn_id, "amount": amount, "status": status},
        actor={"user_id": actor_id},
    )
    await publish_event(redis_client, channel_admin_finance(), event)

    if event_type == WALLET_RECHARGE_RESOLVED:
        if restaurant_id:
            await publish_event(redis_client, channel_restaurant_orders(restaurant_id), event)
        if profile_id:
            await publish_event(redis_client, channel_customer(profile_id), event)


async def publish_restaurant_suspended(
    redis_client: redis.Redis,
    restaurant_id: int,
    credit_balance: str,
    min_balance_limit: str,
) -> None:
    event = Event(
        type=RESTAURANT_SUSPENDED,
        restaurant_id=restaurant_id,
        entity={"credit_balance": credit_balance, "min_balance_limit": min_balance_limit},
    )
    await publish_event(redis_client, channel_restaurant_orders(restaurant_id), event)
    await publish_event(redis_client, channel_admin_finance(), event)
