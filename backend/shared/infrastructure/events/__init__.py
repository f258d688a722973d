"""
Event system for real-time notifications via Redis pub/sub.

- circuit_breaker.py: fail-fast when Redis is unavailable
- event_types.py: event type constants
- event_schema.py: Event dataclass with validation
- channels.py: channel naming
- redis_pool.py: async connection pool
- publisher.py: publish_event with retry
- domain_publishers.py: order / wallet publishers with routing
"""

from .circuit_breaker import (
    CircuitState,
    EventCircuitBreaker,
    calculate_retry_delay_with_jitter,
    get_event_circuit_breaker,
)
from .event_types import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    ORDER_PAYMENT_UPDATED,
    ORDER_RIDER_SEARCH,
    ORDER_RIDER_ASSIGNED,
    ORDER_OUT_FOR_DELIVERY,
    ORDER_DELIVERED,
    WALLET_RECHARGE_REQUESTED,
    WALLET_RECHARGE_RESOLVED,
    RESTAURANT_SUSPENDED,
    MAX_EVENT_SIZE,
)
from .event_schema import Event
from .channels import (
    channel_restaurant_orders,
    channel_riders_available,
    channel_rider,
    channel_customer,
    channel_admin_finance,
)
from .redis_pool import get_redis_pool, close_redis_pool
from .publisher import publish_event
from .domain_publishers import (
    order_channels,
    publish_order_event,
    publish_wallet_event,
    publish_restaurant_suspended,
)

__all__ = [
    "CircuitState",
    "EventCircuitBreaker",
    "calculate_retry_delay_with_jitter",
    "get_event_circuit_breaker",
    "ORDER_CREATED",
    "ORDER_STATUS_CHANGED",
    "ORDER_PAYMENT_UPDATED",
    "ORDER_RIDER_SEARCH",
    "ORDER_RIDER_ASSIGNED",
    "ORDER_OUT_FOR_DELIVERY",
    "ORDER_DELIVERED",
    "WALLET_RECHARGE_REQUESTED",
    "WALLET_RECHARGE_RESOLVED",
    "RESTAURANT_SUSPENDED",
    "MAX_EVENT_SIZE",
    "Event",
    "channel_restaurant_orders",
    "channel_riders_available",
    "channel_rider",
    "channel_customer",
    "channel_admin_finance",
    "get_redis_pool",
    "close_redis_pool",
    "publish_event",
    "order_channels",
    "publish_order_event",
    "publish_wallet_event",
    "publish_restaurant_suspended",
]
