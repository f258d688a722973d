"""
Event Type Constants.

Defines all event types published on Redis pub/sub.
"""

# =============================================================================
# Order lifecycle
# Customer chain: PENDING → CONFIRMED → COOKING → READY → DELIVERED
# =============================================================================

ORDER_CREATED = "ORDER_CREATED"
ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
ORDER_PAYMENT_UPDATED = "ORDER_PAYMENT_UPDATED"

# =============================================================================
# Dispatch
# Rider chain: SEARCHING_FOR_RIDER → RIDER_ASSIGNED → OUT_FOR_DELIVERY → DELIVERED
# =============================================================================

ORDER_RIDER_SEARCH = "ORDER_RIDER_SEARCH"
ORDER_RIDER_ASSIGNED = "ORDER_RIDER_ASSIGNED"
ORDER_OUT_FOR_DELIVERY = "ORDER_OUT_FOR_DELIVERY"
ORDER_DELIVERED = "ORDER_DELIVERED"

# =============================================================================
# Wallet / credit ledger
# =============================================================================

WALLET_RECHARGE_REQUESTED = "WALLET_RECHARGE_REQUESTED"
WALLET_RECHARGE_RESOLVED = "WALLET_RECHARGE_RESOLVED"
RESTAURANT_SUSPENDED = "RESTAURANT_SUSPENDED"

# Events larger than this are rejected before publishing
MAX_EVENT_SIZE = 64 * 1024
