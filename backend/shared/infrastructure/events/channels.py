"""
Redis Channel Naming.
"""

from __future__ import annotations


def _validate_positive_id(id_value: int, name: str) -> None:
    if not isinstance(id_value, int) or id_value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {id_value}")


def channel_restaurant_orders(restaurant_id: int) -> str:
    """Live order feed for a restaurant dashboard."""
    _validate_positive_id(restaurant_id, "restaurant_id")
    return f"restaurant:{restaurant_id}:orders"


def channel_riders_available() -> str:
    """Broadcast channel for orders waiting for a rider."""
    return "riders:available"


def channel_rider(rider_id: int) -> str:
    """Direct notifications for a single rider."""
    _validate_positive_id(rider_id, "rider_id")
    return f"rider:{rider_id}"


def channel_customer(profile_id: int) -> str:
    """Order tracking updates for a customer."""
    _validate_positive_id(profile_id, "profile_id")
    return f"customer:{profile_id}"


def channel_admin_finance() -> str:
    """Recharge queue and suspension alerts for super admins."""
    return "admin:finance"
