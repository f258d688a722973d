"""
Common helpers shared across routers: output builders and ownership checks.
"""

from .access import get_profile, get_owned_restaurant
from .outputs import (
    bill_output,
    coupon_output,
    menu_item_output,
    order_output,
    restaurant_admin_output,
    restaurant_public_output,
    rider_order_output,
    wallet_txn_output,
)

__all__ = [
    "get_profile",
    "get_owned_restaurant",
    "bill_output",
    "coupon_output",
    "menu_item_output",
    "order_output",
    "restaurant_admin_output",
    "restaurant_public_output",
    "rider_order_output",
    "wallet_txn_output",
]
