"""
SQLAlchemy ORM models.

- base: Base, AuditMixin, shared column types
- profile: Profile
- restaurant: Restaurant, MenuItem, Coupon
- order: Order
- wallet: WalletTransaction
- review: Review
"""

from .base import Base, AuditMixin
from .profile import Profile
from .restaurant import Restaurant, MenuItem, Coupon
from .order import Order
from .wallet import WalletTransaction
from .review import Review

__all__ = [
    "Base",
    "AuditMixin",
    "Profile",
    "Restaurant",
    "MenuItem",
    "Coupon",
    "Order",
    "WalletTransaction",
    "Review",
]
