"""
Event notification helpers used by routers.
"""

from .notifier import notify_order, notify_suspension, notify_wallet

__all__ = ["notify_order", "notify_suspension", "notify_wallet"]
