"""
Customer routers - /api/customer/*
Checkout, order tracking, reviews and wallet.
"""

from .checkout import router as checkout_router
from .orders import router as orders_router
from .wallet import router as wallet_router

__all__ = ["checkout_router", "orders_router", "wallet_router"]
