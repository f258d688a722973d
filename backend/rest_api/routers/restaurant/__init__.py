"""
Restaurant dashboard routers - /api/restaurant/*
Orders and dispatch, menu and loot, coupons, wallet, settings.
"""

from .coupons import router as coupons_router
from .menu import router as menu_router
from .orders import router as orders_router
from .profile import router as profile_router
from .wallet import router as wallet_router

__all__ = ["coupons_router", "menu_router", "orders_router", "profile_router", "wallet_router"]
