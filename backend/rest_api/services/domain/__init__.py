"""
Domain Services.

Services hold the business rules and own their transactions; routers stay
thin and translate domain exceptions into HTTP errors.

Usage:
    from rest_api.services.domain import OrderService

    # In router
    service = OrderService(db)
    placed = service.place_order(customer, restaurant_id, lines, address, method)
"""

from .coupon_service import CouponService
from .dispatch_service import DispatchService
from .menu_service import MenuService
from .order_service import OrderService
from .restaurant_service import RestaurantService
from .review_service import ReviewService
from .wallet_service import WalletService

__all__ = [
    "CouponService",
    "DispatchService",
    "MenuService",
    "OrderService",
    "RestaurantService",
    "ReviewService",
    "WalletService",
]
