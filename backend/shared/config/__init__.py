"""
Configuration: settings, logging, constants.
"""

from shared.config.settings import settings, get_settings, DATABASE_URL
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    Roles,
    OrderStatus,
    DeliveryStatus,
    PaymentMethod,
    Limits,
)

__all__ = [
    "settings",
    "get_settings",
    "DATABASE_URL",
    "get_logger",
    "setup_logging",
    "Roles",
    "OrderStatus",
    "DeliveryStatus",
    "PaymentMethod",
    "Limits",
]
