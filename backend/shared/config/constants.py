"""
Centralized constants: roles, statuses and limits.

Usage:
    from shared.config.constants import Roles, OrderStatus, ORDER_TRANSITIONS

    if OrderStatus.READY in ORDER_TRANSITIONS[order.status]:
        ...
"""

from decimal import Decimal
from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    SUPER_ADMIN: Final[str] = "SUPER_ADMIN"
    RESTAURANT: Final[str] = "RESTAURANT"
    CUSTOMER: Final[str] = "CUSTOMER"
    RIDER: Final[str] = "RIDER"

    ALL: Final[list[str]] = [SUPER_ADMIN, RESTAURANT, CUSTOMER, RIDER]


# =============================================================================
# Order statuses
# =============================================================================


class OrderStatus:
    """Customer-visible order chain, driven by the restaurant."""

    PENDING: Final[str] = "PENDING"
    CONFIRMED: Final[str] = "CONFIRMED"
    COOKING: Final[str] = "COOKING"
    READY: Final[str] = "READY"
    DELIVERED: Final[str] = "DELIVERED"

    ALL: Final[list[str]] = [PENDING, CONFIRMED, COOKING, READY, DELIVERED]
    ACTIVE: Final[list[str]] = [PENDING, CONFIRMED, COOKING, READY]
    # A rider can be requested once the restaurant has accepted the order
    DISPATCHABLE: Final[list[str]] = [CONFIRMED, COOKING, READY]


class DeliveryStatus:
    """Rider chain, populated once the restaurant requests a rider."""

    SEARCHING_FOR_RIDER: Final[str] = "SEARCHING_FOR_RIDER"
    RIDER_ASSIGNED: Final[str] = "RIDER_ASSIGNED"
    OUT_FOR_DELIVERY: Final[str] = "OUT_FOR_DELIVERY"
    DELIVERED: Final[str] = "DELIVERED"

    ALL: Final[list[str]] = [SEARCHING_FOR_RIDER, RIDER_ASSIGNED, OUT_FOR_DELIVERY, DELIVERED]
    RIDER_ACTIVE: Final[list[str]] = [RIDER_ASSIGNED, OUT_FOR_DELIVERY]


ORDER_TRANSITIONS: Final[dict[str, str | None]] = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.COOKING,
    OrderStatus.COOKING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: None,  # Terminal
}

DELIVERY_TRANSITIONS: Final[dict[str, str | None]] = {
    DeliveryStatus.SEARCHING_FOR_RIDER: DeliveryStatus.RIDER_ASSIGNED,
    DeliveryStatus.RIDER_ASSIGNED: DeliveryStatus.OUT_FOR_DELIVERY,
    DeliveryStatus.OUT_FOR_DELIVERY: DeliveryStatus.DELIVERED,
    DeliveryStatus.DELIVERED: None,  # Terminal
}


# =============================================================================
# Payments
# =============================================================================


class PaymentMethod:
    PREPAID_UPI: Final[str] = "PREPAID_UPI"
    COD_CASH: Final[str] = "COD_CASH"
    COD_UPI_SCAN: Final[str] = "COD_UPI_SCAN"

    ALL: Final[list[str]] = [PREPAID_UPI, COD_CASH, COD_UPI_SCAN]


class PaymentStatus:
    """Gateway payment state of an order."""

    PENDING: Final[str] = "PENDING"
    COMPLETED: Final[str] = "COMPLETED"
    FAILED: Final[str] = "FAILED"


class PaymentPurpose:
    """What a gateway payment is for."""

    ORDER: Final[str] = "ORDER"
    RECHARGE: Final[str] = "RECHARGE"

    ALL: Final[list[str]] = [ORDER, RECHARGE]


# =============================================================================
# Wallet ledger
# =============================================================================


class WalletTxnType:
    FEE_DEDUCTION: Final[str] = "FEE_DEDUCTION"
    WALLET_RECHARGE: Final[str] = "WALLET_RECHARGE"


class WalletTxnStatus:
    PENDING: Final[str] = "PENDING"
    APPROVED: Final[str] = "APPROVED"
    REJECTED: Final[str] = "REJECTED"

    TERMINAL: Final[list[str]] = [APPROVED, REJECTED]


class RechargeDecision:
    APPROVE: Final[str] = "APPROVE"
    REJECT: Final[str] = "REJECT"


class BalanceStatus:
    """Dashboard indicator for a restaurant's credit balance."""

    POSITIVE: Final[str] = "positive"
    WARNING: Final[str] = "warning"
    CRITICAL: Final[str] = "critical"


# =============================================================================
# Menu
# =============================================================================


class MysteryType:
    VEG: Final[str] = "VEG"
    NON_VEG: Final[str] = "NON_VEG"
    ANY: Final[str] = "ANY"

    ALL: Final[list[str]] = [VEG, NON_VEG, ANY]


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Input limits enforced at the API boundary."""

    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 50
    MAX_ITEMS_PER_ORDER: Final[int] = 30
    MIN_RATING: Final[int] = 1
    MAX_RATING: Final[int] = 5
    MAX_REVIEW_LENGTH: Final[int] = 1000
    MAX_COUPON_CODE_LENGTH: Final[int] = 32
    MAX_NOTES_LENGTH: Final[int] = 500
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200


MONEY_QUANTUM: Final[Decimal] = Decimal("0.01")
SHORT_ID_PREFIX: Final[str] = "ANT-"


def validate_order_status(status: str) -> bool:
    return status in ORDER_TRANSITIONS


def validate_delivery_status(status: str) -> bool:
    return status in DELIVERY_TRANSITIONS


def validate_role(role: str) -> bool:
    return role in Roles.ALL
