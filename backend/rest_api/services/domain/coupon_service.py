"""
Coupon Domain Service.

Evaluation (apply_coupon) is read-only: the applied code and discount are
recorded on the Order by the caller, never on the Coupon.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from rest_api.models import Coupon
from rest_api.services.domain.pricing import round_money, to_decimal

logger = get_logger(__name__)


class CouponRejection(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    BELOW_MINIMUM = "BELOW_MINIMUM"


class CouponRejectedError(Exception):
    """Coupon cannot be applied to this cart."""

    def __init__(self, reason: CouponRejection, code: str, min_order_value: Decimal | None = None):
        self.reason = reason
        self.code = code
        self.min_order_value = min_order_value
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.reason == CouponRejection.BELOW_MINIMUM:
            return f"Coupon {self.code} needs a minimum order of ₹{self.min_order_value}"
        return f"Coupon {self.code} is not valid for this restaurant"


class CouponNotFoundError(Exception):
    pass


class DuplicateCouponError(Exception):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Coupon {code} already exists")


@dataclass(frozen=True)
class CouponResult:
    code: str
    discount: Decimal
    min_order_value: Decimal


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CouponService:
    """
    Domain service for coupon evaluation and owner-side management.
    """

    def __init__(self, db: Session):
        self._db = db

    def _find_active(self, restaurant_id: int, code: str) -> Coupon | None:
        return self._db.scalar(
            select(Coupon).where(
                Coupon.restaurant_id == restaurant_id,
                Coupon.code == code,
                Coupon.is_active.is_(True),
            )
        )

    def apply_coupon(self, code: str, restaurant_id: int, cart_subtotal: Any) -> CouponResult:
        """
        Validate a code against a pre-discount cart subtotal.

        The discount is the coupon's flat value, capped at the cart subtotal so
        an order can never be discounted below zero food value.

        Raises:
            CouponRejectedError: NOT_FOUND or BELOW_MINIMUM.
        """
        normalized = normalize_code(code)
        coupon = self._find_active(restaurant_id, normalized)
        if coupon is None:
            raise CouponRejectedError(CouponRejection.NOT_FOUND, normalized)

        subtotal = to_decimal(cart_subtotal)
        if subtotal < coupon.min_order_value:
            raise CouponRejectedError(
                CouponRejection.BELOW_MINIMUM, normalized, min_order_value=round_money(coupon.min_order_value)
            )

        discount = min(to_decimal(coupon.discount_value), subtotal)
        return CouponResult(
            code=normalized,
            discount=round_money(discount),
            min_order_value=round_money(coupon.min_order_value),
        )

    # =========================================================================
    # Management
    # =========================================================================

    def list_for_restaurant(self, restaurant_id: int) -> list[Coupon]:
        return list(
            self._db.scalars(
                select(Coupon)
                .where(Coupon.restaurant_id == restaurant_id)
                .order_by(Coupon.created_at.desc(), Coupon.id.desc())
            )
        )

    def create(
        self,
        restaurant_id: int,
        code: str,
        discount_value: Decimal,
        min_order_value: Decimal = Decimal("0"),
    ) -> Coupon:
        normalized = normalize_code(code)
        exists = self._db.scalar(
            select(Coupon.id).where(Coupon.restaurant_id == restaurant_id, Coupon.code == normalized)
        )
        if exists is not None:
            raise DuplicateCouponError(normalized)

        coupon = Coupon(
            restaurant_id=restaurant_id,
            code=normalized,
            discount_value=round_money(discount_value),
            min_order_value=round_money(min_order_value),
            is_active=True,
        )
        self._db.add(coupon)
        try:
            safe_commit(self._db)
        except IntegrityError:
            # Concurrent create with the same code
            raise DuplicateCouponError(normalized)
        self._db.refresh(coupon)

        logger.info("Coupon created", coupon_id=coupon.id, restaurant_id=restaurant_id, code=normalized)
        return coupon

    def _get_owned(self, restaurant_id: int, coupon_id: int) -> Coupon:
        coupon = self._db.scalar(
            select(Coupon).where(Coupon.id == coupon_id, Coupon.restaurant_id == restaurant_id)
        )
        if coupon is None:
            raise CouponNotFoundError(f"Coupon {coupon_id} not found")
        return coupon

    def set_active(self, restaurant_id: int, coupon_id: int, is_active: bool) -> Coupon:
        coupon = self._get_owned(restaurant_id, coupon_id)
        coupon.is_active = is_active
        safe_commit(self._db)
        self._db.refresh(coupon)
        logger.info("Coupon toggled", coupon_id=coupon_id, is_active=is_active)
        return coupon

    def delete(self, restaurant_id: int, coupon_id: int) -> None:
        coupon = self._get_owned(restaurant_id, coupon_id)
        self._db.delete(coupon)
        safe_commit(self._db)
        logger.info("Coupon deleted", coupon_id=coupon_id, restaurant_id=restaurant_id)
